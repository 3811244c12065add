"""
Unit Tests for Password Hashing
Tests bcrypt hashing and verification in isolation
"""

import pytest

from civicdesk.utils.auth import get_password_hash, verify_password


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing and verification"""

    def test_password_hashing(self):
        """Test that passwords are hashed correctly"""
        password = "Complaint2024"
        hashed = get_password_hash(password)

        # Hash should not equal original password
        assert hashed != password
        # Hash should be a bcrypt hash (starts with $2b$)
        assert hashed.startswith("$2b$")

    def test_password_verification(self):
        """Test that password verification works"""
        hashed = get_password_hash("Complaint2024")

        assert verify_password("Complaint2024", hashed) is True
        assert verify_password("complaint2024", hashed) is False

    def test_different_passwords_different_hashes(self):
        """Same password hashed twice produces different salted hashes"""
        hash1 = get_password_hash("Complaint2024")
        hash2 = get_password_hash("Complaint2024")

        assert hash1 != hash2
        assert verify_password("Complaint2024", hash1)
        assert verify_password("Complaint2024", hash2)

    def test_empty_inputs_never_verify(self):
        hashed = get_password_hash("Complaint2024")

        assert verify_password("", hashed) is False
        assert verify_password("Complaint2024", "") is False

    def test_corrupt_hash_does_not_raise(self):
        assert verify_password("Complaint2024", "not-a-bcrypt-hash") is False

    def test_long_passwords_are_accepted(self):
        """bcrypt only sees the first 72 bytes; longer input must not raise"""
        password = "a1" * 60
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True
