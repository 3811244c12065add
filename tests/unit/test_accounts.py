"""
Unit Tests for Account Variants
"""

import pytest

from civicdesk.auth.accounts import (
    FederatedAccount,
    LinkedAccount,
    PasswordAccount,
    account_for,
    password_credential,
)
from civicdesk.models.user import User


@pytest.mark.unit
class TestAccountFor:
    def test_password_only_account(self):
        account = account_for(User(username="a", email="a@example.com", hashed_password="$2b$hash"))

        assert account == PasswordAccount(credential="$2b$hash")
        assert password_credential(account) == "$2b$hash"

    def test_google_only_account_has_no_credential(self):
        account = account_for(User(username="a", email="a@example.com", google_id="1234"))

        assert account == FederatedAccount(provider_subject="1234")
        assert password_credential(account) is None

    def test_linked_account_keeps_password(self):
        user = User(username="a", email="a@example.com", hashed_password="$2b$hash", google_id="1234")
        account = account_for(user)

        assert isinstance(account, LinkedAccount)
        assert password_credential(account) == "$2b$hash"

    def test_google_account_without_subject(self):
        account = account_for(User(username="a", email="a@example.com"))

        assert account == FederatedAccount(provider_subject=None)
