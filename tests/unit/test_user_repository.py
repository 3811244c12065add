"""
Unit Tests for the User Repository
"""

import pytest

from civicdesk.models.user import User
from civicdesk.utils.errors import ValidationError


@pytest.mark.unit
class TestUserRepository:
    @pytest.mark.asyncio
    async def test_add_assigns_id(self, users):
        user = await users.add(User(username="jane", email="jane@example.com", hashed_password="h"))

        assert user.id is not None
        assert await users.get_by_id(user.id) is user

    @pytest.mark.asyncio
    async def test_lookups(self, users):
        await users.add(User(username="jane", email="jane@example.com", hashed_password="h"))

        assert (await users.get_by_username("jane")).email == "jane@example.com"
        assert await users.get_by_username("jan") is None
        assert (await users.get_by_email("jane@example.com")).username == "jane"
        assert await users.username_exists("jane") is True
        assert await users.email_exists("nobody@example.com") is False

    @pytest.mark.asyncio
    async def test_username_lookup_is_exact(self, users):
        await users.add(User(username="jane", email="jane@example.com", hashed_password="h"))

        assert await users.get_by_username("Jane") is None

    @pytest.mark.asyncio
    async def test_email_lookup_ignores_case(self, users):
        await users.add(User(username="jane", email="Jane.Doe@Example.com", hashed_password="h"))

        assert (await users.get_by_email("jane.doe@example.com")).username == "jane"
        assert (await users.get_by_email("JANE.DOE@EXAMPLE.COM")).username == "jane"
        assert await users.email_exists("jane.doe@EXAMPLE.com") is True

    @pytest.mark.asyncio
    async def test_get_by_google_id(self, users):
        await users.add(User(username="a", email="a@example.com", google_id="sub-1"))

        assert (await users.get_by_google_id("sub-1")).username == "a"
        assert await users.get_by_google_id("sub-2") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_validation_error(self, users):
        await users.add(User(username="jane", email="jane@example.com", hashed_password="h"))

        with pytest.raises(ValidationError) as exc_info:
            await users.add(User(username="jane2", email="jane@example.com", hashed_password="h"))

        assert str(exc_info.value) == "Username or email already exists"
        assert await users.username_exists("jane2") is False

    @pytest.mark.asyncio
    async def test_duplicate_google_subject_rejected(self, users):
        await users.add(User(username="a", email="a@example.com", google_id="sub-1"))

        with pytest.raises(ValidationError):
            await users.add(User(username="b", email="b@example.com", google_id="sub-1"))

    @pytest.mark.asyncio
    async def test_several_accounts_without_google_subject(self, users):
        await users.add(User(username="a", email="a@example.com"))
        await users.add(User(username="b", email="b@example.com"))

        assert await users.username_exists("b") is True

    @pytest.mark.asyncio
    async def test_save_flushes_changes(self, users):
        user = await users.add(User(username="jane", email="jane@example.com", hashed_password="h"))
        user.picture_url = "https://example.com/p.png"

        await users.save(user)

        assert (await users.get_by_email("jane@example.com")).picture_url == "https://example.com/p.png"
