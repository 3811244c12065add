"""
User Repository
Lookups and writes for the users table
Source: https://docs.sqlalchemy.org/en/20/orm/queryguide/select.html
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from civicdesk.models.user import User
from civicdesk.utils.errors import ValidationError
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)


class UserRepository:
    """
    Credential store backed by the ``users`` table.

    Usernames match exactly; emails match regardless of case.

    Uniqueness of username, email and Google subject is enforced by the
    database. Writes are flushed immediately so a violation surfaces here as
    ``ValidationError`` and the transaction is rolled back, leaving nothing
    half-written. Committing is left to the request's session dependency.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Case-insensitive; mailboxes differing only in case are one account."""
        result = await self.session.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_google_id(self, google_id: str) -> User | None:
        result = await self.session.execute(select(User).where(User.google_id == google_id))
        return result.scalar_one_or_none()

    async def username_exists(self, username: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.username == username))
        return result.first() is not None

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(select(User.id).where(func.lower(User.email) == email.lower()))
        return result.first() is not None

    async def add(self, user: User) -> User:
        """
        Insert a new user and assign its identifier.

        Raises:
            ValidationError: username, email or Google subject already taken
        """
        self.session.add(user)
        await self._flush(user)
        logger.info(f"User created: {user.username} (id={user.id})")
        return user

    async def save(self, user: User) -> User:
        """
        Flush pending changes to an already persisted user.

        Raises:
            ValidationError: the change collides with another record
        """
        await self._flush(user)
        return user

    async def _flush(self, user: User) -> None:
        # Read before rollback expires the instance
        username = user.username
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info(f"Rejected duplicate account data for {username!r}: {e.orig}")
            raise ValidationError("Username or email already exists") from e
