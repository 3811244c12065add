"""
User Model
SQLAlchemy model for complaint-desk accounts
Source: https://docs.sqlalchemy.org/en/20/orm/quickstart.html
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from civicdesk.models.base import Base, TimeStampedModel


class User(Base, TimeStampedModel):
    """
    A citizen account.

    Accounts come from two places: the registration form, which always
    stores a bcrypt hash, and the first Google sign-in for an unknown email,
    which stores the Google subject and leaves ``hashed_password`` empty.
    Use ``civicdesk.auth.accounts.account_for`` rather than null-checks to
    tell them apart.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(32))

    # Credentials
    hashed_password: Mapped[str | None] = mapped_column(String(255))
    google_id: Mapped[str | None] = mapped_column(String(255), unique=True)

    # Profile
    picture_url: Mapped[str | None] = mapped_column(String)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.email})>"
