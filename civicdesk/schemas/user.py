"""
User Schemas
Pydantic models for user API contracts
Source: https://docs.pydantic.dev/latest/
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegistrationForm(BaseModel):
    """
    Fields of the public registration form.

    Usernames are lowercased and limited to letters, digits, dots, dashes
    and underscores, the same alphabet generated usernames use.
    """

    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    number: str = Field(..., min_length=5, max_length=32, description="Phone number")
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def username_alphabet(cls, v: str) -> str:
        allowed = set("abcdefghijklmnopqrstuvwxyz0123456789._-")
        if not set(v) <= allowed:
            raise ValueError("Username may only contain letters, digits, '.', '_' and '-'")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("number")
    @classmethod
    def phone_digits(cls, v: str) -> str:
        v = v.strip()
        digits = v[1:] if v.startswith("+") else v
        if not digits.replace(" ", "").replace("-", "").isdigit():
            raise ValueError("Phone number may only contain digits, spaces, '-' and a leading '+'")
        return v

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not any(c.isalpha() for c in v):
            raise ValueError("Password must contain at least one letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class UserResponse(BaseModel):
    """Schema for user responses (excludes password)"""

    id: int
    username: str
    email: str
    phone_number: str | None = None
    picture_url: str | None = None
    email_verified: bool
    has_password: bool
    google_linked: bool
    created_at: datetime | None = None
    last_login: datetime | None = None
