"""
Authentication Schemas
Provider payloads and sign-in request/response models
Source: https://developers.google.com/identity/openid-connect/openid-connect
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenResponse(BaseModel):
    """
    Token endpoint response.

    Source: https://datatracker.ietf.org/doc/html/rfc6749#section-5.1

    ``access_token`` is optional at parse time so the client can report its
    absence as a provider failure rather than a schema failure.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = None
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None
    token_type: str | None = None


class FederatedClaims(BaseModel):
    """
    Identity claims from the userinfo or tokeninfo endpoint.

    Google sends ``email_verified`` as a JSON boolean from userinfo and as
    the string ``"true"``/``"false"`` from tokeninfo. Both collapse to a
    bool here so nothing downstream inspects raw claim types.
    Emails are lowercased; accounts are matched on them.
    """

    model_config = ConfigDict(extra="ignore")

    sub: str | None = None
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None
    aud: str | None = None

    @field_validator("email_verified", mode="before")
    @classmethod
    def coerce_verified(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return False

    @field_validator("sub", "aud", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("email", "name", "picture", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class IdTokenRequest(BaseModel):
    """Body of ``POST /auth/google``."""

    model_config = ConfigDict(populate_by_name=True)

    id_token: str | None = Field(default=None, alias="idToken")


class AuthResult(BaseModel):
    """Outcome of a JSON sign-in call."""

    success: bool
    message: str
