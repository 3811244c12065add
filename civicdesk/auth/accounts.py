"""
Account Variants
Explicit tag for how a user is allowed to sign in
"""

from dataclasses import dataclass

from civicdesk.models.user import User


@dataclass
class PasswordAccount:
    """Registered through the form; signs in with username and password only."""

    credential: str


@dataclass
class FederatedAccount:
    """Created by a Google sign-in; has no local password."""

    provider_subject: str | None


@dataclass
class LinkedAccount:
    """Registered with a password and later signed in with Google."""

    credential: str
    provider_subject: str


Account = PasswordAccount | FederatedAccount | LinkedAccount


def account_for(user: User) -> Account:
    """
    Classify a stored user.

    A record without a password hash can only have come from Google
    sign-in. Its subject may still be empty when Google left out `sub`;
    such a record is matched by verified email alone.
    """
    if user.hashed_password and user.google_id:
        return LinkedAccount(credential=user.hashed_password, provider_subject=user.google_id)
    if user.hashed_password:
        return PasswordAccount(credential=user.hashed_password)
    return FederatedAccount(provider_subject=user.google_id)


def password_credential(account: Account) -> str | None:
    """Return the password hash an account can be checked against, if any."""
    if isinstance(account, (PasswordAccount, LinkedAccount)):
        return account.credential
    return None
