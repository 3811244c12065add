"""
Sign-in for CivicDesk.

Password accounts, Google OAuth2 federation and server-side sessions.
"""

from civicdesk.auth.accounts import FederatedAccount, LinkedAccount, PasswordAccount, account_for
from civicdesk.auth.google import GoogleOAuthClient
from civicdesk.auth.service import AuthService
from civicdesk.auth.session import (
    AuthSession,
    InMemorySessionStore,
    RedisSessionStore,
    SessionManager,
    SessionStore,
)
from civicdesk.auth.state import StateTokenManager

__all__ = [
    "AuthService",
    "AuthSession",
    "FederatedAccount",
    "GoogleOAuthClient",
    "InMemorySessionStore",
    "LinkedAccount",
    "PasswordAccount",
    "RedisSessionStore",
    "SessionManager",
    "SessionStore",
    "StateTokenManager",
    "account_for",
]
