"""
Anti-forgery state for the Google redirect
Source: https://datatracker.ietf.org/doc/html/rfc6749#section-10.12
"""

import secrets
from datetime import UTC, datetime, timedelta

from civicdesk.auth.session import AuthSession
from civicdesk.utils.logging import get_logger, redact

logger = get_logger(__name__)


class StateTokenManager:
    """
    Issues and checks the ``state`` value bound to one sign-in attempt.

    Only one flow may be outstanding per session; binding a new token
    replaces the old one. A token is good for one callback only.
    """

    def __init__(self, ttl_seconds: int = 600):
        self.ttl_seconds = ttl_seconds
        self.ttl = timedelta(seconds=ttl_seconds)

    @staticmethod
    def generate() -> str:
        """32 random bytes, URL-safe base64."""
        return secrets.token_urlsafe(32)

    def bind(self, session: AuthSession, token: str) -> None:
        session.pending_state = token
        session.pending_state_issued_at = datetime.now(UTC)

    def discard(self, session: AuthSession) -> None:
        session.pending_state = None
        session.pending_state_issued_at = None

    def consume_and_validate(self, session: AuthSession, supplied: str | None) -> bool:
        """
        Clear the pending token and report whether ``supplied`` matched it.

        The session is left without a pending token whatever the outcome;
        persisting that change is the caller's job.
        """
        expected, issued_at = session.pending_state, session.pending_state_issued_at
        session.pending_state = None
        session.pending_state_issued_at = None

        if not expected:
            logger.info("State check failed: no sign-in pending for this session")
            return False
        if not supplied:
            logger.info("State check failed: callback carried no state")
            return False
        if issued_at is not None and datetime.now(UTC) - issued_at > self.ttl:
            logger.info(f"State check failed: token {redact(expected)} expired")
            return False
        if supplied != expected:
            logger.info(f"State check failed: expected {redact(expected)}, got {redact(supplied)}")
            return False
        return True
