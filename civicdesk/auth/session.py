"""
Session Management
Server-side session records keyed by an opaque cookie value
Source: https://cheatsheetseries.owasp.org/cheatsheets/Session_Management_Cheat_Sheet.html

A session record holds exactly what the rest of the application may rely
on: the signed-in username and user id, the pending Google sign-in state
while a redirect is in flight, and a one-shot flash message for the
redirect-based pages. Records live outside the process (Redis) so any
worker can serve the callback of a flow another worker started.
"""

import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field
from redis.asyncio import Redis

from civicdesk.models.user import User
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class AuthSession(BaseModel):
    """Typed session record."""

    session_id: str = Field(default_factory=new_session_id)
    username: str | None = None
    user_id: int | None = None
    pending_state: str | None = None
    pending_state_issued_at: datetime | None = None
    flash: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.username is not None and self.user_id is not None

    def pop_flash(self) -> str | None:
        message, self.flash = self.flash, None
        return message


@dataclass
class SessionIdentity:
    """Who is signed in, as far as the session knows."""

    username: str
    user_id: int


class SessionStore(ABC):
    """Storage for session records."""

    @abstractmethod
    async def get(self, session_id: str) -> AuthSession | None: ...

    @abstractmethod
    async def put(self, session: AuthSession) -> None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None: ...

    @abstractmethod
    async def claim_once(self, key: str, ttl_seconds: int) -> bool:
        """Mark ``key`` used. Only the first caller within ``ttl_seconds`` gets True."""

    async def close(self) -> None:
        return None


class InMemorySessionStore(SessionStore):
    """
    Single-process store for development and tests.

    Records are kept serialized so callers never share a mutable instance.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._claims: dict[str, float] = {}

    async def get(self, session_id: str) -> AuthSession | None:
        raw = self._records.get(session_id)
        return AuthSession.model_validate_json(raw) if raw else None

    async def put(self, session: AuthSession) -> None:
        self._records[session.session_id] = session.model_dump_json()

    async def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    async def claim_once(self, key: str, ttl_seconds: int) -> bool:
        now = time.monotonic()
        self._claims = {k: expiry for k, expiry in self._claims.items() if expiry > now}
        if key in self._claims:
            return False
        self._claims[key] = now + ttl_seconds
        return True

    def __len__(self) -> int:
        return len(self._records)


class RedisSessionStore(SessionStore):
    """
    Redis-backed store. Each write refreshes the idle TTL.

    Source: https://redis.io/docs/connect/clients/python/
    """

    key_prefix = "session:"
    claim_prefix = "claim:"

    def __init__(self, redis_url: str, ttl_seconds: int):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._redis: Redis | None = None

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = Redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._redis.ping()
            logger.info("Session store connected to Redis")

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Session store disconnected from Redis")

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def get(self, session_id: str) -> AuthSession | None:
        if not self._redis:
            await self.connect()
        raw = await self._redis.get(self._key(session_id))
        return AuthSession.model_validate_json(raw) if raw else None

    async def put(self, session: AuthSession) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.setex(
            self._key(session.session_id), self.ttl_seconds, session.model_dump_json()
        )

    async def delete(self, session_id: str) -> None:
        if not self._redis:
            await self.connect()
        await self._redis.delete(self._key(session_id))

    async def claim_once(self, key: str, ttl_seconds: int) -> bool:
        if not self._redis:
            await self.connect()
        claimed = await self._redis.set(f"{self.claim_prefix}{key}", "1", nx=True, ex=ttl_seconds)
        return bool(claimed)


class SessionManager:
    """
    Loads, establishes and clears session records.

    The manager never trusts a session id it did not issue: an unknown
    cookie value yields a brand new anonymous record with a fresh id.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    async def load(self, session_id: str | None) -> AuthSession:
        if session_id:
            session = await self.store.get(session_id)
            if session is not None:
                return session
        return AuthSession()

    async def save(self, session: AuthSession) -> None:
        await self.store.put(session)

    async def claim_state(self, token: str, ttl_seconds: int) -> bool:
        """
        Spend a state token across all workers.

        Two callbacks racing with copies of the same session record both
        pass the per-record check; only one of them wins here.
        """
        return await self.store.claim_once(f"oauth-state:{token}", ttl_seconds)

    async def establish(self, session: AuthSession, user: User) -> AuthSession:
        """
        Mark the session as signed in as ``user``.

        The id is rotated so a session id planted before login is useless
        afterwards. Any pending sign-in state is dropped.
        """
        await self.store.delete(session.session_id)
        established = AuthSession(
            username=user.username,
            user_id=user.id,
            flash=session.flash,
        )
        await self.store.put(established)
        logger.info(f"Session established for {user.username} (id={user.id})")
        return established

    async def clear(self, session: AuthSession) -> AuthSession:
        """Drop the whole record and hand back a fresh anonymous one."""
        await self.store.delete(session.session_id)
        if session.username:
            logger.info(f"Session cleared for {session.username}")
        return AuthSession()

    @staticmethod
    def current_identity(session: AuthSession) -> SessionIdentity | None:
        if not session.is_authenticated:
            return None
        return SessionIdentity(username=session.username, user_id=session.user_id)
