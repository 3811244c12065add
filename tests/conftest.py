"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.
"""

import os

# Settings are read at import time, so the environment comes first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("GOOGLE_REDIRECT_URI", "http://testserver/oauth2/callback/google")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from civicdesk.auth.google import GoogleOAuthClient  # noqa: E402
from civicdesk.auth.service import AuthService  # noqa: E402
from civicdesk.auth.session import InMemorySessionStore, SessionManager  # noqa: E402
from civicdesk.auth.state import StateTokenManager  # noqa: E402
from civicdesk.db.users import UserRepository  # noqa: E402
from civicdesk.models.base import Base  # noqa: E402

TEST_CLIENT_ID = os.environ["GOOGLE_CLIENT_ID"]


class FakeGoogle:
    """
    Scriptable stand-in for Google's token, userinfo and tokeninfo endpoints.

    Each endpoint answers with ``(status, body)``; a ``str`` body is sent
    as raw text. Setting ``fail_with`` makes every call raise instead.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_with: Exception | None = None
        self.token: tuple[int, Any] = (
            200,
            {"access_token": "ya29.test-access-token", "token_type": "Bearer", "expires_in": 3599},
        )
        self.userinfo: tuple[int, Any] = (
            200,
            {
                "sub": "110248495921238986420",
                "email": "jane.doe@example.com",
                "email_verified": True,
                "name": "Jane Doe",
                "picture": "https://lh3.googleusercontent.com/a/jane",
            },
        )
        self.tokeninfo: tuple[int, Any] = (
            200,
            {
                "aud": TEST_CLIENT_ID,
                "sub": "110248495921238986420",
                "email": "jane.doe@example.com",
                "email_verified": "true",
                "name": "Jane Doe",
                "picture": "https://lh3.googleusercontent.com/a/jane",
            },
        )

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with

        routes = {
            "/token": self.token,
            "/v1/userinfo": self.userinfo,
            "/tokeninfo": self.tokeninfo,
        }
        if request.url.path not in routes:
            return httpx.Response(404, text="not found")
        status_code, body = routes[request.url.path]
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def google_client(fake_google: FakeGoogle) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id=TEST_CLIENT_ID,
        client_secret="test-client-secret",
        redirect_uri="http://testserver/oauth2/callback/google",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_google)),
    )


@pytest_asyncio.fixture
async def db_session():
    """Database session over a fresh in-memory SQLite schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def users(db_session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def sessions(session_store: InMemorySessionStore) -> SessionManager:
    return SessionManager(session_store)


@pytest.fixture
def states() -> StateTokenManager:
    return StateTokenManager(ttl_seconds=600)


@pytest.fixture
def auth_service(
    users: UserRepository,
    sessions: SessionManager,
    states: StateTokenManager,
    google_client: GoogleOAuthClient,
) -> AuthService:
    return AuthService(users=users, sessions=sessions, states=states, google=google_client)


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "security: mark test as security-related")
    config.addinivalue_line("markers", "redteam: mark test as an attack-scenario test")


@pytest.fixture
def client(tmp_path, google_client: GoogleOAuthClient):
    """
    TestClient over the real app with a file-backed SQLite database and a
    fake Google.

    Source: https://fastapi.tiangolo.com/advanced/testing-dependencies/
    """
    from fastapi.testclient import TestClient
    from sqlalchemy import create_engine
    from sqlalchemy.pool import NullPool

    from civicdesk.api.deps import get_google_client
    from civicdesk.api.main import app
    from civicdesk.db.connection import get_session

    db_path = tmp_path / "civicdesk.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    session_maker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_google_client] = lambda: google_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
