"""
FastAPI Dependencies
Dependency injection for sessions, the user store and the sign-in service
Source: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from fastapi import Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from civicdesk.api.config import Settings, get_settings
from civicdesk.auth.google import GoogleOAuthClient
from civicdesk.auth.service import AuthService
from civicdesk.auth.session import AuthSession, SessionManager
from civicdesk.auth.state import StateTokenManager
from civicdesk.db.connection import get_session
from civicdesk.db.users import UserRepository
from civicdesk.models.user import User
from civicdesk.utils.errors import AuthenticationError, AuthFlowError, ProviderError, TransportError
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)


def get_session_manager(request: Request) -> SessionManager:
    """Session manager over the store created in the app lifespan."""
    return SessionManager(request.app.state.session_store)


def get_google_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.google_client


def get_state_manager(settings: Settings = Depends(get_settings)) -> StateTokenManager:
    return StateTokenManager(ttl_seconds=settings.OAUTH_STATE_TTL_SECONDS)


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    sessions: SessionManager = Depends(get_session_manager),
    states: StateTokenManager = Depends(get_state_manager),
    google: GoogleOAuthClient = Depends(get_google_client),
) -> AuthService:
    return AuthService(users=users, sessions=sessions, states=states, google=google)


async def get_auth_session(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> AuthSession:
    """
    Session record named by the request's cookie.

    A missing or unknown cookie gives a new anonymous record; it is only
    stored once a route saves it.
    """
    return await sessions.load(request.cookies.get(settings.SESSION_COOKIE_NAME))


async def get_current_user(
    auth_session: AuthSession = Depends(get_auth_session),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Signed-in user, re-read from the database.

    Raises:
        AuthenticationError: anonymous session, or the user no longer
            exists under the name the session remembers
    """
    identity = SessionManager.current_identity(auth_session)
    if identity is None:
        raise AuthenticationError("Not authenticated")

    user = await users.get_by_id(identity.user_id)
    if user is None or user.username != identity.username:
        raise AuthenticationError("Session no longer matches a user")
    return user


def set_session_cookie(response: Response, session: AuthSession, settings: Settings) -> None:
    """Point the browser at ``session``."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def session_redirect(url: str, session: AuthSession, settings: Settings) -> RedirectResponse:
    """303 to ``url`` carrying the session cookie."""
    response = RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, session, settings)
    return response


def log_flow_failure(error: AuthFlowError, action: str) -> None:
    """Provider trouble is worth a warning; everything else is the user's input."""
    if isinstance(error, (TransportError, ProviderError)):
        logger.warning(f"{action} failed: {type(error).__name__}: {error}")
    else:
        logger.info(f"{action} rejected: {type(error).__name__}: {error}")
