"""
Authentication Routes
Password login, registration, logout and Google ID-token sign-in
Source: https://cheatsheetseries.owasp.org/cheatsheets/Authentication_Cheat_Sheet.html

Browser routes answer with a 303 redirect and leave any message in the
session flash. ``POST /auth/google`` is called from script and answers
with ``{"success": ..., "message": ...}``.
"""

from typing import Any

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse, RedirectResponse

from civicdesk.api.config import Settings, get_settings
from civicdesk.api.deps import (
    get_auth_service,
    get_auth_session,
    get_session_manager,
    log_flow_failure,
    session_redirect,
    set_session_cookie,
)
from civicdesk.auth.service import AuthService
from civicdesk.auth.session import AuthSession, SessionManager
from civicdesk.schemas.auth import AuthResult, IdTokenRequest
from civicdesk.utils.errors import (
    AuthFlowError,
    CsrfError,
    IdentityError,
    ProviderError,
    TransportError,
)
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Authentication"])

GOOGLE_LOGIN_PATH = "/oauth2/authorize/google"


def _failure_status(error: AuthFlowError) -> int:
    if isinstance(error, (TransportError, ProviderError)):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(error, (IdentityError, CsrfError)):
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_400_BAD_REQUEST


@router.get("/login", response_model=None)
async def login_page(
    auth_session: AuthSession = Depends(get_auth_session),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse | JSONResponse:
    """
    Login page. Signed-in users go straight to the dashboard.

    The pending flash message is shown once and then dropped.
    """
    if auth_session.is_authenticated:
        return session_redirect("/dashboard", auth_session, settings)

    message = auth_session.pop_flash()
    if message is not None:
        await sessions.save(auth_session)
    response = JSONResponse(
        {
            "page": "login",
            "message": message,
            "google_login_url": GOOGLE_LOGIN_PATH,
            "register_url": "/register",
        }
    )
    set_session_cookie(response, auth_session, settings)
    return response


@router.post("/login")
async def login(
    username: str = Form(default=""),
    password: str = Form(default=""),
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Check username and password; dashboard on success, back to the form otherwise."""
    try:
        established = await service.password_login(auth_session, username, password)
    except AuthFlowError as e:
        log_flow_failure(e, "Password login")
        auth_session.flash = e.user_message
        await sessions.save(auth_session)
        return session_redirect("/login", auth_session, settings)

    return session_redirect("/dashboard", established, settings)


@router.get("/register", response_model=None)
async def register_page(
    auth_session: AuthSession = Depends(get_auth_session),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Registration form description with any pending message."""
    message = auth_session.pop_flash()
    if message is not None:
        await sessions.save(auth_session)
    response = JSONResponse(
        {
            "page": "register",
            "message": message,
            "fields": ["username", "email", "number", "password"],
        }
    )
    set_session_cookie(response, auth_session, settings)
    return response


@router.post("/register")
async def register(
    username: str = Form(default=""),
    email: str = Form(default=""),
    number: str = Form(default=""),
    password: str = Form(default=""),
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Create a password account.

    Success sends the user to the login form; registration does not sign in.
    """
    try:
        user = await service.register(username, email, number, password)
    except AuthFlowError as e:
        log_flow_failure(e, "Registration")
        auth_session.flash = e.user_message
        await sessions.save(auth_session)
        return session_redirect("/register", auth_session, settings)

    auth_session.flash = f"Account {user.username} created, please sign in"
    await sessions.save(auth_session)
    return session_redirect("/login", auth_session, settings)


@router.get("/logout")
async def logout(
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Drop the whole session and start an anonymous one."""
    fresh = await service.logout(auth_session)
    fresh.flash = "You have been signed out"
    await sessions.save(fresh)
    return session_redirect("/login", fresh, settings)


@router.post("/auth/google", response_model=AuthResult)
async def google_id_token(
    payload: IdTokenRequest,
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Sign in with an ID token from Google Identity Services.

    Body: ``{"idToken": "..."}``.
    """
    try:
        established = await service.federate_id_token(auth_session, payload.id_token)
    except AuthFlowError as e:
        log_flow_failure(e, "ID token sign-in")
        body: dict[str, Any] = AuthResult(success=False, message=e.user_message).model_dump()
        return JSONResponse(body, status_code=_failure_status(e))

    response = JSONResponse(AuthResult(success=True, message="Signed in").model_dump())
    set_session_cookie(response, established, settings)
    return response
