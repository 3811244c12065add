"""
Google OAuth2 Routes
Start and finish the authorization-code redirect
Source: https://developers.google.com/identity/protocols/oauth2/web-server#httprest
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

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
from civicdesk.utils.errors import AuthFlowError

router = APIRouter(prefix="/oauth2", tags=["Google Sign-In"])


@router.get("/authorize/google")
async def authorize_google(
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    url = await service.begin_federation(auth_session)
    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    set_session_cookie(response, auth_session, settings)
    return response


@router.get("/callback/google")
async def google_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    auth_session: AuthSession = Depends(get_auth_session),
    service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Google's redirect target.

    Any failure lands on the login page with a message; the session stays
    anonymous and its pending state is gone either way.
    """
    try:
        established = await service.complete_federation(auth_session, code, state, error)
    except AuthFlowError as e:
        log_flow_failure(e, "Google sign-in")
        auth_session.flash = e.user_message
        await sessions.save(auth_session)
        return session_redirect("/login", auth_session, settings)

    return session_redirect("/dashboard", established, settings)
