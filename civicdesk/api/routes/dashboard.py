"""
Dashboard Route
Landing page for signed-in users
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from civicdesk.api.config import Settings, get_settings
from civicdesk.api.deps import get_auth_session, get_session_manager, session_redirect
from civicdesk.auth.session import AuthSession, SessionManager

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=None)
async def dashboard(
    auth_session: AuthSession = Depends(get_auth_session),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse | JSONResponse:
    """Anonymous visitors are sent to the login page; the session is trusted as is."""
    identity = SessionManager.current_identity(auth_session)
    if identity is None:
        return session_redirect("/login", auth_session, settings)

    message = auth_session.pop_flash()
    if message is not None:
        await sessions.save(auth_session)
    return JSONResponse(
        {
            "page": "dashboard",
            "username": identity.username,
            "user_id": identity.user_id,
            "message": message,
        }
    )
