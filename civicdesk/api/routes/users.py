"""
User Routes
Profile of the signed-in user
Source: https://fastapi.tiangolo.com/tutorial/response-model/
"""

from fastapi import APIRouter, Depends

from civicdesk.api.deps import get_current_user
from civicdesk.auth.accounts import account_for, password_credential
from civicdesk.models.user import User
from civicdesk.schemas.user import UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Get the signed-in user's profile. The password hash never leaves the server."""
    account = account_for(current_user)
    return UserResponse(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
        phone_number=current_user.phone_number,
        picture_url=current_user.picture_url,
        email_verified=current_user.email_verified,
        has_password=password_credential(account) is not None,
        google_linked=current_user.google_id is not None,
        created_at=current_user.created_at,
        last_login=current_user.last_login,
    )
