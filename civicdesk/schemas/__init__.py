"""
Pydantic Schemas for CivicDesk.
"""

from civicdesk.schemas.auth import AuthResult, FederatedClaims, IdTokenRequest, TokenResponse
from civicdesk.schemas.user import RegistrationForm, UserResponse

__all__ = [
    "AuthResult",
    "FederatedClaims",
    "IdTokenRequest",
    "TokenResponse",
    "RegistrationForm",
    "UserResponse",
]
