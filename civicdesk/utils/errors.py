"""
Custom Exceptions
Application-specific error handling
Source: https://fastapi.tiangolo.com/tutorial/handling-errors/

Two families live here. The HTTP errors are raised from dependencies of
JSON routes and rendered by FastAPI directly. The sign-in flow errors are
plain exceptions: the routes catch them and turn them into a redirect with
a flash message or a ``{"success": false}`` payload.
"""

from fastapi import HTTPException, status


class AuthenticationError(HTTPException):
    """Raised when authentication fails"""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


# ============================================================================
# Sign-in flow errors
# ============================================================================


class AuthFlowError(Exception):
    """
    Base class for recoverable login, registration and federation failures.

    Attributes:
        user_message: Text safe to show the end user
    """

    user_message = "Sign-in failed, please try again"

    def __init__(self, message: str | None = None, user_message: str | None = None):
        super().__init__(message or user_message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(AuthFlowError):
    """Malformed or missing input, or a username/email that is already taken."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class InvalidCredentialsError(ValidationError):
    """Username/password pair did not match a stored credential."""

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class CsrfError(AuthFlowError):
    """State token missing, mismatched, expired or already consumed."""

    user_message = "Invalid state (possible CSRF). Please sign in again."


class TransportError(AuthFlowError):
    """The identity provider could not be reached or sent an unreadable body."""

    user_message = "Verification failed, try again"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ProviderError(AuthFlowError):
    """The identity provider answered but rejected the request or sent an unusable payload."""

    user_message = "Verification failed, try again"

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FederationDeniedError(ProviderError):
    """The provider redirected back with an ``error`` parameter (user cancelled, access denied)."""

    def __init__(self, error: str):
        super().__init__(f"Provider returned error: {error}")
        self.error = error
        self.user_message = f"Google returned error: {error}"


class IdentityError(AuthFlowError):
    """Claims arrived but cannot be trusted: missing or unverified email, wrong audience."""

    user_message = "Email not verified with provider"
