"""
Authentication Service
Password login, registration and Google sign-in for complaint-desk users
Source: https://developers.google.com/identity/openid-connect/openid-connect#authenticatingtheuser

A session moves Anonymous -> PendingFederation -> Authenticated on the
Google path, and Anonymous -> Authenticated on the password path. Every
failure raises an ``AuthFlowError`` subclass and leaves the session
anonymous; the routes decide how to show it.
"""

import re
import secrets
import time
from datetime import UTC, datetime

from pydantic import ValidationError as SchemaValidationError

from civicdesk.auth.accounts import account_for, password_credential
from civicdesk.auth.google import GoogleOAuthClient
from civicdesk.auth.session import AuthSession, SessionManager
from civicdesk.auth.state import StateTokenManager
from civicdesk.db.users import UserRepository
from civicdesk.models.user import User
from civicdesk.schemas.auth import FederatedClaims
from civicdesk.schemas.user import RegistrationForm
from civicdesk.utils.auth import get_password_hash, verify_password
from civicdesk.utils.errors import (
    CsrfError,
    FederationDeniedError,
    IdentityError,
    InvalidCredentialsError,
    ValidationError,
)
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)

_NON_ALNUM_RUNS = re.compile(r"[^a-z0-9]+")
USERNAME_MAX_LENGTH = 90  # leaves room for a numeric suffix within the 100-char column
MAX_SUFFIX_ATTEMPTS = 50


def sanitize_username(raw: str | None) -> str:
    """
    Lowercase, collapse runs of non-alphanumerics to one dot, trim dots.

    Example:
        >>> sanitize_username("  Jane  O'Doe ")
        'jane.o.doe'
    """
    if not raw:
        return ""
    return _NON_ALNUM_RUNS.sub(".", raw.strip().lower()).strip(".")


def derive_username(name: str | None, email: str | None, now_ms: int | None = None) -> str:
    """
    Username candidate for a first-time Google user.

    Display name first, then the email local part, then ``user<digits>``
    built from the clock.
    """
    candidate = sanitize_username(name)
    if not candidate and email:
        candidate = sanitize_username(email.split("@", 1)[0])
    if not candidate:
        millis = now_ms if now_ms is not None else int(time.time() * 1000)
        candidate = f"user{millis % 100000}"
    return candidate[:USERNAME_MAX_LENGTH].rstrip(".")


def _first_form_error(error: SchemaValidationError) -> str:
    detail = error.errors()[0]
    field = ".".join(str(part) for part in detail.get("loc", ()))
    message = detail.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


class AuthService:
    """
    Drives both sign-in paths against the user store and the session.

    One instance serves one request; the repository it holds is bound to
    that request's database session.
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionManager,
        states: StateTokenManager,
        google: GoogleOAuthClient,
    ):
        self.users = users
        self.sessions = sessions
        self.states = states
        self.google = google

    # ------------------------------------------------------------------
    # Password path
    # ------------------------------------------------------------------

    async def register(self, username: str, email: str, number: str, password: str) -> User:
        """
        Create a password account from the registration form.

        Raises:
            ValidationError: a field is missing or malformed, or the
                username/email is already taken
        """
        try:
            form = RegistrationForm(username=username, email=email, number=number, password=password)
        except SchemaValidationError as e:
            raise ValidationError(_first_form_error(e)) from e

        if await self.users.username_exists(form.username):
            raise ValidationError("Username already exists")
        if await self.users.email_exists(form.email):
            raise ValidationError("Email already exists")

        user = User(
            username=form.username,
            email=form.email,
            phone_number=form.number,
            hashed_password=get_password_hash(form.password),
            email_verified=False,
        )
        user = await self.users.add(user)
        logger.info(f"New user registered: {user.username} ({user.email})")
        return user

    async def password_login(
        self, session: AuthSession, username: str | None, password: str | None
    ) -> AuthSession:
        """
        Sign in with username and password.

        Accounts created through Google have no password and never match.

        Raises:
            ValidationError: a field is empty
            InvalidCredentialsError: unknown user or wrong password
        """
        if not username or not username.strip() or not password:
            raise ValidationError("Username and password are required")

        user = await self.users.get_by_username(username.strip().lower())
        credential = password_credential(account_for(user)) if user is not None else None
        if credential is None or not verify_password(password, credential):
            logger.info(f"Password login rejected for {username.strip()!r}")
            raise InvalidCredentialsError()

        return await self._sign_in(session, user, method="password")

    async def logout(self, session: AuthSession) -> AuthSession:
        """Invalidate the whole session; returns a fresh anonymous one."""
        return await self.sessions.clear(session)

    # ------------------------------------------------------------------
    # Google path
    # ------------------------------------------------------------------

    async def begin_federation(self, session: AuthSession) -> str:
        """Bind a new state token to the session and return Google's consent URL."""
        token = self.states.generate()
        self.states.bind(session, token)
        await self.sessions.save(session)
        return self.google.authorization_url(token)

    async def complete_federation(
        self,
        session: AuthSession,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> AuthSession:
        """
        Handle Google's redirect back to us.

        The pending state is cleared and persisted before anything else, and
        the token is then spent in the shared store, so a callback URL cannot
        be replayed, even concurrently. No request reaches Google unless the
        state matched and a code is present.

        Raises:
            FederationDeniedError: Google reported ``error``
            CsrfError: state missing, expired, already spent or different from
                the bound one
            ValidationError: no authorization code
            TransportError, ProviderError: the token or userinfo call failed
            IdentityError: no verified email in the claims
        """
        if error:
            self.states.discard(session)
            await self.sessions.save(session)
            logger.info(f"Google sign-in aborted by provider: {error}")
            raise FederationDeniedError(error)

        state_ok = self.states.consume_and_validate(session, state)
        await self.sessions.save(session)
        if state_ok and not await self.sessions.claim_state(state, self.states.ttl_seconds):
            logger.warning("State token was already spent by a concurrent callback")
            state_ok = False
        if not state_ok:
            raise CsrfError("State token did not match the pending sign-in")
        if not code:
            raise ValidationError("Missing authorization code")

        tokens = await self.google.exchange_code(code)
        claims = await self.google.fetch_claims(tokens.access_token)
        user = await self.reconcile(claims)
        return await self._sign_in(session, user, method="google")

    async def federate_id_token(self, session: AuthSession, id_token: str | None) -> AuthSession:
        """
        Sign in with an ID token the browser got from Google Identity Services.

        Raises:
            ValidationError: no token supplied
            TransportError, ProviderError: tokeninfo call failed or rejected the token
            IdentityError: token issued to another client, or email unverified
        """
        if not id_token or not id_token.strip():
            raise ValidationError("Missing idToken")

        claims = await self.google.fetch_token_info(id_token.strip())
        if claims.aud != self.google.client_id:
            logger.warning(f"ID token audience mismatch: {claims.aud!r}")
            raise IdentityError(
                "ID token audience mismatch",
                user_message="Google token was not issued for this application",
            )

        user = await self.reconcile(claims)
        return await self._sign_in(session, user, method="google-id-token")

    async def reconcile(self, claims: FederatedClaims) -> User:
        """
        Map verified Google claims onto a local user.

        An existing account with the same email gets its Google subject,
        picture and verified flag refreshed; username and password are
        never touched. When no account has the email but one already holds
        the Google subject, Google changed the address: that account takes
        the new email. Otherwise a password-less account is created.

        Raises:
            IdentityError: email missing or not verified, or the subject is
                linked to a different account than the email
        """
        if not claims.email:
            raise IdentityError("Claims carry no email", user_message="Google account has no email")
        if not claims.email_verified:
            logger.info(f"Google email not verified: {claims.email}")
            raise IdentityError(f"Email {claims.email} is not verified")

        user = await self.users.get_by_email(claims.email)
        if claims.sub:
            holder = await self.users.get_by_google_id(claims.sub)
            if user is None and holder is not None:
                logger.info(f"Google address of {holder.username} changed to {claims.email}")
                holder.email = claims.email
                user = holder
            elif user is not None and holder is not None and holder.id != user.id:
                logger.warning(
                    f"Google subject of {claims.email} is already linked to {holder.username} (id={holder.id})"
                )
                raise IdentityError(
                    "Google subject linked to a different user",
                    user_message="This Google account is already linked to another user",
                )

        if user is not None:
            user.google_id = claims.sub
            user.picture_url = claims.picture
            user.email_verified = True
            await self.users.save(user)
            logger.info(f"Linked Google identity to existing user {user.username} (id={user.id})")
            return user

        username = await self._available_username(derive_username(claims.name, claims.email))
        user = User(
            username=username,
            email=claims.email,
            phone_number="",
            hashed_password=None,
            google_id=claims.sub,
            picture_url=claims.picture,
            email_verified=True,
        )
        return await self.users.add(user)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _available_username(self, candidate: str) -> str:
        if not await self.users.username_exists(candidate):
            return candidate
        for n in range(2, MAX_SUFFIX_ATTEMPTS + 2):
            alternative = f"{candidate}{n}"
            if not await self.users.username_exists(alternative):
                return alternative
        return f"{candidate}.{secrets.token_hex(3)}"

    async def _sign_in(self, session: AuthSession, user: User, method: str) -> AuthSession:
        user.last_login = datetime.now(UTC)
        await self.users.save(user)
        established = await self.sessions.establish(session, user)
        logger.info(f"User logged in via {method}: {user.username}")
        return established
