"""
Google OAuth2 Client
Authorization-code exchange and identity claims for Google sign-in
Source: https://developers.google.com/identity/protocols/oauth2/web-server
"""

from typing import Any, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from civicdesk.api.config import Settings
from civicdesk.schemas.auth import FederatedClaims, TokenResponse
from civicdesk.utils.errors import ProviderError, TransportError
from civicdesk.utils.logging import get_logger, redact

logger = get_logger(__name__)

# Enough of an error body to diagnose, not enough to flood the log
MAX_LOGGED_BODY = 500

ModelT = TypeVar("ModelT", bound=BaseModel)


class GoogleOAuthClient:
    """
    Outbound calls of the Google sign-in flow.

    Every call either returns a parsed payload or raises:

    - ``TransportError`` when Google could not be reached, the request
      timed out, or the body is not a JSON object;
    - ``ProviderError`` when Google answered with a non-2xx status or left
      out or mistyped a field.

    Nothing is retried here.

    Example:
        >>> client = GoogleOAuthClient.from_settings(settings)
        >>> tokens = await client.exchange_code(code)
        >>> claims = await client.fetch_claims(tokens.access_token)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth",
        token_url: str = "https://oauth2.googleapis.com/token",
        userinfo_url: str = "https://openidconnect.googleapis.com/v1/userinfo",
        tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
        scopes: str = "openid email profile",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.auth_url = auth_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url
        self.tokeninfo_url = tokeninfo_url
        self.scopes = scopes
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> "GoogleOAuthClient":
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            redirect_uri=settings.GOOGLE_REDIRECT_URI,
            auth_url=settings.GOOGLE_AUTH_URL,
            token_url=settings.GOOGLE_TOKEN_URL,
            userinfo_url=settings.GOOGLE_USERINFO_URL,
            tokeninfo_url=settings.GOOGLE_TOKENINFO_URL,
            scopes=settings.GOOGLE_SCOPES,
            timeout_seconds=settings.OAUTH_HTTP_TIMEOUT_SECONDS,
            http_client=http_client,
        )

    def authorization_url(self, state: str) -> str:
        """
        Build the consent-screen URL for one sign-in attempt.

        ``prompt=select_account consent`` makes Google show the account
        chooser even when the browser is already signed in.
        """
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "scope": self.scopes,
            "redirect_uri": self.redirect_uri,
            "state": state,
            "prompt": "select_account consent",
            "access_type": "offline",
        }
        return f"{self.auth_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenResponse:
        """
        Trade an authorization code for tokens.

        Raises:
            ProviderError: non-2xx status, or no access_token in the response
            TransportError: network failure or unreadable body
        """
        response = await self._send(
            "POST",
            self.token_url,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        self._check_status(response, "token")
        tokens = self._parse(TokenResponse, response, "token")

        if not tokens.access_token:
            logger.warning("Token endpoint answered without an access_token")
            raise ProviderError(
                "Token response did not contain an access_token",
                status_code=response.status_code,
                body=response.text[:MAX_LOGGED_BODY],
            )

        logger.debug(f"Exchanged code {redact(code)} for tokens (scope={tokens.scope})")
        return tokens

    async def fetch_claims(self, access_token: str) -> FederatedClaims:
        """
        Read the signed-in user's claims from the userinfo endpoint.

        Raises:
            ProviderError: non-2xx status
            TransportError: network failure or unreadable body
        """
        response = await self._send(
            "GET",
            self.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )
        self._check_status(response, "userinfo")
        return self._parse(FederatedClaims, response, "userinfo")

    async def fetch_token_info(self, id_token: str) -> FederatedClaims:
        """
        Have Google validate an ID token obtained by the browser and return its claims.

        The caller is responsible for checking ``aud`` against the client id.

        Raises:
            ProviderError: token rejected (Google answers 400 for bad tokens)
            TransportError: network failure or unreadable body
        """
        response = await self._send("GET", self.tokeninfo_url, params={"id_token": id_token})
        self._check_status(response, "tokeninfo")
        return self._parse(FederatedClaims, response, "tokeninfo")

    async def close(self) -> None:
        await self._http_client.aclose()
        logger.info("Google OAuth client closed")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http_client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"Google request timed out: {method} {url}")
            raise TransportError(f"Request to {url} timed out", original_error=e) from e
        except httpx.HTTPError as e:
            logger.warning(f"Google request failed: {method} {url}: {e!r}")
            raise TransportError(f"Request to {url} failed: {e}", original_error=e) from e

    @staticmethod
    def _check_status(response: httpx.Response, endpoint: str) -> None:
        if response.is_success:
            return
        body = response.text[:MAX_LOGGED_BODY]
        logger.warning(f"Google {endpoint} endpoint returned {response.status_code}: {body}")
        raise ProviderError(
            f"{endpoint} endpoint returned {response.status_code}",
            status_code=response.status_code,
            body=body,
        )

    @staticmethod
    def _json_object(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Google {endpoint} endpoint sent a non-JSON body")
            raise TransportError(f"Malformed {endpoint} response", original_error=e) from e
        if not isinstance(payload, dict):
            logger.warning(f"Google {endpoint} endpoint sent {type(payload).__name__}, not an object")
            raise TransportError(f"Malformed {endpoint} response")
        return payload

    @classmethod
    def _parse(cls, model: type[ModelT], response: httpx.Response, endpoint: str) -> ModelT:
        payload = cls._json_object(response, endpoint)
        try:
            return model.model_validate(payload)
        except SchemaValidationError as e:
            body = response.text[:MAX_LOGGED_BODY]
            logger.warning(f"Google {endpoint} endpoint sent an unusable payload: {e.error_count()} bad field(s)")
            raise ProviderError(
                f"Unusable {endpoint} response",
                status_code=response.status_code,
                body=body,
            ) from e
