"""
OAuth2 token endpoint client for the apaleo identity server.

Encapsulates the refresh-token grant (and the authorization-code bootstrap that
yields the first refresh token). The authority is stateless: it never caches
tokens and never retries, both belong to the request driver.
"""

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode

import httpx

from apaleo_connect_mcp.models.common import Credentials, TokenPair
from apaleo_connect_mcp.utils.exceptions import AuthExchangeError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URL = "https://identity.apaleo.com/connect/token"
DEFAULT_AUTHORIZE_URL = "https://identity.apaleo.com/connect/authorize"


class TokenAuthority(ABC):
    """Exchanges a refresh token for a fresh token pair."""

    @abstractmethod
    async def exchange(self, credentials: Credentials, refresh_token: str) -> TokenPair:
        """
        Trade ``refresh_token`` for a new token pair.

        Raises:
            AuthExchangeError: If the token endpoint rejects the request
        """


class ApaleoTokenAuthority(TokenAuthority):
    """Token authority backed by the apaleo identity server."""

    def __init__(
        self,
        token_url: str = DEFAULT_TOKEN_URL,
        authorize_url: str = DEFAULT_AUTHORIZE_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the token authority.

        Args:
            token_url: OAuth2 token endpoint
            authorize_url: OAuth2 authorization endpoint (code flow)
            timeout: Timeout for token requests in seconds
            http_client: Optional client to use instead of a per-call client
        """
        self.token_url = token_url
        self.authorize_url_base = authorize_url
        self.timeout = timeout
        self._http_client = http_client

    def authorize_url(
        self,
        credentials: Credentials,
        scopes: list[str] | None = None,
        state: str | None = None,
    ) -> str:
        """Build the URL a user visits to grant this client access."""
        query = {
            "response_type": "code",
            "client_id": credentials.client_id or "",
            "redirect_uri": credentials.redirect_uri or "",
            "scope": " ".join(["offline_access", *(scopes or [])]),
        }
        if state:
            query["state"] = state
        return f"{self.authorize_url_base}?{urlencode(query)}"

    async def exchange(self, credentials: Credentials, refresh_token: str) -> TokenPair:
        if not refresh_token:
            raise AuthExchangeError("No refresh token available for token exchange")

        payload = await self._request_token(
            credentials,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        return self._token_pair(payload, fallback_refresh_token=refresh_token)

    async def exchange_code(self, credentials: Credentials, code: str) -> TokenPair:
        """Trade an authorization code for the first token pair."""
        if not code:
            raise AuthExchangeError("Authorization code is empty")

        payload = await self._request_token(
            credentials, {"grant_type": "authorization_code", "code": code}
        )
        return self._token_pair(payload, fallback_refresh_token="")

    async def _request_token(
        self, credentials: Credentials, grant: dict[str, str]
    ) -> dict[str, Any]:
        form = {
            **grant,
            "client_id": credentials.client_id or "",
            "client_secret": credentials.client_secret or "",
            "redirect_uri": credentials.redirect_uri or "",
        }

        logger.info(
            f"Requesting token from {self.token_url}",
            extra={"grant_type": grant["grant_type"]},
        )

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.token_url, data=form)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            raise AuthExchangeError(f"Token request failed: {e}") from e

        if not response.is_success:
            error_data = self._error_body(response)
            description = (
                error_data.get("error_description") or error_data.get("error")
                if isinstance(error_data, dict)
                else None
            ) or f"HTTP {response.status_code}"
            logger.error(
                f"Token endpoint rejected {grant['grant_type']} grant: {description}",
                extra={"status_code": response.status_code},
            )
            raise AuthExchangeError(
                f"Token exchange failed: {description}",
                status_code=response.status_code,
                response_data=error_data,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthExchangeError(
                "Token endpoint returned a non-JSON body",
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthExchangeError(
                "Token endpoint response has no access_token",
                status_code=response.status_code,
                response_data=payload,
            )
        return payload

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text[:500] or None

    @staticmethod
    def _token_pair(payload: dict[str, Any], fallback_refresh_token: str) -> TokenPair:
        expires_in = payload.get("expires_in")
        expires_at = None
        if expires_in is not None:
            try:
                expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in))
            except (TypeError, ValueError, OverflowError) as e:
                raise AuthExchangeError(
                    f"Token endpoint returned an invalid expires_in: {expires_in!r}",
                    response_data={"expires_in": expires_in},
                ) from e
        return TokenPair(
            access_token=payload["access_token"],
            # Keep the current refresh token when the server does not rotate it
            refresh_token=payload.get("refresh_token") or fallback_refresh_token,
            expires_at=expires_at,
        )
