"""
Authenticated request driver for the apaleo REST API.

Wraps httpx with bearer-token injection, access-token rejection detection and
a single-flight refresh: however many concurrent requests see an expired token,
the token endpoint is called once and every caller retries with the new token.
"""

import asyncio
import logging
import time
from typing import Any, Protocol

import httpx

from apaleo_connect_mcp.auth.token_authority import TokenAuthority
from apaleo_connect_mcp.auth.token_store import TokenStore
from apaleo_connect_mcp.models.common import Credentials, RequestSpec, TokenPair
from apaleo_connect_mcp.utils.exceptions import (
    AuthExpiredError,
    ConfigError,
    NotFoundError,
    RateLimitError,
    RequestError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.apaleo.com"
USER_AGENT = "Apaleo-Connect-MCP/0.1.0 (httpx)"

# Body error codes apaleo and its identity server use for rejected bearer tokens
TOKEN_REJECTION_CODES = frozenset({"invalid_token", "token_expired"})


class RequestExecutor(Protocol):
    """Capability the resource gateway needs from a driver."""

    async def execute(self, spec: RequestSpec) -> Any: ...


class AuthenticatedRequestDriver:
    """
    Executes API requests on behalf of one set of client credentials.

    Features:
    - Bearer token injection from the in-memory token pair
    - Proactive refresh when the token is missing or about to expire
    - Single-flight refresh shared by all concurrent callers
    - Exactly one retry after a refresh, then AuthExpiredError
    - Fire-and-forget persistence of refreshed tokens
    - Structured errors for every non-2xx response
    """

    def __init__(
        self,
        credentials: Credentials,
        token_authority: TokenAuthority,
        tokens: TokenPair | None = None,
        token_store: TokenStore | None = None,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout: float = 30.0,
        token_expiry_skew: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the request driver.

        Args:
            credentials: OAuth client credentials
            token_authority: Exchanges refresh tokens for new token pairs
            tokens: Initial token pair (access token may be empty)
            token_store: Optional mirror written after every refresh
            base_url: apaleo API base URL
            request_timeout: Read timeout for API requests in seconds
            token_expiry_skew: Refresh this many seconds before expiry, capped
                at half the lifetime of the current token
            http_client: Optional preconfigured client; not closed by the driver

        Raises:
            ConfigError: If client_id or client_secret is missing
        """
        missing = credentials.missing_fields()
        if missing:
            raise ConfigError(
                f"apaleo client credentials missing: {', '.join(missing)}",
                details={"missing": missing},
            )

        self.credentials = credentials
        self.token_authority = token_authority
        self.token_store = token_store
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.token_expiry_skew = token_expiry_skew

        self._tokens = tokens or TokenPair()
        self._refresh_task: asyncio.Task[TokenPair] | None = None
        self._pending_saves: set[asyncio.Task[None]] = set()
        self._persist_lock = asyncio.Lock()
        self._persisted_tokens: TokenPair | None = None
        self._expiry_skew = token_expiry_skew
        self._refresh_count = 0

        self._session = http_client
        self._owns_session = http_client is None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self) -> "AuthenticatedRequestDriver":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def tokens(self) -> TokenPair:
        """Current in-memory token pair."""
        return self._tokens

    async def _ensure_session(self) -> httpx.AsyncClient:
        if self._session is None:
            async with self._session_lock:
                if self._session is None:  # Double-check pattern
                    self._session = httpx.AsyncClient(
                        base_url=self.base_url,
                        timeout=httpx.Timeout(
                            connect=10.0,
                            read=self.request_timeout,
                            write=10.0,
                            pool=5.0,
                        ),
                        http2=True,
                        follow_redirects=True,
                        headers={"User-Agent": USER_AGENT},
                    )
                    logger.debug(
                        "HTTP session initialized",
                        extra={"base_url": self.base_url},
                    )
        return self._session

    async def flush_token_store(self) -> None:
        """Wait for pending token persistence writes."""
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves))

    async def close(self) -> None:
        """Flush token writes and close the HTTP session if the driver owns it."""
        await self.flush_token_store()
        if self._session is not None and self._owns_session:
            try:
                await self._session.aclose()
                logger.debug("HTTP session closed successfully")
            finally:
                self._session = None

    def get_token_info(self) -> dict[str, Any]:
        """Token status summary for health reporting. Never includes token values."""
        tokens = self._tokens
        expires_in = tokens.expires_in()
        if not tokens.access_token:
            status = "missing"
        elif expires_in is None:
            status = "unknown"
        elif expires_in <= 0:
            status = "expired"
        elif expires_in <= self._expiry_skew:
            status = "expiring_soon"
        else:
            status = "valid"

        return {
            "has_token": bool(tokens.access_token),
            "has_refresh_token": bool(tokens.refresh_token),
            "status": status,
            "expires_in": int(expires_in) if expires_in is not None else None,
            "refresh_count": self._refresh_count,
            "refresh_in_progress": self._refresh_task is not None,
        }

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make an authenticated GET request."""
        return await self.execute(RequestSpec(method="GET", path=path, params=params or {}))

    async def execute(self, spec: RequestSpec) -> Any:
        """
        Execute ``spec`` with the current access token.

        Returns:
            Parsed JSON body ({} for an empty 2xx body)

        Raises:
            AuthExchangeError: If a needed token refresh is rejected
            AuthExpiredError: If the token is rejected again after a refresh
            RequestError: For any other non-2xx response or transport failure
        """
        access_token = self._tokens.access_token
        if self._tokens.is_expired(self._expiry_skew):
            access_token = await self._refresh_access_token(access_token)

        response = await self._send(spec, access_token)

        if self._is_token_rejected(response):
            logger.info(
                f"Access token rejected for {spec.method} {spec.path}, refreshing",
                extra={"method": spec.method, "path": spec.path},
            )
            access_token = await self._refresh_access_token(access_token)
            response = await self._send(spec, access_token)

            if self._is_token_rejected(response):
                logger.error(
                    f"Access token rejected again after refresh: {spec.method} {spec.path}"
                )
                raise AuthExpiredError(
                    "apaleo rejected a freshly refreshed access token; "
                    "the refresh token or client credentials need to be renewed",
                    details={"method": spec.method, "path": spec.path},
                )

        return self._handle_response(spec, response)

    async def _refresh_access_token(self, stale_access_token: str) -> str:
        """
        Return a usable access token, refreshing at most once per stale token.

        A caller whose token was already replaced by another caller's refresh
        gets the new token without a second exchange.
        """
        current = self._tokens
        if current.access_token != stale_access_token and not current.is_expired(
            self._expiry_skew
        ):
            return current.access_token

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._exchange_tokens())
            self._refresh_task.add_done_callback(self._on_refresh_done)

        # Shielded so a cancelled caller does not cancel the shared refresh
        tokens = await asyncio.shield(self._refresh_task)
        return tokens.access_token

    async def _exchange_tokens(self) -> TokenPair:
        logger.info("Refreshing apaleo access token")
        tokens = await self.token_authority.exchange(
            self.credentials, self._tokens.refresh_token
        )
        self._tokens = tokens
        self._refresh_count += 1
        self._expiry_skew = self._skew_for(tokens)
        logger.info(
            "Access token refreshed",
            extra={
                "refresh_count": self._refresh_count,
                "expires_in": tokens.expires_in(),
            },
        )
        self._schedule_persist()
        return tokens

    def _on_refresh_done(self, task: asyncio.Task[TokenPair]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Access token refresh failed: {task.exception()}")

    def _skew_for(self, tokens: TokenPair) -> float:
        """Expiry skew for ``tokens``, at most half of the token's lifetime."""
        lifetime = tokens.expires_in()
        if lifetime is None:
            return self.token_expiry_skew
        return min(self.token_expiry_skew, max(lifetime, 0.0) / 2)

    def _schedule_persist(self) -> None:
        if self.token_store is None:
            return
        task = asyncio.create_task(self._persist())
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _persist(self) -> None:
        # Saves run one at a time and always write the newest pair, so a slow
        # earlier save can never overwrite a later refresh in the store
        async with self._persist_lock:
            tokens = self._tokens
            if tokens == self._persisted_tokens:
                return
            try:
                await self.token_store.save(tokens)
            except Exception as e:
                # Persistence is best-effort; the in-memory pair stays authoritative
                logger.warning(
                    f"Failed to persist refreshed tokens: {e}",
                    extra={"error_type": type(e).__name__},
                )
            else:
                self._persisted_tokens = tokens

    async def _send(self, spec: RequestSpec, access_token: str) -> httpx.Response:
        session = await self._ensure_session()
        url = f"{self.base_url}/{spec.path.lstrip('/')}"
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }

        logger.info(
            f"API Request: {spec.method} {url}",
            extra={"method": spec.method, "url": url, "params": spec.params},
        )

        start = time.time()
        try:
            response = await session.request(
                spec.method,
                url,
                params=spec.params or None,
                json=spec.json_data,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {spec.method} {url}",
                details={"url": url, "error_type": type(e).__name__},
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"Request failed: {spec.method} {url}: {e}",
                details={"url": url, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start) * 1000
        log_data = {
            "method": spec.method,
            "url": url,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
        if response.status_code >= 400:
            logger.warning(
                f"API Error Response: {spec.method} {url} - {response.status_code}",
                extra=log_data,
            )
        else:
            logger.info(
                f"API Response: {spec.method} {url} - {response.status_code}",
                extra=log_data,
            )
        return response

    @staticmethod
    def _is_token_rejected(response: httpx.Response) -> bool:
        """
        Distinguish an expired/invalid access token from other 401s.

        apaleo signals a rejected bearer token with
        ``WWW-Authenticate: Bearer error="invalid_token"``; some gateways put the
        code in the JSON body instead.
        """
        if response.status_code != 401:
            return False

        challenge = response.headers.get("WWW-Authenticate", "")
        if "invalid_token" in challenge:
            return True

        try:
            body = response.json() if response.content else None
        except ValueError:
            return False
        if isinstance(body, dict):
            code = body.get("error") or body.get("code")
            return isinstance(code, str) and code.lower() in TOKEN_REJECTION_CODES
        return False

    def _handle_response(self, spec: RequestSpec, response: httpx.Response) -> Any:
        """
        Convert a response into a parsed body or a structured error.

        Raises:
            NotFoundError: For 404
            RateLimitError: For 429
            RequestError: For every other non-2xx status
        """
        status_code = response.status_code

        if 200 <= status_code < 300:
            # apaleo answers empty collections with 204 No Content
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise RequestError(
                    f"Invalid JSON in {status_code} response from {spec.path}",
                    status_code=status_code,
                    body=response.text[:500],
                ) from e

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = response.text[:500] or None

        error_msg = f"HTTP {status_code}"
        if isinstance(body, dict):
            error_msg = (
                body.get("error_description")
                or body.get("message")
                or body.get("detail")
                or body.get("title")
                or body.get("error")
                or error_msg
            )

        details = {
            "status_code": status_code,
            "method": spec.method,
            "path": spec.path,
            "params": spec.params,
        }

        if status_code == 404:
            raise NotFoundError(
                f"Resource not found: {spec.path}: {error_msg}",
                status_code=status_code,
                body=body,
                details=details,
            )
        if status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded: {error_msg}",
                status_code=status_code,
                body=body,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                details=details,
            )
        raise RequestError(
            f"apaleo API error {status_code} on {spec.method} {spec.path}: {error_msg}",
            status_code=status_code,
            body=body,
            details=details,
        )

