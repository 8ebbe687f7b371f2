"""
Unit tests for AuthenticatedRequestDriver.

Tests bearer injection, access-token rejection handling, the single-flight
refresh, token persistence and error mapping.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from apaleo_connect_mcp.auth.token_store import MemoryTokenStore, TokenStore
from apaleo_connect_mcp.clients.request_driver import AuthenticatedRequestDriver
from apaleo_connect_mcp.models.common import Credentials, RequestSpec, TokenPair
from apaleo_connect_mcp.utils.exceptions import (
    AuthExchangeError,
    AuthExpiredError,
    ConfigError,
    NotFoundError,
    RateLimitError,
    RequestError,
    TransportError,
)
from tests.fakes import (
    API_BASE_URL,
    FakeTokenAuthority,
    RecordingHandler,
    accept_tokens,
    token_rejected,
)


class FailingTokenStore(TokenStore):
    async def load(self) -> TokenPair | None:
        return None

    async def save(self, tokens: TokenPair) -> None:
        raise OSError("disk full")


def make_driver(
    credentials: Credentials,
    handler: RecordingHandler,
    authority: FakeTokenAuthority | None = None,
    tokens: TokenPair | None = None,
    token_store: TokenStore | None = None,
) -> AuthenticatedRequestDriver:
    return AuthenticatedRequestDriver(
        credentials=credentials,
        token_authority=authority or FakeTokenAuthority(),
        tokens=tokens or TokenPair(access_token="at-0", refresh_token="rt-1"),
        token_store=token_store,
        base_url=API_BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestConstruction:
    """Credential validation happens before any request."""

    @pytest.mark.parametrize(
        "client_id,client_secret",
        [(None, "secret"), ("client", None), ("", "secret"), (None, None)],
    )
    def test_missing_credentials_raise_config_error(self, client_id, client_secret):
        handler = RecordingHandler(accept_tokens("at-0"))

        with pytest.raises(ConfigError) as exc_info:
            make_driver(
                Credentials(client_id=client_id, client_secret=client_secret),
                handler,
            )

        assert "credentials missing" in str(exc_info.value)
        assert handler.requests == []


class TestExecute:
    """Requests with a valid token."""

    @pytest.mark.asyncio
    async def test_fresh_token_issues_exactly_one_request(self, credentials):
        handler = RecordingHandler(accept_tokens("at-0", body={"count": 1}))
        authority = FakeTokenAuthority()
        driver = make_driver(credentials, handler, authority)

        body = await driver.execute(
            RequestSpec(path="/inventory/v1/properties", params={"status": "Live"})
        )

        assert body == {"count": 1}
        assert len(handler.requests) == 1
        assert authority.calls == []
        request = handler.requests[0]
        assert request.headers["Authorization"] == "Bearer at-0"
        assert request.url.path == "/inventory/v1/properties"
        assert request.url.params["status"] == "Live"

    @pytest.mark.asyncio
    async def test_empty_success_body_returns_empty_dict(self, credentials):
        handler = RecordingHandler(lambda request: httpx.Response(204))
        driver = make_driver(credentials, handler)

        assert await driver.get("/rateplan/v1/services", {"propertyId": "MUC"}) == {}

    @pytest.mark.asyncio
    async def test_missing_access_token_refreshes_before_first_request(
        self, credentials
    ):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority()
        driver = make_driver(
            credentials, handler, authority, tokens=TokenPair(refresh_token="rt-1")
        )

        await driver.get("/account/v1/accounts/current")

        assert len(authority.calls) == 1
        assert handler.tokens_used() == ["at-1"]

    @pytest.mark.asyncio
    async def test_token_near_expiry_is_refreshed_proactively(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority()
        tokens = TokenPair(
            access_token="at-0",
            refresh_token="rt-1",
            expires_at=datetime.now(UTC) + timedelta(seconds=10),
        )
        driver = make_driver(credentials, handler, authority, tokens=tokens)

        await driver.get("/account/v1/accounts/current")

        assert len(authority.calls) == 1
        assert handler.tokens_used() == ["at-1"]


class TestTokenRefresh:
    """Refresh-and-retry on a rejected access token."""

    @pytest.mark.asyncio
    async def test_rejected_token_is_refreshed_retried_and_persisted(
        self, credentials
    ):
        handler = RecordingHandler(accept_tokens("at-1", body={"code": "ACME"}))
        authority = FakeTokenAuthority(
            [TokenPair(access_token="at-1", refresh_token="rt-2")]
        )
        store = MemoryTokenStore()
        driver = make_driver(credentials, handler, authority, token_store=store)

        body = await driver.get("/account/v1/accounts/current")
        await driver.flush_token_store()

        assert body == {"code": "ACME"}
        assert authority.calls == [(credentials, "rt-1")]
        assert handler.tokens_used() == ["at-0", "at-1"]
        saved = await store.load()
        assert saved.access_token == "at-1"
        assert saved.refresh_token == "rt-2"
        assert store.save_count == 1
        assert driver.tokens.refresh_token == "rt-2"

    @pytest.mark.asyncio
    async def test_concurrent_rejections_share_one_exchange(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority(delay=0.01)
        driver = make_driver(credentials, handler, authority)

        results = await asyncio.gather(
            *(driver.get(f"/inventory/v1/properties/P{i}") for i in range(5))
        )

        assert results == [{"ok": True}] * 5
        assert len(authority.calls) == 1
        assert handler.tokens_used().count("at-0") == 5
        assert handler.tokens_used().count("at-1") == 5
        assert driver.get_token_info()["refresh_count"] == 1

    @pytest.mark.asyncio
    async def test_late_rejection_reuses_already_refreshed_token(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority()
        driver = make_driver(credentials, handler, authority)

        await driver.get("/inventory/v1/properties")
        # A request sent with the old token after the refresh finished
        access_token = await driver._refresh_access_token("at-0")

        assert access_token == "at-1"
        assert len(authority.calls) == 1

    @pytest.mark.asyncio
    async def test_rejection_after_refresh_raises_auth_expired(self, credentials):
        handler = RecordingHandler(lambda request: token_rejected())
        authority = FakeTokenAuthority()
        driver = make_driver(credentials, handler, authority)

        with pytest.raises(AuthExpiredError):
            await driver.get("/inventory/v1/properties")

        assert len(authority.calls) == 1
        assert handler.tokens_used() == ["at-0", "at-1"]

    @pytest.mark.asyncio
    async def test_exchange_failure_reaches_all_waiters_and_keeps_tokens(
        self, credentials
    ):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority(
            [AuthExchangeError("invalid_grant", status_code=400)], delay=0.01
        )
        driver = make_driver(credentials, handler, authority)

        results = await asyncio.gather(
            *(driver.get("/inventory/v1/properties") for _ in range(3)),
            return_exceptions=True,
        )

        assert all(isinstance(result, AuthExchangeError) for result in results)
        assert len(authority.calls) == 1
        assert driver.tokens == TokenPair(access_token="at-0", refresh_token="rt-1")

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_fail_request(
        self, credentials, caplog
    ):
        handler = RecordingHandler(accept_tokens("at-1"))
        driver = make_driver(credentials, handler, token_store=FailingTokenStore())

        with caplog.at_level(logging.WARNING):
            body = await driver.get("/inventory/v1/properties")
            await driver.flush_token_store()

        assert body == {"ok": True}
        assert driver.tokens.access_token == "at-1"
        assert "Failed to persist refreshed tokens" in caplog.text

    @pytest.mark.asyncio
    async def test_caller_timeout_does_not_cancel_shared_refresh(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        gate = asyncio.Event()
        authority = FakeTokenAuthority(gate=gate)
        driver = make_driver(credentials, handler, authority)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(driver.get("/inventory/v1/properties"), 0.05)

        refresh_task = driver._refresh_task
        assert refresh_task is not None
        gate.set()
        await refresh_task

        assert driver.tokens.access_token == "at-1"
        assert await driver.get("/inventory/v1/properties") == {"ok": True}
        assert len(authority.calls) == 1


class TestAuthorizationBoundary:
    """Only token rejections trigger a refresh."""

    @pytest.mark.asyncio
    async def test_token_code_in_body_counts_as_rejection(self, credentials):
        def respond(request: httpx.Request) -> httpx.Response:
            if request.headers["Authorization"] == "Bearer at-1":
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(401, json={"error": "token_expired"})

        authority = FakeTokenAuthority()
        driver = make_driver(credentials, RecordingHandler(respond), authority)

        assert await driver.get("/inventory/v1/properties") == {"ok": True}
        assert len(authority.calls) == 1

    @pytest.mark.asyncio
    async def test_other_401_is_a_request_error_without_refresh(self, credentials):
        handler = RecordingHandler(
            lambda request: httpx.Response(401, json={"message": "Account locked"})
        )
        authority = FakeTokenAuthority()
        driver = make_driver(credentials, handler, authority)

        with pytest.raises(RequestError) as exc_info:
            await driver.get("/inventory/v1/properties")

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == {"message": "Account locked"}
        assert not isinstance(exc_info.value, AuthExpiredError)
        assert authority.calls == []
        assert len(handler.requests) == 1


class TestErrorMapping:
    """Non-authorization errors surface untouched, without retry."""

    @pytest.mark.asyncio
    async def test_not_found(self, credentials):
        handler = RecordingHandler(
            lambda request: httpx.Response(404, json={"title": "Not Found"})
        )
        driver = make_driver(credentials, handler)

        with pytest.raises(NotFoundError) as exc_info:
            await driver.get("/inventory/v1/properties/NOPE")

        assert exc_info.value.status_code == 404
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self, credentials):
        handler = RecordingHandler(
            lambda request: httpx.Response(429, headers={"Retry-After": "60"})
        )
        driver = make_driver(credentials, handler)

        with pytest.raises(RateLimitError) as exc_info:
            await driver.get("/inventory/v1/properties")

        assert exc_info.value.retry_after == 60

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, credentials):
        handler = RecordingHandler(
            lambda request: httpx.Response(503, json={"message": "Maintenance"})
        )
        driver = make_driver(credentials, handler)

        with pytest.raises(RequestError) as exc_info:
            await driver.get("/inventory/v1/properties")

        assert exc_info.value.status_code == 503
        assert "Maintenance" in str(exc_info.value)
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_network_failure_is_a_transport_error(self, credentials):
        def respond(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        driver = make_driver(credentials, RecordingHandler(respond))

        with pytest.raises(TransportError) as exc_info:
            await driver.get("/inventory/v1/properties")

        assert exc_info.value.status_code is None


class TestTokenInfo:
    def test_token_info_never_exposes_tokens(self, credentials):
        driver = make_driver(credentials, RecordingHandler(accept_tokens("at-0")))

        info = driver.get_token_info()

        assert info["has_token"] is True
        assert info["status"] == "unknown"
        assert "at-0" not in str(info)
        assert "rt-1" not in str(info)


class SlowFirstSaveStore(TokenStore):
    """Store whose first save finishes after any later one."""

    def __init__(self) -> None:
        self.saved: TokenPair | None = None
        self.history: list[str] = []

    async def load(self) -> TokenPair | None:
        return self.saved

    async def save(self, tokens: TokenPair) -> None:
        if not self.history:
            self.history.append("pending")
            await asyncio.sleep(0.05)
            self.history[0] = tokens.refresh_token
        else:
            self.history.append(tokens.refresh_token)
        self.saved = tokens


class TestTokenPersistence:
    """The token store mirrors the live pair across consecutive refreshes."""

    @pytest.mark.asyncio
    async def test_store_holds_latest_pair_after_consecutive_refreshes(
        self, credentials
    ):
        handler = RecordingHandler(accept_tokens("at-2"))
        authority = FakeTokenAuthority(
            [
                TokenPair(access_token="at-1", refresh_token="rt-2"),
                TokenPair(access_token="at-2", refresh_token="rt-3"),
            ]
        )
        store = SlowFirstSaveStore()
        driver = make_driver(credentials, handler, authority, token_store=store)

        with pytest.raises(AuthExpiredError):
            await driver.get("/inventory/v1/properties")
        assert await driver.get("/inventory/v1/properties") == {"ok": True}
        await driver.flush_token_store()

        assert len(authority.calls) == 2
        assert driver.tokens.refresh_token == "rt-3"
        assert store.saved == driver.tokens
        assert store.history[-1] == "rt-3"

    @pytest.mark.asyncio
    async def test_unchanged_pair_is_not_saved_twice(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        store = MemoryTokenStore()
        driver = make_driver(credentials, handler, token_store=store)

        await driver.get("/inventory/v1/properties")
        await driver.flush_token_store()
        await driver._persist()

        assert store.save_count == 1


class TestExpirySkew:
    """Short-lived tokens must not trigger a refresh on every request."""

    @pytest.mark.asyncio
    async def test_token_shorter_than_skew_is_reused(self, credentials):
        handler = RecordingHandler(accept_tokens("at-1"))
        authority = FakeTokenAuthority(
            [
                TokenPair(
                    access_token="at-1",
                    refresh_token="rt-2",
                    expires_at=datetime.now(UTC) + timedelta(seconds=30),
                )
            ]
        )
        driver = make_driver(
            credentials, handler, authority, tokens=TokenPair(refresh_token="rt-1")
        )

        for _ in range(5):
            await driver.get("/inventory/v1/properties")

        assert len(authority.calls) == 1
        assert driver.get_token_info()["status"] == "valid"
