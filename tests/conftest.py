"""Shared fixtures for apaleo connector tests."""

from collections.abc import Callable

import httpx
import pytest

from apaleo_connect_mcp.models.common import Credentials
from tests.fakes import API_BASE_URL, RecordingHandler


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        client_id="test-client",
        client_secret="test-secret",
        redirect_uri="https://example.test/callback",
    )


@pytest.fixture
def make_http_client() -> Callable[[RecordingHandler], httpx.AsyncClient]:
    def factory(handler: RecordingHandler) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url=API_BASE_URL
        )

    return factory
