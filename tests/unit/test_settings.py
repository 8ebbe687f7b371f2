"""
Unit tests for environment-based settings.
"""

import pytest

from apaleo_connect_mcp.config.settings import Settings
from apaleo_connect_mcp.models.common import TokenPair


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CLIENT_ID",
        "CLIENT_SECRET",
        "REDIRECT_URI",
        "REFRESH_TOKEN",
        "ACCESS_TOKEN",
        "TOKEN_STORE_PATH",
        "DEFAULT_PROPERTY_ID",
        "REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(f"APALEO_{name}", raising=False)


def test_defaults_point_at_apaleo():
    settings = Settings(_env_file=None)

    assert settings.token_url == "https://identity.apaleo.com/connect/token"
    assert settings.authorize_url == "https://identity.apaleo.com/connect/authorize"
    assert settings.api_base_url == "https://api.apaleo.com"
    assert settings.request_timeout == 30
    assert settings.token_expiry_skew == 60


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("APALEO_CLIENT_ID", "env-client")
    monkeypatch.setenv("APALEO_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("APALEO_REFRESH_TOKEN", "rt-env")
    monkeypatch.setenv("APALEO_DEFAULT_PROPERTY_ID", "MUC")

    settings = Settings(_env_file=None)

    assert settings.client_id == "env-client"
    assert settings.default_property_id == "MUC"
    assert settings.validate_required_settings() == []


def test_missing_settings_are_reported():
    settings = Settings(_env_file=None)

    assert settings.validate_required_settings() == [
        "APALEO_CLIENT_ID",
        "APALEO_CLIENT_SECRET",
        "APALEO_REFRESH_TOKEN",
    ]


def test_token_store_path_replaces_refresh_token_requirement():
    settings = Settings(
        _env_file=None,
        client_id="client",
        client_secret="secret",
        token_store_path="/tmp/apaleo-tokens.json",
    )

    assert settings.validate_required_settings() == []


def test_credentials_and_initial_tokens():
    settings = Settings(
        _env_file=None,
        client_id="client",
        client_secret="secret",
        redirect_uri="https://example.test/callback",
        refresh_token="rt-env",
        access_token="at-env",
    )

    credentials = settings.get_credentials()

    assert credentials.client_id == "client"
    assert credentials.redirect_uri == "https://example.test/callback"
    assert credentials.missing_fields() == []
    assert settings.get_initial_tokens() == TokenPair(
        access_token="at-env", refresh_token="rt-env"
    )


def test_no_initial_tokens_without_refresh_token():
    assert Settings(_env_file=None, access_token="at-env").get_initial_tokens() is None


def test_request_timeout_bounds(monkeypatch):
    monkeypatch.setenv("APALEO_REQUEST_TIMEOUT", "1")

    with pytest.raises(ValueError):
        Settings(_env_file=None)
