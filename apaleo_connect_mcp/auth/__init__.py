"""Token lifecycle: token authority and token persistence."""

from apaleo_connect_mcp.auth.token_authority import ApaleoTokenAuthority, TokenAuthority
from apaleo_connect_mcp.auth.token_store import (
    JsonFileTokenStore,
    MemoryTokenStore,
    TokenStore,
)
from apaleo_connect_mcp.config.settings import Settings


def create_token_authority(settings: Settings) -> ApaleoTokenAuthority:
    """Create the identity-server token authority from settings."""
    return ApaleoTokenAuthority(
        token_url=settings.token_url,
        authorize_url=settings.authorize_url,
        timeout=settings.request_timeout,
    )


def create_token_store(settings: Settings) -> TokenStore:
    """File-backed store when a path is configured, in-memory otherwise."""
    if settings.token_store_path:
        return JsonFileTokenStore(settings.token_store_path)
    return MemoryTokenStore(settings.get_initial_tokens())


__all__ = [
    "ApaleoTokenAuthority",
    "JsonFileTokenStore",
    "MemoryTokenStore",
    "TokenAuthority",
    "TokenStore",
    "create_token_authority",
    "create_token_store",
]
