"""
Gateway factory for the MCP tools.

Builds one ApaleoGateway per process from the global settings and hands the
same instance to every tool, so all tools share one token pair and therefore
one single-flight refresh.
"""

import asyncio
import logging

from apaleo_connect_mcp.auth import create_token_store
from apaleo_connect_mcp.clients.gateway import ApaleoGateway
from apaleo_connect_mcp.config.settings import Settings, get_settings
from apaleo_connect_mcp.utils.exceptions import ValidationError
from apaleo_connect_mcp.utils.validators import validate_property_id

logger = logging.getLogger(__name__)

_gateway: ApaleoGateway | None = None
_gateway_lock = asyncio.Lock()


async def get_gateway(settings: Settings | None = None) -> ApaleoGateway:
    """
    Get the shared gateway, creating it on first use.

    Raises:
        ConfigError: If credentials or a refresh token are missing
    """
    global _gateway
    if _gateway is None:
        async with _gateway_lock:
            if _gateway is None:
                current_settings = settings or get_settings()
                _gateway = await ApaleoGateway.create(
                    current_settings,
                    token_store=create_token_store(current_settings),
                )
                logger.info("apaleo gateway initialized")
    return _gateway


def get_initialized_gateway() -> ApaleoGateway | None:
    """Return the shared gateway without creating it."""
    return _gateway


async def close_gateway() -> None:
    """Close and forget the shared gateway."""
    global _gateway
    if _gateway is not None:
        gateway, _gateway = _gateway, None
        await gateway.close()


def resolve_hotel_id(hotel_id: str | None, settings: Settings | None = None) -> str:
    """
    Resolve the property a tool call is scoped to.

    Raises:
        ValidationError: If neither ``hotel_id`` nor a default property is set
    """
    if hotel_id == "":
        raise ValidationError("hotel_id cannot be empty string")
    resolved = hotel_id or (settings or get_settings()).default_property_id
    if not resolved:
        raise ValidationError(
            "hotel_id is required (no APALEO_DEFAULT_PROPERTY_ID configured)"
        )
    return validate_property_id(resolved)
