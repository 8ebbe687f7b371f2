"""
Account and inventory tools for apaleo MCP.

Provides MCP tools for reading the connected account, its properties and the
room types (unit groups) of a property through the apaleo Account and
Inventory APIs.
"""

from typing import Any

from fastmcp import FastMCP

from apaleo_connect_mcp.utils.client_factory import get_gateway, resolve_hotel_id
from apaleo_connect_mcp.utils.tool_responses import run_tool
from apaleo_connect_mcp.utils.validators import (
    validate_entity_id,
    validate_filter_params,
)


def register_inventory_tools(app: FastMCP):
    """Register all account and inventory MCP tools."""

    @app.tool()
    async def get_account() -> dict[str, Any]:
        """
        Get the apaleo account that owns the configured credentials.

        Returns:
            Dictionary containing the account details
        """
        gateway = await get_gateway()
        return await run_tool(gateway.get_account())

    @app.tool()
    async def get_hotels(filters: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        List the properties of the account.

        Args:
            filters: Optional apaleo query filters (e.g. {"status": "Live"})

        Returns:
            Dictionary containing the hotels and the total count
        """
        gateway = await get_gateway()
        return await run_tool(gateway.get_hotels(validate_filter_params(filters)))

    @app.tool()
    async def get_hotel(hotel_id: str | None = None) -> dict[str, Any]:
        """
        Get a single property.

        Args:
            hotel_id: Property identifier (uses default if not provided)

        Returns:
            Dictionary containing the hotel details
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(gateway.get_hotel_by_id(hotel_id), hotel_id=hotel_id)

    @app.tool()
    async def get_room_types(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the room types (unit groups) of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters (e.g. {"unitGroupTypes": "BedRoom"})

        Returns:
            Dictionary containing the room types and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_room_types(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_room_type(room_type_id: str) -> dict[str, Any]:
        """
        Get a single room type.

        Args:
            room_type_id: Unit group identifier (e.g. "MUC-DBL")

        Returns:
            Dictionary containing the room type details
        """
        room_type_id = validate_entity_id(room_type_id, "Room type")
        gateway = await get_gateway()
        return await run_tool(gateway.get_room_type_by_id(room_type_id))
