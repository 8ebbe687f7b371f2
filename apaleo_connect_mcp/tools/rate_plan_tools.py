"""
Rate plan and pricing tools for apaleo MCP.

Provides MCP tools for rate plans, rates, cancellation and no-show policies,
age categories, services and promo codes through the apaleo Rate Plan and
Settings APIs.
"""

from typing import Any

from fastmcp import FastMCP

from apaleo_connect_mcp.utils.client_factory import get_gateway, resolve_hotel_id
from apaleo_connect_mcp.utils.exceptions import RequestError
from apaleo_connect_mcp.utils.tool_responses import run_tool
from apaleo_connect_mcp.utils.validators import (
    validate_entity_id,
    validate_filter_params,
)


def register_rate_plan_tools(app: FastMCP):
    """Register all rate plan, policy and pricing MCP tools."""

    @app.tool()
    async def get_rate_plans(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the rate plans of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters (e.g. {"channelCodes": "Direct"})

        Returns:
            Dictionary containing the rate plans and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_rate_plans_by_hotel_id(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_rate_plan(rate_plan_id: str) -> dict[str, Any]:
        """
        Get a single rate plan.

        Args:
            rate_plan_id: Rate plan identifier (e.g. "MUC-NONREF-DBL")

        Returns:
            Dictionary containing the rate plan details
        """
        rate_plan_id = validate_entity_id(rate_plan_id, "Rate plan")
        gateway = await get_gateway()
        return await run_tool(gateway.get_rate_plan_by_id(rate_plan_id))

    @app.tool()
    async def get_rates(
        rate_plan_id: str, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Get the rates of a rate plan over its loaded rates range.

        Args:
            rate_plan_id: Rate plan identifier
            filters: Optional apaleo query filters (e.g. {"pageSize": 50})

        Returns:
            Dictionary containing the rates and the total count
        """
        rate_plan_id = validate_entity_id(rate_plan_id, "Rate plan")
        gateway = await get_gateway()
        try:
            rate_plan = await gateway.get_rate_plan_by_id(rate_plan_id)
        except RequestError as e:
            return {
                "success": False,
                "error": str(e),
                "status_code": e.status_code,
                "rate_plan_id": rate_plan_id,
            }
        if rate_plan.rates_range is None:
            return {
                "success": False,
                "error": f"Rate plan {rate_plan_id} has no rates loaded",
                "rate_plan_id": rate_plan_id,
            }
        return await run_tool(
            gateway.get_rates_by_rate_plan(rate_plan, validate_filter_params(filters)),
            rate_plan_id=rate_plan_id,
        )

    @app.tool()
    async def get_cancellation_policies(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the cancellation policies of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters

        Returns:
            Dictionary containing the cancellation policies and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_cancellation_policies(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_cancellation_policy(cancellation_policy_id: str) -> dict[str, Any]:
        """Get a single cancellation policy."""
        policy_id = validate_entity_id(cancellation_policy_id, "Cancellation policy")
        gateway = await get_gateway()
        return await run_tool(gateway.get_cancellation_policy_by_id(policy_id))

    @app.tool()
    async def get_no_show_policies(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the no-show policies of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters

        Returns:
            Dictionary containing the no-show policies and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_no_show_policies(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_no_show_policy(no_show_policy_id: str) -> dict[str, Any]:
        """Get a single no-show policy."""
        policy_id = validate_entity_id(no_show_policy_id, "No-show policy")
        gateway = await get_gateway()
        return await run_tool(gateway.get_no_show_policy_by_id(policy_id))

    @app.tool()
    async def get_age_categories(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the age categories of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters

        Returns:
            Dictionary containing the age categories and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_age_categories(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_age_category(age_category_id: str) -> dict[str, Any]:
        """Get a single age category."""
        category_id = validate_entity_id(age_category_id, "Age category")
        gateway = await get_gateway()
        return await run_tool(gateway.get_age_category_by_id(category_id))

    @app.tool()
    async def get_services(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the services (extras) of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters (e.g. {"onlySoldAsExtras": True})

        Returns:
            Dictionary containing the services and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_services(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )

    @app.tool()
    async def get_service(service_id: str) -> dict[str, Any]:
        """Get a single service."""
        service_id = validate_entity_id(service_id, "Service")
        gateway = await get_gateway()
        return await run_tool(gateway.get_service_by_id(service_id))

    @app.tool()
    async def get_promo_codes(
        hotel_id: str | None = None, filters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        List the promo codes of a property.

        Args:
            hotel_id: Property identifier (uses default if not provided)
            filters: Optional apaleo query filters

        Returns:
            Dictionary containing the promo codes and the total count
        """
        hotel_id = resolve_hotel_id(hotel_id)
        gateway = await get_gateway()
        return await run_tool(
            gateway.get_promo_codes(hotel_id, validate_filter_params(filters)),
            hotel_id=hotel_id,
        )
