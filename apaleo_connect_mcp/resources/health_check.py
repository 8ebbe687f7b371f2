"""
Health check resources for apaleo MCP.

Provides MCP resources for monitoring the server configuration and the token
lifecycle of the shared apaleo gateway.
"""

import logging
import time
from typing import Any

from fastmcp import FastMCP

from apaleo_connect_mcp.config.settings import Settings, get_settings
from apaleo_connect_mcp.utils.client_factory import get_initialized_gateway

logger = logging.getLogger(__name__)


def build_health_status(settings: Settings | None = None) -> dict[str, Any]:
    """
    Collect health information without touching the network.

    Returns:
        Dictionary containing health status and detailed checks
    """
    current_settings = settings or get_settings()
    gateway = get_initialized_gateway()

    checks: dict[str, Any] = {
        "mcp_server": True,
        "configuration": not current_settings.validate_required_settings(),
        "gateway": gateway is not None,
    }

    token_info = getattr(gateway.executor, "get_token_info", None) if gateway else None
    if token_info is not None:
        checks["authentication"] = token_info()
    else:
        checks["authentication"] = {"status": "not_initialized"}

    has_errors = not checks["configuration"] or not checks["gateway"]
    if checks["authentication"].get("status") in ("missing", "expired"):
        # A missing or expired token is refreshed on the next call; only report it
        checks["authentication"]["refresh_pending"] = True

    return {
        "status": "unhealthy" if has_errors else "healthy",
        "checks": checks,
        "timestamp": time.time(),
    }


def register_health_resources(app: FastMCP):
    """Register health check MCP resources."""

    @app.resource("health://status")
    async def health_status() -> dict[str, Any]:
        """
        Health check resource that provides detailed status information.

        Returns:
            Dictionary containing health status and detailed checks
        """
        try:
            return build_health_status()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}
