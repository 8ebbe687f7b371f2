"""
Main entry point for the apaleo MCP server.

This module sets up the FastMCP server with all tools and configuration for
read-only access to the apaleo PMS.
"""

import asyncio
import json
import logging
import sys
from typing import Any

from fastmcp import FastMCP

from apaleo_connect_mcp import __version__
from apaleo_connect_mcp.config.settings import Settings, get_settings
from apaleo_connect_mcp.resources.health_check import (
    build_health_status,
    register_health_resources,
)
from apaleo_connect_mcp.tools.inventory_tools import register_inventory_tools
from apaleo_connect_mcp.tools.rate_plan_tools import register_rate_plan_tools
from apaleo_connect_mcp.utils.client_factory import (
    close_gateway,
    get_gateway,
    get_initialized_gateway,
)
from apaleo_connect_mcp.utils.exceptions import (
    AuthExchangeError,
    ConfigError,
)


class JSONFormatter(logging.Formatter):
    """One JSON object per log line, including ``extra`` fields."""

    _RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
        "message",
        "asctime",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(settings: Settings) -> None:
    """Setup logging configuration."""
    if settings.enable_structured_logging:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logging.root.handlers = [handler]
    else:
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper()),
            format=settings.log_format,
        )

    logging.getLogger().setLevel(getattr(logging, settings.log_level.upper()))


logger = logging.getLogger(__name__)

# Initialize FastMCP app
app = FastMCP(
    name="apaleo-connect-mcp",
    version=__version__,
)


@app.tool()
async def health_check() -> dict[str, Any]:
    """
    Perform a health check of the MCP server and its apaleo gateway.

    Returns:
        Dictionary containing health status information including token status
    """
    try:
        return build_health_status()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}


@app.tool()
async def get_auth_status() -> dict[str, Any]:
    """
    Get authentication status and token information.

    Returns:
        Dictionary containing authentication status and token metadata
    """
    gateway = get_initialized_gateway()
    if gateway is None:
        return {
            "status": "not_initialized",
            "error": "apaleo gateway not initialized",
        }

    current_settings = get_settings()
    return {
        "status": "success",
        "data": {
            "client_id": current_settings.client_id[:8] + "..."
            if current_settings.client_id
            else None,
            "token_url": current_settings.token_url,
            "token_store": current_settings.token_store_path or "memory",
            "token_info": gateway.executor.get_token_info(),
        },
    }


@app.tool()
async def get_server_info() -> dict[str, str]:
    """
    Get server information and configuration details.

    Returns:
        Dictionary containing server information
    """
    current_settings = get_settings()
    return {
        "name": app.name,
        "version": __version__,
        "description": "MCP server for read-only apaleo PMS access",
        "api_base_url": current_settings.api_base_url,
        "default_property_id": current_settings.default_property_id or "",
    }


async def initialize_server() -> None:
    """Initialize server components."""
    current_settings = get_settings()
    logger.info("Initializing apaleo MCP server...")
    logger.info(f"Version: {__version__}")

    # Validate configuration
    missing_settings = current_settings.validate_required_settings()
    if missing_settings:
        error_msg = (
            f"Missing required environment variables: {', '.join(missing_settings)}"
        )
        logger.error(error_msg)
        raise ConfigError(error_msg, details={"missing": missing_settings})

    logger.info("Configuration validated successfully")

    await get_gateway(current_settings)

    # Register MCP tools
    logger.info("Registering MCP tools...")
    register_inventory_tools(app)
    logger.info("Inventory tools registered successfully")

    register_rate_plan_tools(app)
    logger.info("Rate plan tools registered successfully")

    register_health_resources(app)
    logger.info("Health check resources registered successfully")

    logger.info("Server initialization completed successfully")


async def main() -> None:
    """Main entry point for the MCP server."""
    try:
        setup_logging(get_settings())

        await initialize_server()

        logger.info("Starting FastMCP server...")
        await app.run_async()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")

    except (ConfigError, AuthExchangeError) as e:
        logger.error(f"Server startup failed: {e}")
        sys.exit(1)

    finally:
        await close_gateway()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
