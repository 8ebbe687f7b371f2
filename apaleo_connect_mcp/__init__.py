"""
apaleo Connect MCP.

Vendor-neutral, read-only access to the apaleo PMS (properties, room types,
rate plans, rates, policies, age categories, services and promo codes), with an
MCP tool surface on top.
"""

from apaleo_connect_mcp.clients.gateway import ApaleoGateway
from apaleo_connect_mcp.clients.request_driver import AuthenticatedRequestDriver

__version__ = "0.1.0"

__all__ = ["ApaleoGateway", "AuthenticatedRequestDriver", "__version__"]
