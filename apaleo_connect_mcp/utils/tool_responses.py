"""Uniform response payloads for MCP tools."""

import logging
from collections.abc import Awaitable
from typing import Any

from pydantic import BaseModel

from apaleo_connect_mcp.models.common import ListResult
from apaleo_connect_mcp.utils.exceptions import RequestError

logger = logging.getLogger(__name__)


def to_payload(result: BaseModel, **context: Any) -> dict[str, Any]:
    """Serialize a canonical entity or list result for a tool response."""
    if isinstance(result, ListResult):
        return {
            "success": True,
            "data": [
                item.model_dump(mode="json") if isinstance(item, BaseModel) else item
                for item in result.data
            ],
            "count": result.count,
            **context,
        }
    return {"success": True, "data": result.model_dump(mode="json"), **context}


async def run_tool(operation: Awaitable[BaseModel], **context: Any) -> dict[str, Any]:
    """
    Await a gateway call and wrap its result.

    apaleo request errors become ``success: False`` payloads; configuration and
    authentication errors propagate so the MCP client sees a tool failure.
    """
    try:
        result = await operation
    except RequestError as e:
        logger.warning(
            f"apaleo request failed: {e}",
            extra={"status_code": e.status_code, **context},
        )
        return {
            "success": False,
            "error": str(e),
            "status_code": e.status_code,
            **context,
        }
    return to_payload(result, **context)
