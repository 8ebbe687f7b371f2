"""
Input validation utilities for the apaleo MCP tools.

Provides validation functions for identifiers and free-form filter
parameters passed in by tool callers.
"""

import re
from typing import Any

from apaleo_connect_mcp.utils.exceptions import ValidationError

# apaleo ids: property codes ("MUC"), compound ids ("MUC-DBL", "MUC-NONREF-SGL")
_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]{0,99}$")


def validate_property_id(property_id: str) -> str:
    """
    Validate property ID format.

    Args:
        property_id: Property ID to validate

    Returns:
        Validated property ID, upper-cased like apaleo property codes

    Raises:
        ValidationError: If property ID format is invalid
    """
    if not property_id:
        raise ValidationError("Property ID cannot be empty")

    if not property_id.isalnum():
        raise ValidationError(f"Property ID '{property_id}' must be alphanumeric")

    if len(property_id) > 10:
        raise ValidationError(f"Property ID '{property_id}' cannot exceed 10 characters")

    return property_id.upper()


def validate_entity_id(entity_id: str, kind: str = "Entity") -> str:
    """
    Validate an apaleo entity identifier used in a URL path.

    Raises:
        ValidationError: If the identifier is empty or contains unsafe characters
    """
    if not entity_id:
        raise ValidationError(f"{kind} ID cannot be empty")

    if not _ID_PATTERN.match(entity_id):
        raise ValidationError(f"Invalid {kind.lower()} ID '{entity_id}'")

    return entity_id


def validate_filter_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """
    Validate free-form query filters.

    Drops None values and rejects nested structures apaleo cannot take as
    query parameters.

    Raises:
        ValidationError: If a filter value is a dict
    """
    if not params:
        return {}

    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, dict):
            raise ValidationError(f"Filter '{key}' must be a scalar or a list")
        if isinstance(value, list):
            value = ",".join(str(item) for item in value)
        cleaned[key] = value
    return cleaned
