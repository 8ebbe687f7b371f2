"""
Exception hierarchy for the apaleo connector.

Every error raised by the connector derives from ApaleoConnectError so that
callers can handle connector failures with a single except clause while still
being able to distinguish configuration, authentication and request failures.
"""

from typing import Any


class ApaleoConnectError(Exception):
    """Base exception for all connector errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(ApaleoConnectError):
    """Missing or invalid configuration, raised before any request is made."""


class ValidationError(ApaleoConnectError):
    """Invalid caller input."""


class PreconditionError(ApaleoConnectError):
    """A caller-supplied object is missing data an operation depends on."""


class AuthExchangeError(ApaleoConnectError):
    """The token endpoint refused to issue a new access token."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code
        self.response_data = response_data


class AuthExpiredError(ApaleoConnectError):
    """The access token was rejected again right after a successful refresh."""


class RequestError(ApaleoConnectError):
    """Non-2xx response (or transport failure) from the apaleo API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code
        self.body = body


class NotFoundError(RequestError):
    """The requested resource does not exist."""


class RateLimitError(RequestError):
    """Request rejected by the API rate limiter."""

    def __init__(
        self,
        message: str,
        status_code: int | None = 429,
        body: Any = None,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body, details=details)
        self.retry_after = retry_after


class TransportError(RequestError):
    """The request never produced an HTTP response (connect error, timeout)."""
