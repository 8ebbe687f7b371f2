"""
Common data models for the apaleo connector.

Provides the base models for vendor payloads and canonical entities, plus the
small value objects the request driver works with (credentials, token pairs,
request specs and list envelopes).
"""

from datetime import UTC, datetime, timedelta
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class ApaleoBaseModel(BaseModel):
    """Base model for raw apaleo API payloads."""

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields from API responses
        populate_by_name=True,
    )


class ConnectedBaseModel(BaseModel):
    """Base model for canonical, vendor-neutral entities."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


T = TypeVar("T")


class ListResult(ConnectedBaseModel, Generic[T]):
    """Ordered page of canonical entities with the vendor-reported total."""

    data: list[T] = Field(default_factory=list)
    count: int = 0


class Credentials(BaseModel):
    """OAuth client credentials, immutable for the lifetime of a driver."""

    model_config = ConfigDict(frozen=True)

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None

    def missing_fields(self) -> list[str]:
        """Names of the required credential fields that are empty."""
        missing = []
        if not self.client_id:
            missing.append("client_id")
        if not self.client_secret:
            missing.append("client_secret")
        return missing


class TokenPair(BaseModel):
    """Access/refresh token pair as issued by the identity server."""

    model_config = ConfigDict(frozen=True)

    access_token: str = ""
    refresh_token: str = ""
    expires_at: datetime | None = None

    def expires_in(self, now: datetime | None = None) -> float | None:
        """Seconds until expiry, None when the expiry is unknown."""
        if self.expires_at is None:
            return None
        now = now or datetime.now(UTC)
        return (self.expires_at - now).total_seconds()

    def is_expired(self, skew: float = 0.0, now: datetime | None = None) -> bool:
        """True when the access token is missing or expires within ``skew`` seconds."""
        if not self.access_token:
            return True
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        return self.expires_at - timedelta(seconds=skew) <= now


class RequestSpec(BaseModel):
    """One outbound API call."""

    method: str = "GET"
    path: str
    params: dict[str, Any] = Field(default_factory=dict)
    json_data: dict[str, Any] | None = None
