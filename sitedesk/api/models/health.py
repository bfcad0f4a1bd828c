"""Health check response models."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

HealthStatus = Literal["healthy", "degraded", "unhealthy"]


class ComponentHealth(BaseModel):
    """Health of one backing service."""

    name: str
    """Component name, e.g. session_store."""

    backend: str
    """Configured backend for the component."""

    status: HealthStatus

    latency_ms: float | None = None
    """Probe duration in milliseconds."""

    message: str | None = None
    """Error description when the check failed."""


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: HealthStatus
    version: str
    components: list[ComponentHealth] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
