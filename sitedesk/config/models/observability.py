"""Logging and metrics settings."""

from typing import Literal

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = Field(
        default="json",
        description="json for log shippers, console for a terminal",
    )
    redact_pii: bool = Field(
        default=True,
        description="Mask addresses, phone numbers and e-mails before they are written",
    )


class MetricsConfig(BaseModel):
    enabled: bool = Field(default=True, description="Serve the Prometheus registry over HTTP")
    path: str = Field(default="/metrics", description="Route the registry is served on")


class ObservabilityConfig(BaseModel):
    """``[observability.logging]`` and ``[observability.metrics]`` tables."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
