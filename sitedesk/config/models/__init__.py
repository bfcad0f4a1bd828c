"""Configuration section models."""

from sitedesk.config.models.api import APIConfig
from sitedesk.config.models.engine import EngineConfig
from sitedesk.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from sitedesk.config.models.storage import (
    PostgresConfig,
    RedisSessionConfig,
    StorageConfig,
)
from sitedesk.config.models.uploads import UploadsConfig

__all__ = [
    "APIConfig",
    "EngineConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "RedisSessionConfig",
    "StorageConfig",
    "UploadsConfig",
]
