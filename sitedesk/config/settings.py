"""Root settings model for SiteDesk configuration."""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sitedesk.config.models.api import APIConfig
from sitedesk.config.models.engine import EngineConfig
from sitedesk.config.models.observability import ObservabilityConfig
from sitedesk.config.models.storage import StorageConfig
from sitedesk.config.models.uploads import UploadsConfig

# Merged TOML files, installed by get_settings() before Settings is built
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Replace the TOML values Settings reads below the environment."""
    global _toml_config
    _toml_config = dict(config)


class Settings(BaseSettings):
    """SiteDesk configuration.

    Values resolve, highest first, from constructor arguments, SITEDESK_*
    environment variables (``__`` separates nested sections), the TOML
    files, then the defaults declared on each section model.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITEDESK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="sitedesk", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    api: APIConfig = Field(default_factory=APIConfig, description="HTTP server")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Session and record backends")
    engine: EngineConfig = Field(default_factory=EngineConfig, description="Conversation engine behaviour")
    uploads: UploadsConfig = Field(default_factory=UploadsConfig, description="Attachment store")
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_settings = InitSettingsSource(settings_cls, init_kwargs=dict(_toml_config))
        return init_settings, env_settings, toml_settings
