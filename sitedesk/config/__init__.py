"""Configuration loading for SiteDesk.

Usage:
    from sitedesk.config import get_settings

    settings = get_settings()
    retries = settings.engine.max_upload_retries
"""

from functools import lru_cache

from sitedesk.config.loader import load_config
from sitedesk.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read the TOML files and build Settings once per process.

    Call ``get_settings.cache_clear()`` or ``reload_settings()`` to pick up
    changed files or environment variables.
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
