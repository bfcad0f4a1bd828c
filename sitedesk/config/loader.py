"""Locating and reading the TOML configuration files.

``default.toml`` is always read. ``{SITEDESK_ENV}.toml`` from the same
directory is layered on top of it when present.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "SITEDESK_CONFIG_DIR"
ENVIRONMENT_VAR = "SITEDESK_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many parent directories are searched for a config/ folder
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Return the directory holding the TOML files.

    SITEDESK_CONFIG_DIR wins when set and must exist. Otherwise the nearest
    ``config/`` directory found from the working directory upwards is used.
    """
    override = os.environ.get(CONFIG_DIR_VAR)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} points to a missing directory: {path}")
        return path

    cwd = Path.cwd()
    for candidate in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").is_dir():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from None


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with ``override``, recursing into tables.

    Only tables merge; lists and scalars from ``override`` replace the
    value in ``base``. Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Read ``default.toml`` and the current environment's overrides.

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If ``default.toml`` is missing
    """
    config_dir = get_config_dir()
    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(f"Missing {default_path}; create it or set {CONFIG_DIR_VAR}")

    config = load_toml(default_path)
    env_path = config_dir / f"{get_environment()}.toml"
    if env_path.is_file():
        config = deep_merge(config, load_toml(env_path))
    return config
