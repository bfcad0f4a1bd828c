"""Shared fixtures for the SiteDesk test suite."""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path

import pytest

from sitedesk.config import get_settings
from sitedesk.config.settings import set_toml_config


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """An empty config/ directory under the test's tmp_path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write TOML files into test_config_dir.

    Usage:
        mock_toml_files({"default.toml": "[engine]\\nmax_upload_retries = 4"})
    """

    def _write(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _write


@pytest.fixture
def env_override(monkeypatch: pytest.MonkeyPatch) -> Callable[[dict[str, str]], AbstractContextManager[None]]:
    """Set SITEDESK_* variables for the duration of a with block."""

    @contextmanager
    def _override(values: dict[str, str]) -> Iterator[None]:
        with monkeypatch.context() as patch:
            for key, value in values.items():
                patch.setenv(key, value)
            yield

    return _override


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test from code defaults, ignoring the developer's environment."""
    monkeypatch.delenv("SITEDESK_ENV", raising=False)
    monkeypatch.delenv("SITEDESK_CONFIG_DIR", raising=False)
    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})
