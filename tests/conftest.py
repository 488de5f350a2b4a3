"""
Pytest configuration and fixtures for cache tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import patch

import pytest

from nscache.cache.file_cache import FileCache
from nscache.cache.registry import NamespaceRegistry
from nscache.config import clear_settings_cache


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary base directory for cache files."""
    return tmp_path


@pytest.fixture
def registry() -> NamespaceRegistry:
    """Provide a fresh namespace registry for each test."""
    return NamespaceRegistry()


@pytest.fixture
def make_cache(
    temp_dir: Path, registry: NamespaceRegistry
) -> Callable[..., FileCache]:
    """Build FileCache instances rooted in temp_dir and sharing one registry."""

    def _make(**options: Any) -> FileCache:
        options.setdefault("basedir", temp_dir)
        return FileCache(options, registry=registry)

    return _make


@pytest.fixture
def cache(make_cache: Callable[..., FileCache]) -> FileCache:
    """Provide an enabled cache in the "default" namespace."""
    return make_cache(enabled=True)


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide cache environment variables pointing at temp_dir."""
    env_vars = {
        "NSCACHE_BASE_DIR": str(temp_dir / "cache"),
        "NSCACHE_ENABLED": "true",
        "NSCACHE_DEFAULT_TTL": "3600",
        "NSCACHE_HASHING_ALGORITHM": "md5",
        "NSCACHE_CODEC": "json",
        "NSCACHE_DIR_PERMISSIONS": "0750",
        "NSCACHE_FILE_PERMISSIONS": "0640",
        "NSCACHE_GC": "10",
        "NSCACHE_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        os.environ.pop("NSCACHE_CONFIG_FILE", None)
        clear_settings_cache()
        yield env_vars


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
