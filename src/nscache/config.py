"""
Configuration management using pydantic-settings.

Loads cache settings from NSCACHE_* environment variables and .env files,
and turns them into a CacheFactory configuration. A JSON file named by
NSCACHE_CONFIG_FILE replaces the generated factory configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import orjson
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nscache.cache.codecs import CODECS
from nscache.cache.paths import get_hash_function
from nscache.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        NSCACHE_BASE_DIR: Base directory of the file cache
        NSCACHE_ADAPTER: Default adapter name
        NSCACHE_ENABLED: Whether adapters start enabled
        NSCACHE_DEFAULT_TTL: TTL in seconds when set() gets none
        NSCACHE_HASHING_ALGORITHM: Hash naming directories and files
        NSCACHE_CODEC: Codec for stored values (pickle, json, orjson)
        NSCACHE_DIR_PERMISSIONS: Octal mode of namespace directories
        NSCACHE_FILE_PERMISSIONS: Octal mode of entry files
        NSCACHE_GC: Cycles per expected garbage collection
        NSCACHE_LOG_LEVEL: Logging level
        NSCACHE_LOG_FILE: JSON lines log file
        NSCACHE_CONFIG_FILE: JSON file with a full factory configuration
    """

    model_config = SettingsConfigDict(
        env_prefix="NSCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    BASE_DIR: Path = Field(default=Path("./data/cache"), description="Cache base directory")
    ADAPTER: str = Field(default="filesystem", description="Default adapter name")
    ENABLED: bool = Field(default=False, description="Whether adapters start enabled")

    DEFAULT_TTL: int = Field(
        default=315360000, ge=0, description="Default time to live in seconds"
    )
    HASHING_ALGORITHM: str = Field(default="crc32", description="Hashing algorithm")
    CODEC: str = Field(default="pickle", description="Codec for stored values")

    DIR_PERMISSIONS: int = Field(default=0o700, description="Namespace directory mode")
    FILE_PERMISSIONS: int = Field(default=0o600, description="Entry file mode")
    GC: int = Field(default=1000, ge=1, description="Garbage collection cycle count")

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON lines log file")

    CONFIG_FILE: Path | None = Field(
        default=None, description="JSON file with a factory configuration"
    )

    @field_validator("DIR_PERMISSIONS", "FILE_PERMISSIONS", mode="before")
    @classmethod
    def parse_octal(cls, v: Any) -> Any:
        """Read permission strings such as "0750" as octal."""
        if isinstance(v, str):
            return int(v, 8)
        return v

    @field_validator("HASHING_ALGORITHM")
    @classmethod
    def validate_hashing_algorithm(cls, v: str) -> str:
        try:
            get_hash_function(v)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("CODEC")
    @classmethod
    def validate_codec(cls, v: str) -> str:
        if v.lower() not in CODECS:
            raise ValueError(f"CODEC must be one of: {', '.join(sorted(CODECS))}")
        return v.lower()

    def factory_config(self) -> dict[str, Any]:
        """Build the CacheFactory configuration.

        Raises:
            ConfigurationError: If CONFIG_FILE cannot be read or parsed.
        """
        if self.CONFIG_FILE is not None:
            return self._load_config_file(self.CONFIG_FILE)

        return {
            "defaults": {
                "adapter": self.ADAPTER,
                "options": {
                    "enabled": self.ENABLED,
                },
            },
            "adapters": {
                "filesystem": {
                    "class": "nscache.cache.file_cache:FileCache",
                    "options": {
                        "basedir": str(self.BASE_DIR),
                        "default_ttl": self.DEFAULT_TTL,
                        "hashing_algorithm": self.HASHING_ALGORITHM,
                        "codec": self.CODEC,
                        "dir_permissions": self.DIR_PERMISSIONS,
                        "file_permissions": self.FILE_PERMISSIONS,
                        "gc": self.GC,
                    },
                },
            },
        }

    @staticmethod
    def _load_config_file(path: Path) -> dict[str, Any]:
        try:
            data = orjson.loads(path.read_bytes())
        except OSError as e:
            raise ConfigurationError(
                "Cannot read cache configuration file",
                context={"path": str(path), "error": str(e)},
            ) from e
        except orjson.JSONDecodeError as e:
            raise ConfigurationError(
                "Cache configuration file is not valid JSON",
                context={"path": str(path), "error": str(e)},
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Cache configuration file must hold a JSON object",
                context={"path": str(path)},
            )
        return data

    def display(self) -> dict[str, str | int | bool | None]:
        """Return settings as display-ready values."""
        return {
            "BASE_DIR": str(self.BASE_DIR),
            "ADAPTER": self.ADAPTER,
            "ENABLED": self.ENABLED,
            "DEFAULT_TTL": self.DEFAULT_TTL,
            "HASHING_ALGORITHM": self.HASHING_ALGORITHM,
            "CODEC": self.CODEC,
            "DIR_PERMISSIONS": f"{self.DIR_PERMISSIONS:04o}",
            "FILE_PERMISSIONS": f"{self.FILE_PERMISSIONS:04o}",
            "GC": self.GC,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
            "CONFIG_FILE": str(self.CONFIG_FILE) if self.CONFIG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
