"""
Shared pieces of cache adapters.

This module defines:
- CacheResult: Outcome sentinels for cache operations
- Time constants for composing TTLs
- CacheAdapter: Capability contract every adapter must satisfy
- CacheOptions: Validated options common to all adapters
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Mapping, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nscache.cache.codecs import DEFAULT_CODEC, get_codec
from nscache.cache.paths import HashFunction, get_hash_function
from nscache.exceptions import ConfigurationError

MINUTE = 60
HOUR = 3600
DAY = 86400
WEEK = 604800
MONTH = 2592000
YEAR = 31536000

_OptionsT = TypeVar("_OptionsT", bound="CacheOptions")


class CacheResult(Enum):
    """Outcome of a cache operation.

    Compare by identity: ``cache.get(key) is CacheResult.MISS``.
    """

    NOT_APPLICABLE = "not_applicable"  # adapter disabled, nothing attempted
    SUCCESS = "success"
    FAILURE = "failure"
    MISS = "miss"


@runtime_checkable
class CacheAdapter(Protocol):
    """Operations every cache adapter provides.

    Adapters are constructed as ``cls(options, registry=registry)`` by
    CacheFactory.make.
    """

    def set(self, key: str, data: Any, ttl: int = 0) -> CacheResult: ...

    def get(self, key: str) -> Any: ...

    def remove(self, key: str) -> CacheResult: ...

    def clear_namespace(self) -> CacheResult: ...

    def with_namespace(self, namespace: str) -> CacheAdapter: ...


class CacheOptions(BaseModel):
    """Options shared by all adapters.

    A default_ttl of 0 means entries written without an explicit ttl
    expire at write time.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    namespace: str = "default"
    enabled: bool = False
    default_ttl: int = Field(default=0, ge=0)
    hashing_algorithm: str = "crc32"
    codec: str = DEFAULT_CODEC
    storing_filter: Callable[[Any], Any] | None = None
    restoring_filter: Callable[[bytes], Any] | None = None

    @field_validator("namespace", mode="before")
    @classmethod
    def coerce_namespace(cls, v: Any) -> str:
        return str(v)

    @field_validator("hashing_algorithm")
    @classmethod
    def validate_hashing_algorithm(cls, v: str) -> str:
        """Reject algorithms that cannot name path segments."""
        try:
            get_hash_function(v)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("codec")
    @classmethod
    def validate_codec(cls, v: str) -> str:
        try:
            get_codec(v)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return v

    @classmethod
    def from_mapping(
        cls: type[_OptionsT], options: Mapping[str, Any] | None = None
    ) -> _OptionsT:
        """Build validated options from a plain mapping.

        Raises:
            ConfigurationError: If any option is invalid.
        """
        try:
            return cls.model_validate(dict(options or {}))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid options for {cls.__name__}",
                context={
                    "errors": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ]
                },
            ) from e

    def replace(self: _OptionsT, **changes: Any) -> _OptionsT:
        """Return a re-validated copy with some options changed."""
        return type(self).from_mapping({**dict(self), **changes})

    def hash_function(self) -> HashFunction:
        return get_hash_function(self.hashing_algorithm)

    def filters(self) -> tuple[Callable[[Any], Any], Callable[[bytes], Any]]:
        """Resolve the storing/restoring pair, explicit filters winning over the codec."""
        codec = get_codec(self.codec)
        return (
            self.storing_filter or codec.encode,
            self.restoring_filter or codec.decode,
        )
