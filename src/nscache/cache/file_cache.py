"""
File system cache adapter.

Each namespace is a directory and each entry a separate file:

    <basedir>/<hash(namespace)>/<hash(key)>.dat

The file holds the encoded value and its modification time IS the
expiry instant. There is no metadata sidecar.

Operational faults (I/O, codec) never raise: set/remove/clear report
CacheResult.FAILURE and get reports CacheResult.MISS. Only configuration
problems raise ConfigurationError.
"""

from __future__ import annotations

import functools
import os
import random
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, Mapping, TypeVar

from pydantic import Field, field_validator

from nscache.cache.base import CacheOptions, CacheResult
from nscache.cache.paths import ENTRY_SUFFIX, path_for
from nscache.cache.registry import NamespaceRegistry
from nscache.exceptions import ConfigurationError
from nscache.logging import get_logger, log_context

logger = get_logger(__name__)

DEFAULT_BASEDIR = Path("./data/cache")


def _now() -> float:
    return time.time()


def _parse_mode(v: Any) -> Any:
    if isinstance(v, str):
        return int(v, 8)
    return v


_F = TypeVar("_F", bound=Callable[..., Any])


def _in_namespace(method: _F) -> _F:
    """Run an adapter method with its namespace set in the logging context."""

    @functools.wraps(method)
    def wrapper(self: FileCache, *args: Any, **kwargs: Any) -> Any:
        with log_context(namespace=self.namespace):
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class FileCacheOptions(CacheOptions):
    """Options of the file system adapter."""

    basedir: Path = DEFAULT_BASEDIR
    dir_permissions: int = 0o700
    file_permissions: int = 0o600
    gc: int = Field(default=1000, ge=1, description="Cycles per expected garbage collection")

    @field_validator("dir_permissions", mode="before")
    @classmethod
    def parse_dir_permissions(cls, v: Any) -> Any:
        return _parse_mode(v)

    @field_validator("file_permissions", mode="before")
    @classmethod
    def parse_file_permissions(cls, v: Any) -> Any:
        return _parse_mode(v)

    @field_validator("dir_permissions")
    @classmethod
    def validate_dir_permissions(cls, v: int) -> int:
        """Directories must stay listable, readable and writable by the owner."""
        if not v & 0o400:
            raise ValueError(
                f'Invalid permissions "{v:o}" for directories. '
                "Directories will not be available for reading."
            )
        if not v & 0o200:
            raise ValueError(
                f'Invalid permissions "{v:o}" for directories. '
                "Directories will not be available for writing."
            )
        if not v & 0o100:
            raise ValueError(
                f'Invalid permissions "{v:o}" for directories. '
                "The content of directories will not be available."
            )
        return v

    @field_validator("file_permissions")
    @classmethod
    def validate_file_permissions(cls, v: int) -> int:
        """Files must stay readable and writable by the owner."""
        if not v & 0o400:
            raise ValueError(
                f'Invalid permissions "{v:o}" for files. '
                "Files will not be available for reading."
            )
        if not v & 0o200:
            raise ValueError(
                f'Invalid permissions "{v:o}" for files. '
                "Files will not be available for writing."
            )
        return v


class FileCache:
    """Cache adapter storing each entry in its own file.

    The adapter starts disabled unless ``enabled`` is set in the options.
    While disabled every operation returns CacheResult.NOT_APPLICABLE and
    touches nothing on disk.

    Instances are shared per namespace through a NamespaceRegistry. Use
    with_namespace() to reach sibling namespaces with the same settings.

    Garbage collection of expired entries is amortised: each close() (or
    exit from a ``with`` block) runs clear_expired() with probability 1/gc.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | FileCacheOptions | None = None,
        *,
        registry: NamespaceRegistry | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            options: Adapter options (see FileCacheOptions).
            registry: Registry sharing instances by namespace. A private
                registry is used when omitted.

        Raises:
            ConfigurationError: If options are invalid, the namespace
                directory cannot be prepared, or the namespace is already
                owned by another instance in the registry.
        """
        if isinstance(options, FileCacheOptions):
            self._options = options
        else:
            self._options = FileCacheOptions.from_mapping(options)

        self._registry = registry if registry is not None else NamespaceRegistry()
        self._hash = self._options.hash_function()
        self._encode, self._decode = self._options.filters()
        self._enabled = False

        self.set_enabled(self._options.enabled)
        self._registry.register(self.namespace, self)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(namespace={self.namespace!r}, "
            f"basedir={str(self.basedir)!r}, enabled={self._enabled})"
        )

    # Configuration accessors

    @property
    def options(self) -> FileCacheOptions:
        """Current options, with ``enabled`` reflecting the live state."""
        return self._options.replace(enabled=self._enabled)

    @property
    def registry(self) -> NamespaceRegistry:
        return self._registry

    @property
    def namespace(self) -> str:
        return self._options.namespace

    @property
    def basedir(self) -> Path:
        return self._options.basedir

    @property
    def default_ttl(self) -> int:
        return self._options.default_ttl

    @property
    def hashing_algorithm(self) -> str:
        return self._options.hashing_algorithm

    @property
    def storing_filter(self) -> Callable[[Any], Any]:
        return self._encode

    @property
    def restoring_filter(self) -> Callable[[bytes], Any]:
        return self._decode

    @property
    def dir_permissions(self) -> int:
        return self._options.dir_permissions

    @property
    def file_permissions(self) -> int:
        return self._options.file_permissions

    @property
    def gc(self) -> int:
        return self._options.gc

    @property
    def enabled(self) -> bool:
        return self._enabled

    def is_enabled(self) -> bool:
        """Whether the adapter is enabled."""
        return self._enabled

    def set_default_ttl(self, seconds: int) -> FileCache:
        """Set the TTL used when set() is called without one."""
        self._options = self._options.replace(default_ttl=seconds)
        return self

    def set_hashing_algorithm(self, name: str) -> FileCache:
        """Change the algorithm used to name namespace directories and entry files."""
        self._options = self._options.replace(hashing_algorithm=name)
        self._hash = self._options.hash_function()
        return self

    def set_storing_filter(self, storing_filter: Callable[[Any], Any]) -> FileCache:
        self._options = self._options.replace(storing_filter=storing_filter)
        self._encode, self._decode = self._options.filters()
        return self

    def set_restoring_filter(self, restoring_filter: Callable[[bytes], Any]) -> FileCache:
        self._options = self._options.replace(restoring_filter=restoring_filter)
        self._encode, self._decode = self._options.filters()
        return self

    def path_for(self, key: str | None = None) -> Path:
        """Get the namespace directory, or the entry file for a key."""
        return path_for(self.basedir, self.namespace, self._hash, key)

    # State

    @_in_namespace
    def set_enabled(self, state: bool = True) -> FileCache:
        """Enable or disable the adapter.

        Enabling makes sure the namespace directory exists and is
        readable and writable. Disabling has no side effect.

        Raises:
            ConfigurationError: If the namespace directory cannot be
                prepared. The adapter stays disabled.
        """
        if state:
            self._create_namespace()
        self._enabled = bool(state)
        logger.debug("Cache adapter state changed", enabled=self._enabled)
        return self

    def _create_namespace(self) -> None:
        directory = self.path_for()
        context = {"namespace": self.namespace, "path": str(directory)}
        if not directory.is_dir():
            try:
                directory.mkdir(mode=self.dir_permissions, parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigurationError(
                    "Failed to create cache directory",
                    context={**context, "error": str(e)},
                ) from e
            logger.info("Created namespace directory", path=str(directory))
        if not os.access(directory, os.W_OK):
            raise ConfigurationError("The cache directory is not writable", context=context)
        if not os.access(directory, os.R_OK):
            raise ConfigurationError("The cache directory is not readable", context=context)

    # Entry operations

    @_in_namespace
    def set(self, key: str, data: Any, ttl: int = 0) -> CacheResult:
        """Store a value.

        Args:
            key: Entry key.
            data: Value to encode with the storing filter.
            ttl: Seconds until expiry; 0 means the default TTL.

        Returns:
            SUCCESS, FAILURE (the entry is removed), or NOT_APPLICABLE.
        """
        if not self._enabled:
            return CacheResult.NOT_APPLICABLE

        ttl = int(ttl or self.default_ttl)
        path = self.path_for(key)
        tmp_path: str | None = None

        # Storing filters are arbitrary callables, so any exception counts as a failure
        try:
            payload = self._encode(data)
            if isinstance(payload, str):
                payload = payload.encode("utf-8")

            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_path, path)
            tmp_path = None

            expires_at = _now() + ttl
            os.utime(path, (expires_at, expires_at))
            os.chmod(path, self.file_permissions)
        except Exception as e:
            logger.warning(
                "Failed to store cache entry",
                key=key,
                error=f"{type(e).__name__}: {e}",
            )
            if tmp_path is not None:
                _discard(tmp_path)
            self.remove(key)
            return CacheResult.FAILURE

        logger.debug("Stored cache entry", key=key, ttl=ttl)
        return CacheResult.SUCCESS

    @_in_namespace
    def get(self, key: str) -> Any:
        """Get a stored value.

        Expired, unreadable and undecodable entries are removed and
        reported as a miss.

        Returns:
            The decoded value, CacheResult.MISS, or CacheResult.NOT_APPLICABLE.
        """
        if not self._enabled:
            return CacheResult.NOT_APPLICABLE

        path = self.path_for(key)
        try:
            expires_at = path.stat().st_mtime
            if expires_at < _now():
                logger.debug("Cache entry expired", key=key)
                self.remove(key)
                return CacheResult.MISS
            raw = path.read_bytes()
        except FileNotFoundError:
            return CacheResult.MISS
        except OSError as e:
            logger.warning(
                "Failed to read cache entry",
                key=key,
                error=str(e),
            )
            self.remove(key)
            return CacheResult.MISS

        try:
            return self._decode(raw)
        except Exception as e:
            logger.warning(
                "Failed to decode cache entry",
                key=key,
                error=f"{type(e).__name__}: {e}",
            )
            self.remove(key)
            return CacheResult.MISS

    @_in_namespace
    def remove(self, key: str) -> CacheResult:
        """Remove a stored value. Removing a missing entry succeeds."""
        if not self._enabled:
            return CacheResult.NOT_APPLICABLE

        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            return CacheResult.SUCCESS
        except OSError as e:
            logger.warning(
                "Failed to remove cache entry",
                key=key,
                error=str(e),
            )
            return CacheResult.FAILURE
        return CacheResult.SUCCESS

    @_in_namespace
    def clear_namespace(self) -> CacheResult:
        """Remove every entry of the namespace, expired or not."""
        if not self._enabled:
            return CacheResult.NOT_APPLICABLE
        return self._sweep(expired_only=False)

    @_in_namespace
    def clear_expired(self) -> CacheResult:
        """Remove the expired entries of the namespace.

        Normally invoked from close(); calling it directly is allowed.
        """
        if not self._enabled:
            return CacheResult.NOT_APPLICABLE
        return self._sweep(expired_only=True)

    def _sweep(self, expired_only: bool) -> CacheResult:
        directory = self.path_for()
        now = _now()

        try:
            with os.scandir(directory) as it:
                entries = [
                    entry
                    for entry in it
                    if entry.name.endswith(ENTRY_SUFFIX)
                    and not entry.name.startswith(".")
                    and entry.is_file(follow_symlinks=False)
                ]
        except FileNotFoundError:
            return CacheResult.SUCCESS
        except OSError as e:
            logger.warning("Failed to list namespace directory", path=str(directory), error=str(e))
            return CacheResult.FAILURE

        removed = 0
        failed = 0
        for entry in entries:
            try:
                if expired_only and entry.stat(follow_symlinks=False).st_mtime >= now:
                    continue
                os.unlink(entry.path)
            except FileNotFoundError:
                continue
            except OSError as e:
                failed += 1
                logger.warning("Failed to remove cache file", path=entry.path, error=str(e))
            else:
                removed += 1

        logger.debug(
            "Swept namespace",
            expired_only=expired_only,
            removed=removed,
            failed=failed,
        )
        return CacheResult.FAILURE if failed else CacheResult.SUCCESS

    # Namespaces

    def with_namespace(self, namespace: str) -> FileCache:
        """Get the adapter for another namespace.

        Returns the instance already registered for the namespace, or a new
        one sharing this adapter's settings (enabled if this one is).
        """
        namespace = str(namespace)
        existing = self._registry.get(namespace)
        if existing is not None:
            return existing  # type: ignore[return-value]

        options = self._options.replace(namespace=namespace, enabled=self._enabled)
        clone = type(self)(options, registry=self._registry)
        adapter_name = self._registry.adapter_name(self.namespace)
        if adapter_name is not None:
            self._registry.bind_adapter_name(namespace, adapter_name)
        return clone

    # Garbage collection

    @_in_namespace
    def close(self) -> CacheResult | None:
        """End one usage cycle of the adapter.

        While enabled, runs clear_expired() with probability 1/gc.

        Returns:
            The sweep result, or None if no sweep ran.
        """
        if not self._enabled:
            return None
        if random.randint(1, self.gc) != self.gc:
            return None
        logger.debug("Collecting expired entries")
        return self.clear_expired()

    def __enter__(self) -> FileCache:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except OSError as e:
        logger.debug("Could not discard temporary file", path=path, error=str(e))
