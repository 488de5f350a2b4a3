"""
Exception hierarchy for the namespaced file cache.

All exceptions inherit from CacheError, which carries optional structured
context for logging. Only configuration and bad-argument problems are
raised; filesystem and codec faults during normal operation are turned
into CacheResult values by the adapters.
"""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(CacheError):
    """Raised when cache or factory configuration is invalid.

    Examples:
        - Missing or malformed adapters configuration
        - Permission bits that deny the owner required access
        - Unknown hashing algorithm or codec
        - Namespace directory that cannot be created or accessed
    """

    pass


class UnknownAdapterError(CacheError):
    """Raised when a caller requests an adapter that is not configured.

    Context should include:
        - adapter: The requested adapter name
        - available: The configured adapter names
    """

    pass
