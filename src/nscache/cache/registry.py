"""
Registry of cache instances by namespace.

Holding one registry per application scope guarantees that every caller
asking for a namespace gets the same adapter instance, without keeping
that state in a module global.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

from nscache.exceptions import ConfigurationError

if TYPE_CHECKING:
    from nscache.cache.base import CacheAdapter


class NamespaceRegistry:
    """Maps namespace names to their single adapter instance."""

    def __init__(self) -> None:
        self._instances: dict[str, CacheAdapter] = {}
        self._adapter_names: dict[str, str] = {}

    def get(self, namespace: str) -> CacheAdapter | None:
        """Get the instance registered for a namespace, if any."""
        return self._instances.get(namespace)

    def register(self, namespace: str, cache: CacheAdapter) -> CacheAdapter:
        """Register the instance owning a namespace.

        Re-registering the same instance is a no-op.

        Raises:
            ConfigurationError: If another instance already owns the namespace.
        """
        existing = self._instances.get(namespace)
        if existing is not None and existing is not cache:
            raise ConfigurationError(
                f'Namespace "{namespace}" already has a cache instance; '
                "use with_namespace() or CacheFactory.make() to share it",
                context={"namespace": namespace},
            )
        self._instances[namespace] = cache
        return cache

    def adapter_name(self, namespace: str) -> str | None:
        """Get the configured adapter name the namespace is bound to, if known."""
        return self._adapter_names.get(namespace)

    def bind_adapter_name(self, namespace: str, name: str) -> None:
        """Record which configured adapter owns a namespace."""
        self._adapter_names[namespace] = name

    def clear(self) -> None:
        """Forget every registered instance."""
        self._instances.clear()
        self._adapter_names.clear()

    def names(self) -> list[str]:
        return sorted(self._instances)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
