"""
Factory of cache adapters.

Turns a configuration of named adapters into adapter instances:

    {
        "defaults": {"adapter": "filesystem", "options": {"enabled": False}},
        "adapters": {
            "filesystem": {
                "class": "nscache.cache.file_cache:FileCache",
                "options": {"basedir": "./data/cache", ...},
            },
        },
    }

Adapter options are the defaults' options overlaid by the adapter's own.
"""

from __future__ import annotations

import copy
import importlib
from typing import TYPE_CHECKING, Any, Mapping

from nscache.cache.base import YEAR, CacheAdapter
from nscache.cache.registry import NamespaceRegistry
from nscache.exceptions import ConfigurationError, UnknownAdapterError
from nscache.logging import get_logger, log_context

if TYPE_CHECKING:
    from nscache.config import Settings

logger = get_logger(__name__)

DEFAULT_ADAPTER = "filesystem"
DEFAULT_NAMESPACE = "default"

DEFAULT_CONFIG: dict[str, Any] = {
    "defaults": {
        "adapter": DEFAULT_ADAPTER,
        "options": {
            "enabled": False,
        },
    },
    "adapters": {
        DEFAULT_ADAPTER: {
            "class": "nscache.cache.file_cache:FileCache",
            "options": {
                "basedir": "./data/cache",
                "default_ttl": 10 * YEAR,
                "dir_permissions": 0o700,
                "file_permissions": 0o600,
                "gc": 1000,
            },
        },
    },
}


def resolve_adapter_class(identifier: Any) -> type:
    """Resolve an adapter class from a class or an import path.

    Accepts a class, ``"package.module:Class"`` or ``"package.module.Class"``.

    Raises:
        ConfigurationError: If the identifier does not name an importable class.
    """
    if isinstance(identifier, type):
        return identifier
    if not isinstance(identifier, str) or not identifier.strip():
        raise ConfigurationError(
            "Adapter class must be a class or an import path",
            context={"class": identifier},
        )

    module_name, sep, attr = identifier.partition(":")
    if not sep:
        module_name, _, attr = identifier.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(
            "Adapter class import path is incomplete",
            context={"class": identifier},
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            "Cannot import adapter module",
            context={"class": identifier, "error": str(e)},
        ) from e

    cls = getattr(module, attr, None)
    if not isinstance(cls, type):
        raise ConfigurationError(
            "Adapter class not found",
            context={"class": identifier},
        )
    return cls


class CacheFactory:
    """Builds cache adapters from configuration.

    Every adapter made by a factory shares the factory's NamespaceRegistry,
    so asking twice for the same namespace yields the same instance.
    """

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        *,
        registry: NamespaceRegistry | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            config: Factory configuration. The built-in configuration is
                used when omitted.
            registry: Namespace registry shared by made adapters.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.registry = registry if registry is not None else NamespaceRegistry()
        self._config: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        if config is not None:
            self.set_config(config)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: NamespaceRegistry | None = None,
    ) -> CacheFactory:
        """Build a factory from application settings."""
        return cls(settings.factory_config(), registry=registry)

    def set_config(self, config: Mapping[str, Any]) -> None:
        """Replace the configuration.

        Raises:
            ConfigurationError:
                - If the adapters configuration is missing or not a mapping.
                - If the default adapter is not configured.
                - If any adapter has no class, or the class cannot be resolved.
        """
        adapters = config.get("adapters") if isinstance(config, Mapping) else None
        if not isinstance(adapters, Mapping):
            raise ConfigurationError("Missing adapters configuration")

        defaults = config.get("defaults") or {}
        if not isinstance(defaults, Mapping):
            raise ConfigurationError("The defaults configuration must be a mapping")
        if not isinstance(defaults.get("options") or {}, Mapping):
            raise ConfigurationError("The default options must be a mapping")

        default_adapter = defaults.get("adapter") or DEFAULT_ADAPTER
        if default_adapter not in adapters:
            raise ConfigurationError(
                f'Missing configuration of default adapter "{default_adapter}"',
                context={"available": sorted(adapters)},
            )

        for name, items in adapters.items():
            if not isinstance(items, Mapping) or "class" not in items:
                raise ConfigurationError(f'The class of adapter "{name}" is not specified')
            if not isinstance(items.get("options") or {}, Mapping):
                raise ConfigurationError(f'The options of adapter "{name}" must be a mapping')
            resolve_adapter_class(items["class"])

        self._config = copy.deepcopy(dict(config))
        logger.debug(
            "Cache configuration set",
            adapters=sorted(adapters),
            default_adapter=default_adapter,
        )

    def get_config(self) -> dict[str, Any]:
        """Get a copy of the active configuration."""
        return copy.deepcopy(self._config)

    def make(self, namespace: str | None = None, adapter: str | None = None) -> CacheAdapter:
        """Make (or reuse) the adapter for a namespace.

        Args:
            namespace: Namespace name; "default" when empty.
            adapter: Adapter name; the configured default when empty.

        Returns:
            The adapter instance for the namespace.

        Raises:
            UnknownAdapterError: If the adapter name is not configured.
            ConfigurationError: If the adapter class does not produce a
                valid cache adapter, or the namespace is already bound to
                another adapter.
        """
        defaults = self._config.get("defaults") or {}
        name = adapter or defaults.get("adapter") or DEFAULT_ADAPTER

        adapters = self._config["adapters"]
        if name not in adapters:
            raise UnknownAdapterError(
                f'Unknown cache adapter "{name}"',
                context={"adapter": name, "available": sorted(adapters)},
            )

        entry = adapters[name]
        cls = resolve_adapter_class(entry["class"])

        options: dict[str, Any] = {
            **dict(defaults.get("options") or {}),
            **dict(entry.get("options") or {}),
        }
        namespace = str(namespace) if namespace else DEFAULT_NAMESPACE
        options["namespace"] = namespace

        existing = self.registry.get(namespace)
        if existing is not None:
            bound = self.registry.adapter_name(namespace)
            if bound == name or (bound is None and isinstance(existing, cls)):
                return existing
            raise ConfigurationError(
                f'Namespace "{namespace}" is already bound to adapter '
                f'"{bound or type(existing).__qualname__}"',
                context={"namespace": namespace, "adapter": name, "bound_adapter": bound},
            )

        with log_context(namespace=namespace, adapter=name):
            try:
                cache = cls(options, registry=self.registry)
            except TypeError as e:
                raise ConfigurationError(
                    f'The class "{cls.__qualname__}" of adapter "{name}" '
                    "cannot be built as a cache adapter",
                    context={"adapter": name, "error": str(e)},
                ) from e
            if not isinstance(cache, CacheAdapter):
                raise ConfigurationError(
                    f'The class "{cls.__qualname__}" of adapter "{name}" '
                    "does not implement the cache adapter interface",
                    context={"adapter": name},
                )
            self.registry.bind_adapter_name(namespace, name)
            logger.debug("Made cache adapter", cls=cls.__qualname__)
        return cache
