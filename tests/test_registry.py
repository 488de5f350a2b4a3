"""
Tests for the namespace registry.
"""

from __future__ import annotations

import pytest

from nscache.cache.registry import NamespaceRegistry
from nscache.exceptions import ConfigurationError


class TestNamespaceRegistry:
    """Test instance bookkeeping by namespace."""

    def test_empty(self, registry: NamespaceRegistry) -> None:
        """Test a fresh registry."""
        assert len(registry) == 0
        assert registry.get("default") is None
        assert "default" not in registry

    def test_register_and_get(self, registry: NamespaceRegistry) -> None:
        """Test registering an instance."""
        cache = object()

        assert registry.register("foo", cache) is cache  # type: ignore[arg-type]
        assert registry.get("foo") is cache
        assert "foo" in registry

    def test_reregister_same_instance(self, registry: NamespaceRegistry) -> None:
        """Test that registering the owner again is allowed."""
        cache = object()
        registry.register("foo", cache)  # type: ignore[arg-type]
        registry.register("foo", cache)  # type: ignore[arg-type]

        assert len(registry) == 1

    def test_register_conflict(self, registry: NamespaceRegistry) -> None:
        """Test that a namespace cannot change owner."""
        first = object()
        registry.register("foo", first)  # type: ignore[arg-type]

        with pytest.raises(ConfigurationError) as exc_info:
            registry.register("foo", object())  # type: ignore[arg-type]

        assert exc_info.value.context == {"namespace": "foo"}
        assert registry.get("foo") is first

    def test_names_are_sorted(self, registry: NamespaceRegistry) -> None:
        """Test listing and iterating namespaces."""
        for name in ("zeta", "alpha", "mid"):
            registry.register(name, object())  # type: ignore[arg-type]

        assert registry.names() == ["alpha", "mid", "zeta"]
        assert list(registry) == ["alpha", "mid", "zeta"]

    def test_adapter_name_binding(self, registry: NamespaceRegistry) -> None:
        """Test recording the adapter that owns a namespace."""
        assert registry.adapter_name("foo") is None

        registry.bind_adapter_name("foo", "filesystem")

        assert registry.adapter_name("foo") == "filesystem"
        assert registry.adapter_name("bar") is None

    def test_clear(self, registry: NamespaceRegistry) -> None:
        """Test forgetting all instances."""
        registry.register("foo", object())  # type: ignore[arg-type]
        registry.bind_adapter_name("foo", "filesystem")
        registry.clear()

        assert len(registry) == 0
        assert registry.get("foo") is None
        assert registry.adapter_name("foo") is None
