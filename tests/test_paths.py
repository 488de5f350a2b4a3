"""
Tests for namespace and key path mapping.
"""

from __future__ import annotations

import hashlib
import re
import zlib
from pathlib import Path

import pytest

from nscache.cache.paths import (
    ENTRY_SUFFIX,
    crc32_hex,
    get_hash_function,
    path_for,
)
from nscache.exceptions import ConfigurationError


class TestHashFunctions:
    """Test hashing algorithm resolution."""

    def test_crc32_is_eight_hex_digits(self) -> None:
        """Test the crc32 format."""
        digest = crc32_hex("default")

        assert re.fullmatch(r"[0-9a-f]{8}", digest)
        assert int(digest, 16) == zlib.crc32(b"default")

    def test_crc32_pads_small_values(self) -> None:
        """Test that short checksums are zero padded."""
        assert len(crc32_hex("")) == 8
        assert crc32_hex("") == "00000000"

    def test_crc32_by_name(self) -> None:
        """Test looking up crc32."""
        assert get_hash_function("crc32") is crc32_hex
        assert get_hash_function("CRC32") is crc32_hex

    @pytest.mark.parametrize("name", ["md5", "sha1", "sha256", "sha512", "blake2b"])
    def test_hashlib_algorithms(self, name: str) -> None:
        """Test hashlib-backed algorithms."""
        hash_fn = get_hash_function(name)
        assert hash_fn("some key") == hashlib.new(name, b"some key").hexdigest()

    def test_deterministic(self) -> None:
        """Test that the same input always maps to the same segment."""
        hash_fn = get_hash_function("sha256")
        assert hash_fn("foo") == hash_fn("foo")
        assert hash_fn("foo") != hash_fn("bar")

    def test_unknown_algorithm(self) -> None:
        """Test that unknown algorithms are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            get_hash_function("rot13")

        assert "available" in exc_info.value.context
        assert "crc32" in exc_info.value.context["available"]

    def test_variable_length_algorithm(self) -> None:
        """Test that shake digests are rejected."""
        with pytest.raises(ConfigurationError):
            get_hash_function("shake_128")


class TestPathFor:
    """Test path construction."""

    def test_namespace_directory(self, temp_dir: Path) -> None:
        """Test the directory of a namespace."""
        path = path_for(temp_dir, "default", crc32_hex)
        assert path == temp_dir / crc32_hex("default")

    def test_entry_file(self, temp_dir: Path) -> None:
        """Test the file of a key."""
        path = path_for(temp_dir, "default", crc32_hex, "foo")

        assert path == temp_dir / crc32_hex("default") / f"{crc32_hex('foo')}{ENTRY_SUFFIX}"
        assert path.suffix == ".dat"
        assert path.parent == path_for(temp_dir, "default", crc32_hex)

    def test_string_base_dir(self) -> None:
        """Test that a string base directory is accepted."""
        path = path_for("cache", "ns", crc32_hex, "k")
        assert isinstance(path, Path)
        assert path.parts[0] == "cache"

    def test_keys_with_separators_stay_inside_namespace(self, temp_dir: Path) -> None:
        """Test that key text never leaks into the path."""
        path = path_for(temp_dir, "ns", crc32_hex, "../../etc/passwd")

        assert path.parent == temp_dir / crc32_hex("ns")
        assert ".." not in path.parts

    def test_empty_key(self, temp_dir: Path) -> None:
        """Test that an empty key still names a file."""
        path = path_for(temp_dir, "ns", crc32_hex, "")
        assert path.name == f"00000000{ENTRY_SUFFIX}"
