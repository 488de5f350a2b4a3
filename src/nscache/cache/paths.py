"""
Mapping of namespaces and keys to filesystem paths.

Layout:
    <base_dir>/<hash(namespace)>/<hash(key)>.dat

Hash functions only need to produce deterministic, path-safe segments;
keys whose hashes collide share one entry file.
"""

from __future__ import annotations

import hashlib
import zlib
from pathlib import Path
from typing import Callable

from nscache.exceptions import ConfigurationError

HashFunction = Callable[[str], str]

ENTRY_SUFFIX = ".dat"


def crc32_hex(value: str) -> str:
    """Hash a string with CRC-32, formatted as 8 lowercase hex digits."""
    return f"{zlib.crc32(value.encode('utf-8')) & 0xFFFFFFFF:08x}"


HASH_FUNCTIONS: dict[str, HashFunction] = {
    "crc32": crc32_hex,
}


def get_hash_function(name: str) -> HashFunction:
    """Resolve a hashing algorithm identifier to a hash function.

    Args:
        name: "crc32" or any fixed-length hashlib algorithm (md5, sha1, sha256, ...).

    Returns:
        Function mapping a string to a hex digest.

    Raises:
        ConfigurationError: If the algorithm is unknown or has no fixed digest.
    """
    algorithm = str(name).lower()
    if algorithm in HASH_FUNCTIONS:
        return HASH_FUNCTIONS[algorithm]

    try:
        probe = hashlib.new(algorithm)
    except ValueError as e:
        raise ConfigurationError(
            f'Unknown hashing algorithm "{name}"',
            context={"available": sorted(HASH_FUNCTIONS) + sorted(hashlib.algorithms_guaranteed)},
        ) from e

    # shake_* digests need an explicit length
    if probe.digest_size == 0:
        raise ConfigurationError(
            f'Hashing algorithm "{name}" has no fixed digest size',
        )

    def _hexdigest(value: str) -> str:
        return hashlib.new(algorithm, value.encode("utf-8")).hexdigest()

    return _hexdigest


def path_for(
    base_dir: Path | str,
    namespace: str,
    hash_fn: HashFunction,
    key: str | None = None,
) -> Path:
    """Get the namespace directory, or the entry file for a key.

    Args:
        base_dir: Base cache directory.
        namespace: Namespace name.
        hash_fn: Function turning names into path segments.
        key: Optional entry key.

    Returns:
        ``base_dir/hash(namespace)`` without a key,
        ``base_dir/hash(namespace)/hash(key).dat`` with one.
    """
    directory = Path(base_dir) / hash_fn(namespace)
    if key is None:
        return directory
    return directory / f"{hash_fn(key)}{ENTRY_SUFFIX}"
