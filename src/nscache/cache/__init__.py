"""
Cache adapters and their building blocks.

- base.py: Result sentinels, adapter contract, shared options
- paths.py: Namespace/key to path mapping and hash functions
- codecs.py: Storing/restoring filter pairs
- registry.py: Namespace instance registry
- file_cache.py: File system adapter
"""

from nscache.cache.base import (
    DAY,
    HOUR,
    MINUTE,
    MONTH,
    WEEK,
    YEAR,
    CacheAdapter,
    CacheOptions,
    CacheResult,
)
from nscache.cache.file_cache import FileCache, FileCacheOptions
from nscache.cache.registry import NamespaceRegistry

__all__ = [
    "CacheAdapter",
    "CacheOptions",
    "CacheResult",
    "DAY",
    "FileCache",
    "FileCacheOptions",
    "HOUR",
    "MINUTE",
    "MONTH",
    "NamespaceRegistry",
    "WEEK",
    "YEAR",
]
