"""
nscache - namespaced, TTL-aware key/value cache on the local filesystem.
"""

from nscache.cache import (
    DAY,
    HOUR,
    MINUTE,
    MONTH,
    WEEK,
    YEAR,
    CacheResult,
    FileCache,
    NamespaceRegistry,
)
from nscache.exceptions import CacheError, ConfigurationError, UnknownAdapterError
from nscache.factory import CacheFactory

__version__ = "0.1.0"

__all__ = [
    "CacheError",
    "CacheFactory",
    "CacheResult",
    "ConfigurationError",
    "DAY",
    "FileCache",
    "HOUR",
    "MINUTE",
    "MONTH",
    "NamespaceRegistry",
    "UnknownAdapterError",
    "WEEK",
    "YEAR",
    "__version__",
]
