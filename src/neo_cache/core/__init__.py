"""Cache core domain: entities, value objects, exceptions and protocols."""

from .entities import CacheEntry, normalize_tags
from .value_objects import KeyPattern, CacheStats, glob_to_regex
from .exceptions import (
    CacheError,
    CacheConfigurationError,
    CacheDependencyMissing,
    SerializationError,
    DeserializationError,
)
from .protocols import CacheStrategy

__all__ = [
    "CacheEntry",
    "normalize_tags",
    "KeyPattern",
    "CacheStats",
    "glob_to_regex",
    "CacheError",
    "CacheConfigurationError",
    "CacheDependencyMissing",
    "SerializationError",
    "DeserializationError",
    "CacheStrategy",
]
