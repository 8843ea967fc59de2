"""Cache domain exceptions.

One exception per file following maximum separation architecture.
"""

from .base import CacheError, CacheConfigurationError
from .cache_dependency_missing import CacheDependencyMissing
from .serialization_error import SerializationError
from .deserialization_error import DeserializationError

__all__ = [
    "CacheError",
    "CacheConfigurationError",
    "CacheDependencyMissing",
    "SerializationError",
    "DeserializationError",
]
