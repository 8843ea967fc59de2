"""neo-cache: tag-aware, TTL-aware cache strategies.

One async contract (CacheStrategy) with interchangeable backends:
- Redis: entry documents plus tag index sets, pipelined writes
- SQLite: entries and tag tables, transactional writes
- Memory: process-local, for development and tests
"""

from .__version__ import __version__
from .core import (
    CacheEntry,
    CacheStats,
    KeyPattern,
    CacheStrategy,
    CacheError,
    CacheConfigurationError,
    CacheDependencyMissing,
    SerializationError,
    DeserializationError,
)
from .config import CacheSettings, get_cache_settings, LoggingConfig
from .infrastructure import (
    RedisCacheStrategy,
    create_redis_strategy,
    SqliteCacheStrategy,
    create_sqlite_strategy,
    MemoryCacheStrategy,
    create_memory_strategy,
    create_cache_strategy,
)
from .application import CacheManager, create_cache_manager

__all__ = [
    "__version__",
    # Core
    "CacheEntry",
    "CacheStats",
    "KeyPattern",
    "CacheStrategy",
    # Exceptions
    "CacheError",
    "CacheConfigurationError",
    "CacheDependencyMissing",
    "SerializationError",
    "DeserializationError",
    # Configuration
    "CacheSettings",
    "get_cache_settings",
    "LoggingConfig",
    # Strategies
    "RedisCacheStrategy",
    "create_redis_strategy",
    "SqliteCacheStrategy",
    "create_sqlite_strategy",
    "MemoryCacheStrategy",
    "create_memory_strategy",
    "create_cache_strategy",
    # Services
    "CacheManager",
    "create_cache_manager",
]
