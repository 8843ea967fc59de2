"""Cache strategy implementations.

One strategy implementation per file following maximum separation.
"""

from .redis_strategy import RedisCacheStrategy, create_redis_strategy
from .sqlite_strategy import SqliteCacheStrategy, create_sqlite_strategy
from .memory_strategy import MemoryCacheStrategy, create_memory_strategy
from .factory import create_cache_strategy, STRATEGY_BUILDERS

__all__ = [
    "RedisCacheStrategy",
    "create_redis_strategy",
    "SqliteCacheStrategy",
    "create_sqlite_strategy",
    "MemoryCacheStrategy",
    "create_memory_strategy",
    "create_cache_strategy",
    "STRATEGY_BUILDERS",
]
