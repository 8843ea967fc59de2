"""Cache infrastructure: serializers and backend strategies."""

from .serializers import encode_value, decode_value, encode_entry, decode_entry
from .strategies import (
    RedisCacheStrategy,
    create_redis_strategy,
    SqliteCacheStrategy,
    create_sqlite_strategy,
    MemoryCacheStrategy,
    create_memory_strategy,
    create_cache_strategy,
)

__all__ = [
    "encode_value",
    "decode_value",
    "encode_entry",
    "decode_entry",
    "RedisCacheStrategy",
    "create_redis_strategy",
    "SqliteCacheStrategy",
    "create_sqlite_strategy",
    "MemoryCacheStrategy",
    "create_memory_strategy",
    "create_cache_strategy",
]
