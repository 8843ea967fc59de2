"""Cache application layer."""

from .services import CacheManager, create_cache_manager

__all__ = [
    "CacheManager",
    "create_cache_manager",
]
