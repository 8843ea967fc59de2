"""Cache domain entities."""

from .cache_entry import CacheEntry, normalize_tags

__all__ = [
    "CacheEntry",
    "normalize_tags",
]
