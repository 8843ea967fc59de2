"""Cache protocol interfaces."""

from .cache_strategy import CacheStrategy

__all__ = [
    "CacheStrategy",
]
