"""Cache value objects."""

from .key_pattern import KeyPattern, glob_to_regex
from .cache_stats import CacheStats

__all__ = [
    "KeyPattern",
    "glob_to_regex",
    "CacheStats",
]
