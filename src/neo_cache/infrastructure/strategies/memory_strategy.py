"""Memory cache strategy.

ONLY in-memory implementation - cache storage in process memory for
development, testing, and single-instance deployments.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Set

from ...core.entities.cache_entry import CacheEntry, normalize_tags
from ...core.value_objects.cache_stats import CacheStats
from ...core.value_objects.key_pattern import KeyPattern
from ...utils.datetime import Clock, current_millis
from ..serializers.entry_codec import encode_value, decode_value

logger = logging.getLogger(__name__)


class MemoryCacheStrategy:
    """Process-local cache strategy.

    Values are stored encoded, so every read returns a detached copy and
    non-JSON values are rejected exactly as the persistent backends do.
    A single lock makes each operation atomic with respect to the others.
    """

    def __init__(
        self,
        default_ttl: Optional[int] = None,
        clock: Clock = current_millis,
    ):
        if default_ttl is not None and default_ttl < 0:
            raise ValueError("default_ttl must be a non-negative number of milliseconds")

        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    @property
    def default_ttl(self) -> Optional[int]:
        return self._default_ttl

    def _remove(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False

        for tag in entry.tags:
            members = self._tag_index.get(tag)
            if members is None:
                continue
            members.discard(key)
            if not members:
                del self._tag_index[tag]
        return True

    async def get(self, key: str, *, return_expired: bool = False) -> Optional[Any]:
        """Get cached value."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                if not return_expired:
                    self._remove(key)
                    return None

            return decode_value(entry.value)

    async def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store entry, replacing old tag memberships."""
        entry = CacheEntry.create(
            key,
            encode_value(key, value),
            now=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
            tags=tags,
        )

        async with self._lock:
            self._remove(key)
            self._entries[key] = entry
            for tag in entry.tags:
                self._tag_index[tag].add(key)

    async def has(self, key: str) -> bool:
        """Check presence of a live entry."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False

            if entry.is_expired(self._clock()):
                self._remove(key)
                return False

            return True

    async def delete(self, key: str) -> bool:
        """Delete entry and its tag memberships."""
        async with self._lock:
            return self._remove(key)

    async def delete_by_tags(self, tags: Iterable[str]) -> int:
        """Delete entries carrying any of the tags."""
        async with self._lock:
            keys_to_delete: Set[str] = set()
            for tag in normalize_tags(tags):
                keys_to_delete.update(self._tag_index.get(tag, ()))

            deleted = sum(1 for key in keys_to_delete if self._remove(key))

        logger.debug(f"Invalidated {deleted} cache entries by tags")
        return deleted

    async def clear(self) -> int:
        """Remove everything; return the entry count."""
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._tag_index.clear()

        logger.debug(f"Cleared {count} cache entries")
        return count

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List cache keys, optionally filtered by glob."""
        async with self._lock:
            all_keys = list(self._entries)

        key_pattern = KeyPattern.optional(pattern)
        if key_pattern is None:
            return all_keys
        return key_pattern.filter(all_keys)

    async def stats(self) -> CacheStats:
        """Count stored entries and entries currently past expiry."""
        async with self._lock:
            now = self._clock()
            expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
            return CacheStats(size=len(self._entries), expired=expired)

    async def cleanup(self) -> int:
        """Delete expired entries."""
        async with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired_keys:
                self._remove(key)

        logger.debug(f"Cleanup removed {len(expired_keys)} cache entries")
        return len(expired_keys)

    async def close(self) -> None:
        """Nothing to release; stored entries are kept."""
        return None

    async def __aenter__(self) -> "MemoryCacheStrategy":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_memory_strategy(default_ttl: Optional[int] = None, **kwargs: Any) -> MemoryCacheStrategy:
    """Create memory cache strategy."""
    return MemoryCacheStrategy(default_ttl=default_ttl, **kwargs)
