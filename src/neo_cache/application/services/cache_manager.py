"""Cache manager orchestration service.

ONLY cache orchestration - high-level API business features use for
caching, on top of whichever CacheStrategy is configured.

Following maximum separation architecture - one file = one purpose.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ...core.protocols.cache_strategy import CacheStrategy
from ...core.value_objects.cache_stats import CacheStats

logger = logging.getLogger(__name__)

ValueFactory = Callable[[], Union[Any, Awaitable[Any]]]


class CacheManager:
    """Cache manager orchestration service.

    High-level cache service providing:
    - Read-through caching with ``get_or_set``
    - Tag invalidation and tenant-scoped key helpers
    - Hit/miss counters for monitoring

    Errors from the strategy and from value factories propagate; nothing is
    cached when a factory fails.
    """

    def __init__(self, strategy: CacheStrategy):
        """Initialize cache manager.

        Args:
            strategy: Backend strategy used for storage
        """
        self._strategy = strategy
        self._metrics = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "invalidations": 0,
        }

    @property
    def strategy(self) -> CacheStrategy:
        return self._strategy

    @staticmethod
    def tenant_key(tenant_id: str, key: str) -> str:
        """Build a tenant-scoped cache key."""
        return f"tenant:{tenant_id}:{key}"

    async def get(self, key: str, return_expired: bool = False) -> Optional[Any]:
        """Get cached value, counting hits and misses."""
        value = await self._strategy.get(key, return_expired=return_expired)
        if value is None:
            self._metrics["misses"] += 1
        else:
            self._metrics["hits"] += 1
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store value with optional TTL (milliseconds) and tags."""
        await self._strategy.set(key, value, ttl=ttl, tags=tags)
        self._metrics["sets"] += 1

    async def has(self, key: str) -> bool:
        return await self._strategy.has(key)

    async def delete(self, key: str) -> bool:
        return await self._strategy.delete(key)

    async def get_or_set(
        self,
        key: str,
        value_factory: ValueFactory,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Any:
        """Get cached value or compute, store and return it.

        Args:
            key: Cache key
            value_factory: Sync or async callable producing the value on a miss
            ttl: Optional TTL in milliseconds
            tags: Optional tags for the stored entry

        Returns:
            Cached or computed value
        """
        value = await self.get(key)
        if value is not None:
            return value

        computed_value = value_factory()
        if inspect.isawaitable(computed_value):
            computed_value = await computed_value

        if computed_value is not None:
            await self.set(key, computed_value, ttl=ttl, tags=tags)
        return computed_value

    async def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Delete every entry carrying any of the tags."""
        deleted = await self._strategy.delete_by_tags(tags)
        self._metrics["invalidations"] += deleted
        return deleted

    async def invalidate_tenant(self, tenant_id: str) -> int:
        """Delete every entry keyed under the tenant scope."""
        keys = await self._strategy.keys(self.tenant_key(tenant_id, "*"))
        deleted = 0
        for key in keys:
            if await self._strategy.delete(key):
                deleted += 1
        self._metrics["invalidations"] += deleted
        return deleted

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        return await self._strategy.keys(pattern)

    async def stats(self) -> CacheStats:
        return await self._strategy.stats()

    async def cleanup(self) -> int:
        removed = await self._strategy.cleanup()
        if removed:
            logger.info(f"Cache cleanup removed {removed} entries")
        return removed

    async def clear(self) -> int:
        return await self._strategy.clear()

    async def close(self) -> None:
        await self._strategy.close()

    def metrics(self) -> Dict[str, Any]:
        """Get hit/miss counters and hit rate percentage."""
        lookups = self._metrics["hits"] + self._metrics["misses"]
        hit_rate = (self._metrics["hits"] / lookups) * 100 if lookups else 0.0
        return {**self._metrics, "hit_rate_percentage": hit_rate}

    async def __aenter__(self) -> "CacheManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_cache_manager(strategy: CacheStrategy) -> CacheManager:
    """Create cache manager with dependencies."""
    return CacheManager(strategy=strategy)
