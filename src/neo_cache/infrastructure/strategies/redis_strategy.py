"""Redis cache strategy.

ONLY Redis implementation - tag-aware cache storage on a remote Redis
server, persistent across restarts and shareable between processes.

Storage layout:
- ``cache:{key}`` holds the JSON entry document
- ``tag:{tag}`` is a set of raw cache keys that carried the tag when
  written; members whose entry expired natively or was healed are
  pruned lazily by tag invalidation

Writes that touch both structures are sent as one MULTI/EXEC pipeline.
That gives batch-visibility atomicity (no half-applied tag state between
round trips) but no isolation against other clients: concurrent writers
to the same key race and the last pipeline to land wins.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

try:
    import redis.asyncio as redis
    from redis.asyncio import Redis
except ImportError:
    redis = None
    Redis = None

from ...config.settings import resolve_redis_url
from ...core.entities.cache_entry import CacheEntry, normalize_tags
from ...core.exceptions.cache_dependency_missing import CacheDependencyMissing
from ...core.exceptions.deserialization_error import DeserializationError
from ...core.value_objects.cache_stats import CacheStats
from ...core.value_objects.key_pattern import KeyPattern
from ...utils.datetime import Clock, current_millis
from ..serializers.entry_codec import encode_entry, decode_entry

logger = logging.getLogger(__name__)


class RedisCacheStrategy:
    """Redis cache strategy.

    Cache strategy backed by Redis with:
    - Lazily created, shared client (single-flight on first use)
    - Logical expiry from the stored ``expiresAt`` plus a Redis-native
      expiry rounded up to whole seconds when a TTL is set
    - Secondary tag index sets for tag invalidation without value scans
    - SCAN-based key enumeration
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        default_ttl: Optional[int] = None,
        key_prefix: str = "cache:",
        tag_prefix: str = "tag:",
        scan_count: int = 500,
        clock: Clock = current_millis,
        redis_client: Optional[Any] = None,
    ):
        """Initialize Redis cache strategy.

        Args:
            redis_url: Connection URI; falls back to REDIS_URL, CACHE_REDIS_URL,
                then redis://localhost:6379
            default_ttl: TTL in milliseconds used when set() gets none
            key_prefix: Prefix of entry keys
            tag_prefix: Prefix of tag index keys
            scan_count: COUNT hint for SCAN iterations
            clock: Epoch-millisecond clock
            redis_client: Pre-built async client; skips URL connection
        """
        if default_ttl is not None and default_ttl < 0:
            raise ValueError("default_ttl must be a non-negative number of milliseconds")

        self._redis_url = resolve_redis_url(redis_url)
        self._default_ttl = default_ttl
        self._key_prefix = key_prefix
        self._tag_prefix = tag_prefix
        self._scan_count = scan_count
        self._clock = clock
        self._client: Optional[Redis] = redis_client
        self._owns_client = redis_client is None
        self._connect_lock = asyncio.Lock()

    @property
    def redis_url(self) -> str:
        return self._redis_url

    @property
    def default_ttl(self) -> Optional[int]:
        return self._default_ttl

    def _cache_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._tag_prefix}{tag}"

    def _strip_prefix(self, cache_key: str) -> str:
        return cache_key[len(self._key_prefix):]

    async def _get_client(self):
        """Get Redis client, creating it on first use."""
        if self._client is not None:
            return self._client

        async with self._connect_lock:
            if self._client is None:
                if redis is None:
                    raise CacheDependencyMissing.redis()
                self._client = redis.from_url(self._redis_url, decode_responses=True)
                self._owns_client = True
                logger.info("Redis cache client created")
        return self._client

    async def _scan(self, match: str) -> List[str]:
        client = await self._get_client()
        found: List[str] = []
        async for cache_key in client.scan_iter(match=match, count=self._scan_count):
            found.append(cache_key)
        return found

    async def _read_entry(self, key: str) -> Optional[CacheEntry]:
        """Read entry; corrupt documents are deleted and read as absent."""
        client = await self._get_client()
        cache_key = self._cache_key(key)
        data = await client.get(cache_key)
        if data is None:
            return None

        try:
            return decode_entry(data, key)
        except DeserializationError as e:
            logger.warning(f"Removing corrupt cache entry {key}: {e.message}")
            await client.delete(cache_key)
            return None

    async def get(self, key: str, *, return_expired: bool = False) -> Optional[Any]:
        """Get cached value."""
        entry = await self._read_entry(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            if return_expired:
                return entry.value
            await self.delete(key)
            return None

        return entry.value

    async def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store entry, replacing old tag memberships in the same pipeline."""
        client = await self._get_client()
        cache_key = self._cache_key(key)

        entry = CacheEntry.create(
            key,
            value,
            now=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
            tags=tags,
        )
        serialized = encode_entry(entry)

        old_tags: List[str] = []
        old_data = await client.get(cache_key)
        if old_data is not None:
            try:
                old_tags = decode_entry(old_data, key).tags
            except DeserializationError:
                # Overwritten below; its tag memberships are unknowable
                old_tags = []

        async with client.pipeline(transaction=True) as pipe:
            for tag in old_tags:
                if tag not in entry.tags:
                    pipe.srem(self._tag_key(tag), key)

            ttl_seconds = entry.ttl_seconds()
            if ttl_seconds is not None:
                pipe.set(cache_key, serialized, ex=ttl_seconds)
            else:
                pipe.set(cache_key, serialized)

            for tag in entry.tags:
                pipe.sadd(self._tag_key(tag), key)

            await pipe.execute()

    async def has(self, key: str) -> bool:
        """Check presence of a live entry."""
        entry = await self._read_entry(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            await self.delete(key)
            return False

        return True

    async def delete(self, key: str) -> bool:
        """Delete entry and remove it from its tag sets."""
        client = await self._get_client()
        cache_key = self._cache_key(key)

        data = await client.get(cache_key)
        if data is None:
            return False

        try:
            entry = decode_entry(data, key)
        except DeserializationError:
            await client.delete(cache_key)
            return True

        async with client.pipeline(transaction=True) as pipe:
            for tag in entry.tags:
                pipe.srem(self._tag_key(tag), key)
            pipe.delete(cache_key)
            await pipe.execute()
        return True

    async def delete_by_tags(self, tags: Iterable[str]) -> int:
        """Delete entries carrying any of the tags, one key at a time.

        Tag sets can hold stale members: native expiry and corrupt-entry
        healing drop ``cache:{key}`` without touching ``tag:*``. A member is
        only deleted when its stored entry still carries one of the tags;
        otherwise it is removed from the tag sets that listed it.
        """
        client = await self._get_client()
        candidates: Dict[str, Set[str]] = {}

        for tag in normalize_tags(tags):
            for key in await client.smembers(self._tag_key(tag)):
                candidates.setdefault(key, set()).add(tag)

        deleted = 0
        stale: Dict[str, Set[str]] = {}
        for key, listed_under in candidates.items():
            cache_key = self._cache_key(key)
            data = await client.get(cache_key)
            if data is None:
                stale[key] = listed_under
                continue

            try:
                entry = decode_entry(data, key)
            except DeserializationError as e:
                logger.warning(f"Removing corrupt cache entry {key}: {e.message}")
                await client.delete(cache_key)
                stale[key] = listed_under
                deleted += 1
                continue

            outdated = listed_under.difference(entry.tags)
            if outdated:
                stale[key] = outdated
            if outdated != listed_under and await self.delete(key):
                deleted += 1

        if stale:
            async with client.pipeline(transaction=True) as pipe:
                for key, listed_under in stale.items():
                    for tag in listed_under:
                        pipe.srem(self._tag_key(tag), key)
                await pipe.execute()

        logger.debug(f"Invalidated {deleted} cache entries by tags, pruned {len(stale)} stale tag members")
        return deleted

    async def clear(self) -> int:
        """Delete all entry and tag index keys; return the entry count."""
        client = await self._get_client()
        cache_keys = await self._scan(f"{self._key_prefix}*")
        tag_keys = await self._scan(f"{self._tag_prefix}*")

        if not cache_keys and not tag_keys:
            return 0

        async with client.pipeline(transaction=True) as pipe:
            for redis_key in [*cache_keys, *tag_keys]:
                pipe.delete(redis_key)
            await pipe.execute()

        logger.debug(f"Cleared {len(cache_keys)} cache entries")
        return len(cache_keys)

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List cache keys, optionally filtered by glob."""
        key_pattern = KeyPattern.optional(pattern)
        if key_pattern is None:
            match = f"{self._key_prefix}*"
        else:
            match = key_pattern.to_redis_match(self._key_prefix)

        result = [self._strip_prefix(cache_key) for cache_key in await self._scan(match)]
        if key_pattern is None:
            return result
        return key_pattern.filter(result)

    async def stats(self) -> CacheStats:
        """Count stored entries and entries currently past expiry."""
        client = await self._get_client()
        cache_keys = await self._scan(f"{self._key_prefix}*")
        now = self._clock()

        size = 0
        expired = 0
        for cache_key in cache_keys:
            data = await client.get(cache_key)
            if data is None:
                continue
            size += 1
            try:
                if decode_entry(data, self._strip_prefix(cache_key)).is_expired(now):
                    expired += 1
            except DeserializationError:
                continue

        return CacheStats(size=size, expired=expired)

    async def cleanup(self) -> int:
        """Delete expired and corrupt entries."""
        client = await self._get_client()
        cache_keys = await self._scan(f"{self._key_prefix}*")
        now = self._clock()

        removed = 0
        for cache_key in cache_keys:
            data = await client.get(cache_key)
            if data is None:
                continue
            key = self._strip_prefix(cache_key)
            try:
                entry = decode_entry(data, key)
            except DeserializationError:
                await client.delete(cache_key)
                removed += 1
                continue
            if entry.is_expired(now) and await self.delete(key):
                removed += 1

        logger.debug(f"Cleanup removed {removed} cache entries")
        return removed

    async def close(self) -> None:
        """Close the client if this strategy created it.

        Injected clients belong to the caller and are left open. A closed
        strategy reconnects lazily on its next operation.
        """
        if self._client is None or not self._owns_client:
            return

        client, self._client = self._client, None
        await client.aclose()
        logger.info("Redis cache client closed")

    async def __aenter__(self) -> "RedisCacheStrategy":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_redis_strategy(
    redis_url: Optional[str] = None,
    default_ttl: Optional[int] = None,
    **kwargs: Any,
) -> RedisCacheStrategy:
    """Create Redis cache strategy.

    Args:
        redis_url: Redis connection URI (environment fallback when omitted)
        default_ttl: Default TTL in milliseconds
        **kwargs: Extra RedisCacheStrategy options

    Returns:
        Configured Redis cache strategy instance
    """
    return RedisCacheStrategy(redis_url=redis_url, default_ttl=default_ttl, **kwargs)
