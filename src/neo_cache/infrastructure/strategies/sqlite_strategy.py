"""SQLite cache strategy.

ONLY SQLite implementation - tag-aware cache storage in an embedded SQLite
database file, persistent across process restarts.

Two tables:
- ``cache_entries`` stores encoded values with expiry and creation time
- ``cache_tags`` stores (key, tag) associations, cascading on entry delete

Every multi-statement write runs in one ``BEGIN IMMEDIATE`` transaction,
so unlike the Redis pipeline it is isolated as well as atomic. Reads and
transactions share one connection and one lock, so a reader never sees
another coroutine's uncommitted work.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable, List, Optional

try:
    import aiosqlite
except ImportError:
    aiosqlite = None

from ...config.settings import resolve_sqlite_path
from ...core.entities.cache_entry import CacheEntry, normalize_tags
from ...core.exceptions.cache_dependency_missing import CacheDependencyMissing
from ...core.exceptions.deserialization_error import DeserializationError
from ...core.value_objects.cache_stats import CacheStats
from ...core.value_objects.key_pattern import KeyPattern
from ...utils.datetime import Clock, current_millis
from ..serializers.entry_codec import encode_value, decode_value

logger = logging.getLogger(__name__)

IN_MEMORY_DATABASE = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at INTEGER,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS cache_tags (
    key TEXT NOT NULL,
    tag TEXT NOT NULL,
    PRIMARY KEY (key, tag),
    FOREIGN KEY (key) REFERENCES cache_entries(key) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_cache_tags_tag ON cache_tags(tag);
CREATE INDEX IF NOT EXISTS idx_cache_entries_expires_at ON cache_entries(expires_at);
"""

EXPIRED_CONDITION = "expires_at IS NOT NULL AND expires_at < ?"


class SqliteCacheStrategy:
    """SQLite cache strategy.

    Cache strategy backed by an aiosqlite connection with:
    - Lazily opened connection and schema (single-flight on first use)
    - Transactional set/delete/clear/cleanup serialized per instance
    - Indexed tag lookups and expiry scans
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        default_ttl: Optional[int] = None,
        clock: Clock = current_millis,
    ):
        """Initialize SQLite cache strategy.

        Args:
            db_path: Database file; falls back to CACHE_SQLITE_PATH, then .cache.db
            default_ttl: TTL in milliseconds used when set() gets none
            clock: Epoch-millisecond clock
        """
        if default_ttl is not None and default_ttl < 0:
            raise ValueError("default_ttl must be a non-negative number of milliseconds")

        self._db_path = resolve_sqlite_path(db_path)
        self._default_ttl = default_ttl
        self._clock = clock
        self._db = None
        self._connect_lock = asyncio.Lock()
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def default_ttl(self) -> Optional[int]:
        return self._default_ttl

    async def _get_db(self):
        """Get database connection, opening it and creating tables on first use."""
        if self._db is not None:
            return self._db

        async with self._connect_lock:
            if self._db is None:
                if aiosqlite is None:
                    raise CacheDependencyMissing.sqlite()

                if self._db_path != IN_MEMORY_DATABASE:
                    Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

                db = await aiosqlite.connect(self._db_path, isolation_level=None)
                try:
                    await db.execute("PRAGMA foreign_keys = ON")
                    await db.executescript(SCHEMA)
                except BaseException:
                    await db.close()
                    raise
                self._db = db
                logger.info(f"SQLite cache opened at {self._db_path}")
        return self._db

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[Any]:
        """Run statements in one write transaction."""
        db = await self._get_db()
        async with self._lock:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
                await db.execute("COMMIT")
            except BaseException:
                await db.execute("ROLLBACK")
                raise

    async def _fetchone(self, sql: str, parameters: Iterable[Any] = ()) -> Optional[Any]:
        db = await self._get_db()
        async with self._lock:
            async with db.execute(sql, tuple(parameters)) as cursor:
                return await cursor.fetchone()

    async def _fetchall(self, sql: str, parameters: Iterable[Any] = ()) -> List[Any]:
        db = await self._get_db()
        async with self._lock:
            async with db.execute(sql, tuple(parameters)) as cursor:
                return list(await cursor.fetchall())

    async def _read_row(self, key: str) -> Optional[CacheEntry]:
        """Read entry row; undecodable values are deleted and read as absent."""
        row = await self._fetchone(
            "SELECT value, expires_at, created_at FROM cache_entries WHERE key = ?",
            (key,),
        )
        if row is None:
            return None

        try:
            value = decode_value(row[0])
        except DeserializationError as e:
            logger.warning(f"Removing corrupt cache entry {key}: {e.message}")
            await self.delete(key)
            return None

        return CacheEntry(key=key, value=value, expires_at=row[1], created_at=row[2])

    async def get(self, key: str, *, return_expired: bool = False) -> Optional[Any]:
        """Get cached value."""
        entry = await self._read_row(key)
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
        """Store entry and replace its tag rows in one transaction."""
        entry = CacheEntry.create(
            key,
            value,
            now=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
            tags=tags,
        )
        serialized = encode_value(key, entry.value)

        async with self._transaction() as db:
            await db.execute("DELETE FROM cache_tags WHERE key = ?", (key,))
            await db.execute(
                """
                INSERT INTO cache_entries (key, value, expires_at, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    expires_at = excluded.expires_at,
                    created_at = excluded.created_at
                """,
                (key, serialized, entry.expires_at, entry.created_at),
            )
            if entry.tags:
                await db.executemany(
                    "INSERT INTO cache_tags (key, tag) VALUES (?, ?)",
                    [(key, tag) for tag in entry.tags],
                )

    async def has(self, key: str) -> bool:
        """Check presence of a live entry."""
        entry = await self._read_row(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            await self.delete(key)
            return False

        return True

    async def delete(self, key: str) -> bool:
        """Delete entry and its tag rows."""
        async with self._transaction() as db:
            await db.execute("DELETE FROM cache_tags WHERE key = ?", (key,))
            cursor = await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            return cursor.rowcount > 0

    async def delete_by_tags(self, tags: Iterable[str]) -> int:
        """Delete entries carrying any of the tags, one key at a time."""
        tag_list = normalize_tags(tags)
        if not tag_list:
            return 0

        placeholders = ",".join("?" for _ in tag_list)
        rows = await self._fetchall(
            f"SELECT DISTINCT key FROM cache_tags WHERE tag IN ({placeholders})",
            tag_list,
        )

        deleted = 0
        for (key,) in rows:
            if await self.delete(key):
                deleted += 1

        logger.debug(f"Invalidated {deleted} cache entries by tags")
        return deleted

    async def clear(self) -> int:
        """Delete all rows; return the entry count before deletion."""
        async with self._transaction() as db:
            async with db.execute("SELECT COUNT(*) FROM cache_entries") as cursor:
                (count,) = await cursor.fetchone()
            await db.execute("DELETE FROM cache_tags")
            await db.execute("DELETE FROM cache_entries")

        logger.debug(f"Cleared {count} cache entries")
        return count

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List cache keys, optionally filtered by glob."""
        rows = await self._fetchall("SELECT key FROM cache_entries")
        all_keys = [row[0] for row in rows]

        key_pattern = KeyPattern.optional(pattern)
        if key_pattern is None:
            return all_keys
        return key_pattern.filter(all_keys)

    async def stats(self) -> CacheStats:
        """Count stored entries and entries currently past expiry."""
        (size,) = await self._fetchone("SELECT COUNT(*) FROM cache_entries")
        (expired,) = await self._fetchone(
            f"SELECT COUNT(*) FROM cache_entries WHERE {EXPIRED_CONDITION}",
            (self._clock(),),
        )
        return CacheStats(size=size, expired=expired)

    async def cleanup(self) -> int:
        """Delete expired rows, then rows whose value cannot be decoded."""
        now = self._clock()

        async with self._transaction() as db:
            await db.execute(
                f"DELETE FROM cache_tags WHERE key IN "
                f"(SELECT key FROM cache_entries WHERE {EXPIRED_CONDITION})",
                (now,),
            )
            cursor = await db.execute(
                f"DELETE FROM cache_entries WHERE {EXPIRED_CONDITION}",
                (now,),
            )
            removed = cursor.rowcount

            corrupt: List[str] = []
            async with db.execute("SELECT key, value FROM cache_entries") as rows:
                async for key, value in rows:
                    try:
                        decode_value(value)
                    except DeserializationError:
                        corrupt.append(key)

            for key in corrupt:
                await db.execute("DELETE FROM cache_tags WHERE key = ?", (key,))
                cursor = await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                removed += cursor.rowcount

        if corrupt:
            logger.warning(f"Cleanup removed {len(corrupt)} corrupt cache entries")
        logger.debug(f"Cleanup removed {removed} cache entries")
        return removed

    async def close(self) -> None:
        """Close the database connection; the next operation reopens it."""
        if self._db is None:
            return

        db, self._db = self._db, None
        await db.close()
        logger.info(f"SQLite cache closed at {self._db_path}")

    async def __aenter__(self) -> "SqliteCacheStrategy":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_sqlite_strategy(
    db_path: Optional[str] = None,
    default_ttl: Optional[int] = None,
    **kwargs: Any,
) -> SqliteCacheStrategy:
    """Create SQLite cache strategy.

    Args:
        db_path: Database file path (environment fallback when omitted)
        default_ttl: Default TTL in milliseconds
        **kwargs: Extra SqliteCacheStrategy options

    Returns:
        Configured SQLite cache strategy instance
    """
    return SqliteCacheStrategy(db_path=db_path, default_ttl=default_ttl, **kwargs)
