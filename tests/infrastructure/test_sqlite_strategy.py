"""Tests for the SQLite cache strategy schema, transactions and healing."""

import asyncio

import pytest

from neo_cache.core.exceptions import CacheDependencyMissing
from neo_cache.infrastructure.strategies import sqlite_strategy as sqlite_strategy_module
from neo_cache.infrastructure.strategies.sqlite_strategy import (
    SqliteCacheStrategy,
    create_sqlite_strategy,
)


async def fetch_all(strategy, sql, parameters=()):
    db = await strategy._get_db()
    async with db.execute(sql, parameters) as cursor:
        return await cursor.fetchall()


class TestSqliteSchema:
    """Test tables and rows written to SQLite."""

    @pytest.mark.asyncio
    async def test_tables_created_on_first_use(self, sqlite_strategy):
        rows = await fetch_all(
            sqlite_strategy,
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name",
        )

        assert [row[0] for row in rows] == ["cache_entries", "cache_tags"]

    @pytest.mark.asyncio
    async def test_entry_row_layout(self, sqlite_strategy, clock):
        await sqlite_strategy.set("user:1", {"name": "Ada"}, ttl=1500, tags=["users", "team:7"])

        entries = await fetch_all(
            sqlite_strategy, "SELECT key, value, expires_at, created_at FROM cache_entries"
        )
        tags = await fetch_all(sqlite_strategy, "SELECT key, tag FROM cache_tags ORDER BY tag")

        assert [tuple(row) for row in entries] == [
            ("user:1", '{"name":"Ada"}', clock.now + 1500, clock.now),
        ]
        assert [tuple(row) for row in tags] == [("user:1", "team:7"), ("user:1", "users")]

    @pytest.mark.asyncio
    async def test_rewrite_replaces_tag_rows(self, sqlite_strategy):
        await sqlite_strategy.set("k", 1, tags=["a", "b"])
        await sqlite_strategy.set("k", 2, tags=["c"])

        tags = await fetch_all(sqlite_strategy, "SELECT tag FROM cache_tags WHERE key = ?", ("k",))

        assert [row[0] for row in tags] == ["c"]

    @pytest.mark.asyncio
    async def test_parent_directory_created(self, tmp_path, clock):
        db_path = tmp_path / "nested" / "dir" / "cache.db"
        strategy = SqliteCacheStrategy(db_path=str(db_path), clock=clock)

        await strategy.set("k", 1)
        await strategy.close()

        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_entries_persist_across_instances(self, tmp_path, clock):
        db_path = str(tmp_path / "cache.db")

        async with SqliteCacheStrategy(db_path=db_path, clock=clock) as writer:
            await writer.set("k", {"v": 1}, tags=["t"])

        async with SqliteCacheStrategy(db_path=db_path, clock=clock) as reader:
            assert await reader.get("k") == {"v": 1}
            assert await reader.delete_by_tags(["t"]) == 1

    @pytest.mark.asyncio
    async def test_in_memory_database(self, clock):
        async with SqliteCacheStrategy(db_path=":memory:", clock=clock) as strategy:
            await strategy.set("k", 1)

            assert await strategy.get("k") == 1


class TestSqliteTransactions:
    """Test write atomicity."""

    @pytest.mark.asyncio
    async def test_failed_tag_insert_rolls_back_entry(self, sqlite_strategy, monkeypatch):
        await sqlite_strategy.set("k", "old", tags=["a"])
        db = await sqlite_strategy._get_db()

        async def failing_executemany(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(db, "executemany", failing_executemany)

        with pytest.raises(RuntimeError):
            await sqlite_strategy.set("k", "new", tags=["b"])

        monkeypatch.undo()
        assert await sqlite_strategy.get("k") == "old"
        assert await sqlite_strategy.delete_by_tags(["a"]) == 1

    @pytest.mark.asyncio
    async def test_reader_never_sees_uncommitted_write(self, sqlite_strategy):
        reader = None

        with pytest.raises(RuntimeError):
            async with sqlite_strategy._transaction() as db:
                await db.execute(
                    "INSERT INTO cache_entries (key, value, expires_at, created_at) VALUES (?, ?, ?, ?)",
                    ("k", '"uncommitted"', None, 0),
                )
                reader = asyncio.create_task(sqlite_strategy.get("k"))
                await asyncio.sleep(0.05)
                assert not reader.done()
                raise RuntimeError("abort")

        assert await reader is None

    @pytest.mark.asyncio
    async def test_concurrent_rewrites_leave_one_consistent_entry(self, sqlite_strategy):
        await asyncio.gather(
            *(sqlite_strategy.set("k", i, tags=[f"t{i}"]) for i in range(10))
        )

        tags = await fetch_all(sqlite_strategy, "SELECT tag FROM cache_tags WHERE key = ?", ("k",))
        value = await sqlite_strategy.get("k")

        assert [row[0] for row in tags] == [f"t{value}"]


class TestSqliteCorruptRows:
    """Test that undecodable values are healed on access."""

    async def _corrupt(self, strategy, key):
        await strategy.set(key, "placeholder", tags=["t"])
        db = await strategy._get_db()
        await db.execute("UPDATE cache_entries SET value = ? WHERE key = ?", ("{not json", key))

    @pytest.mark.asyncio
    async def test_get_deletes_corrupt_row(self, sqlite_strategy):
        await self._corrupt(sqlite_strategy, "k")

        assert await sqlite_strategy.get("k") is None
        assert await sqlite_strategy.keys() == []

    @pytest.mark.asyncio
    async def test_has_deletes_corrupt_row(self, sqlite_strategy):
        await self._corrupt(sqlite_strategy, "k")

        assert await sqlite_strategy.has("k") is False
        assert await sqlite_strategy.delete_by_tags(["t"]) == 0

    @pytest.mark.asyncio
    async def test_cleanup_removes_expired_and_corrupt_rows(self, sqlite_strategy, clock):
        await sqlite_strategy.set("stale", 1, ttl=1000)
        await sqlite_strategy.set("live", 2)
        await self._corrupt(sqlite_strategy, "bad")
        clock.advance(2000)

        assert await sqlite_strategy.cleanup() == 2
        assert await sqlite_strategy.keys() == ["live"]


class TestSqliteConfiguration:
    """Test path resolution and missing driver handling."""

    def test_explicit_path_wins(self, monkeypatch):
        monkeypatch.setenv("CACHE_SQLITE_PATH", "/tmp/env.db")

        assert SqliteCacheStrategy(db_path="/tmp/arg.db").db_path == "/tmp/arg.db"

    def test_env_path(self, monkeypatch):
        monkeypatch.setenv("CACHE_SQLITE_PATH", "/tmp/env.db")

        assert create_sqlite_strategy().db_path == "/tmp/env.db"

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("CACHE_SQLITE_PATH", raising=False)

        assert SqliteCacheStrategy().db_path == ".cache.db"

    def test_negative_default_ttl_rejected(self):
        with pytest.raises(ValueError):
            SqliteCacheStrategy(default_ttl=-1)

    @pytest.mark.asyncio
    async def test_default_ttl_applies_when_none_given(self, tmp_path, clock):
        async with SqliteCacheStrategy(
            db_path=str(tmp_path / "cache.db"), default_ttl=1000, clock=clock
        ) as strategy:
            await strategy.set("k", 1)
            clock.advance(1001)

            assert await strategy.get("k") is None

    @pytest.mark.asyncio
    async def test_missing_driver_raises_on_first_use(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sqlite_strategy_module, "aiosqlite", None)
        strategy = SqliteCacheStrategy(db_path=str(tmp_path / "cache.db"))

        with pytest.raises(CacheDependencyMissing) as exc_info:
            await strategy.get("k")

        assert exc_info.value.dependency == "aiosqlite"
        assert exc_info.value.to_dict()["code"] == "CACHE_DEPENDENCY_MISSING"
