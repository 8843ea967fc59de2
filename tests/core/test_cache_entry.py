"""Tests for the cache entry entity and statistics value object."""

import pytest

from neo_cache.core.entities.cache_entry import CacheEntry, normalize_tags
from neo_cache.core.value_objects.cache_stats import CacheStats
from neo_cache.utils.datetime import current_millis, is_past

NOW = 1_700_000_000_000


class TestCacheEntry:
    """Test CacheEntry creation and expiry."""

    def test_create_with_ttl(self):
        entry = CacheEntry.create("k", "v", now=NOW, ttl=1500, tags=["a", "b"])

        assert entry.expires_at == NOW + 1500
        assert entry.created_at == NOW
        assert entry.tags == ["a", "b"]

    @pytest.mark.parametrize("ttl", [None, 0])
    def test_falsy_ttl_never_expires(self, ttl):
        entry = CacheEntry.create("k", "v", now=NOW, ttl=ttl)

        assert entry.expires_at is None
        assert entry.is_expired(NOW + 10 ** 12) is False
        assert entry.ttl_seconds() is None

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            CacheEntry.create("k", "v", now=NOW, ttl=-1)

    def test_expiry_is_strict(self):
        entry = CacheEntry.create("k", "v", now=NOW, ttl=1000)

        assert entry.is_expired(NOW + 1000) is False
        assert entry.is_expired(NOW + 1001) is True

    @pytest.mark.parametrize("ttl,seconds", [(1, 1), (999, 1), (1000, 1), (1001, 2), (60_000, 60)])
    def test_ttl_seconds_rounds_up(self, ttl, seconds):
        assert CacheEntry.create("k", "v", now=NOW, ttl=ttl).ttl_seconds() == seconds


class TestNormalizeTags:
    """Test tag normalization."""

    def test_dedupes_keeping_first_seen_order(self):
        assert normalize_tags(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    @pytest.mark.parametrize("tags", [None, [], ()])
    def test_empty(self, tags):
        assert normalize_tags(tags) == []

    def test_accepts_any_iterable(self):
        assert normalize_tags(tag for tag in ("x", "y")) == ["x", "y"]

    def test_single_string_rejected(self):
        with pytest.raises(TypeError):
            normalize_tags("users")


class TestCacheStats:
    """Test CacheStats value object."""

    def test_live_and_dict(self):
        stats = CacheStats(size=5, expired=2)

        assert stats.live == 3
        assert stats.to_dict() == {"size": 5, "expired": 2}

    def test_defaults_to_empty(self):
        assert CacheStats() == CacheStats(size=0, expired=0)


class TestDatetimeHelpers:
    """Test epoch-millisecond helpers."""

    def test_is_past(self):
        assert is_past(None, NOW) is False
        assert is_past(NOW, NOW) is False
        assert is_past(NOW - 1, NOW) is True

    def test_current_millis_is_epoch_milliseconds(self):
        assert current_millis() > NOW
