"""Unit tests for the in-memory result cache."""

import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cleanbin.cache import (
    CACHE_KEY_PREFIX,
    MemoryCache,
    cache_key_for,
    estimate_size,
)
from cleanbin.cache.memory import FALLBACK_ENTRY_SIZE


class ManualClock:
    """Clock advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock):
    """Sweeper-less cache driven by the manual clock."""
    with MemoryCache(default_ttl=60, sweep_interval=None, clock=clock) as memory:
        yield memory


class TestCacheKey:
    """Tests for cache_key_for."""

    def test_format(self, tmp_path: Path) -> None:
        """Keys have the prefix and 16 hex characters."""
        key = cache_key_for(tmp_path)

        assert key.startswith(CACHE_KEY_PREFIX)
        assert len(key) == len(CACHE_KEY_PREFIX) + 16

    def test_equivalent_spellings(self, tmp_path: Path) -> None:
        """Equivalent spellings of a path share a key."""
        assert cache_key_for(tmp_path) == cache_key_for(f"{tmp_path}/./sub/..")

    def test_different_paths(self, tmp_path: Path) -> None:
        """Different paths get different keys."""
        assert cache_key_for(tmp_path / "a") != cache_key_for(tmp_path / "b")


class TestGetSet:
    """Tests for get and set."""

    def test_round_trip(self, cache: MemoryCache) -> None:
        """A stored value is returned."""
        cache.set("k", {"count": 3})

        assert cache.get("k") == {"count": 3}
        assert cache.exists("k")

    def test_missing(self, cache: MemoryCache) -> None:
        """Unknown keys return None."""
        assert cache.get("missing") is None

    def test_overwrite(self, cache: MemoryCache) -> None:
        """Setting an existing key replaces the value."""
        cache.set("k", 1)
        cache.set("k", 2)

        assert cache.get("k") == 2

    def test_expiry_with_default_ttl(self, cache: MemoryCache, clock: ManualClock) -> None:
        """Entries stop being served after the default TTL."""
        cache.set("k", "v")
        clock.advance(seconds=59)
        assert cache.get("k") == "v"

        clock.advance(seconds=1)

        assert cache.get("k") is None
        assert not cache.exists("k")

    def test_per_entry_ttl(self, cache: MemoryCache, clock: ManualClock) -> None:
        """A per-entry TTL overrides the default."""
        cache.set("short", 1, ttl=timedelta(seconds=5))
        cache.set("long", 2, ttl=600)
        clock.advance(seconds=10)

        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_real_clock_expiry(self) -> None:
        """A 50ms entry read after 100ms is a miss."""
        with MemoryCache(sweep_interval=None) as memory:
            memory.set("k", "v", ttl=0.05)
            time.sleep(0.1)

            assert memory.get("k") is None
            assert memory.get_statistics().misses == 1

    @pytest.mark.parametrize("key", ["", "   "])
    def test_empty_key_rejected(self, cache: MemoryCache, key: str) -> None:
        """Blank keys are rejected by every keyed operation."""
        with pytest.raises(ValueError):
            cache.get(key)
        with pytest.raises(ValueError):
            cache.set(key, 1)
        with pytest.raises(ValueError):
            cache.remove(key)
        with pytest.raises(ValueError):
            cache.exists(key)


class TestMaintenance:
    """Tests for remove, clear, get_keys and cleanup_expired."""

    def test_remove(self, cache: MemoryCache) -> None:
        """remove reports whether the key existed."""
        cache.set("k", 1)

        assert cache.remove("k") is True
        assert cache.remove("k") is False

    def test_clear(self, cache: MemoryCache) -> None:
        """clear drops every entry."""
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()

        assert cache.get_keys() == []

    def test_get_keys_excludes_expired(self, cache: MemoryCache, clock: ManualClock) -> None:
        """Expired entries are not listed."""
        cache.set("old", 1, ttl=1)
        cache.set("new", 2)
        clock.advance(seconds=2)

        assert cache.get_keys() == ["new"]

    def test_cleanup_expired(self, cache: MemoryCache, clock: ManualClock) -> None:
        """cleanup_expired evicts expired entries only."""
        cache.set("a", 1, ttl=1)
        cache.set("b", 2, ttl=1)
        cache.set("c", 3)
        clock.advance(seconds=5)

        assert cache.cleanup_expired() == 2
        assert cache.get_statistics().total_entries == 1

    def test_background_sweeper(self) -> None:
        """The sweeper thread evicts expired entries without lookups."""
        with MemoryCache(sweep_interval=0.02) as memory:
            memory.set("k", "v", ttl=0.01)
            deadline = time.monotonic() + 2.0
            while memory.get_statistics().total_entries and time.monotonic() < deadline:
                time.sleep(0.01)

            stats = memory.get_statistics()

        assert stats.total_entries == 0
        assert stats.misses == 0


class TestStatistics:
    """Tests for get_statistics."""

    def test_hits_and_misses(self, cache: MemoryCache) -> None:
        """Every lookup is either a hit or a miss."""
        cache.set("k", 1)
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.get_statistics()

        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.lookups == 3
        assert stats.hit_rate == pytest.approx(2 / 3)

    def test_expired_entries_counted(self, cache: MemoryCache, clock: ManualClock) -> None:
        """Stored but expired entries are reported until evicted."""
        cache.set("k", 1, ttl=1)
        clock.advance(seconds=2)

        stats = cache.get_statistics()

        assert stats.total_entries == 1
        assert stats.expired_entries == 1

    def test_total_size(self, cache: MemoryCache) -> None:
        """total_size sums the size estimates."""
        cache.set("bytes", b"12345")
        cache.set("json", {"a": 1})

        assert cache.get_statistics().total_size == 5 + estimate_size({"a": 1})

    def test_empty_hit_rate(self, cache: MemoryCache) -> None:
        """No lookups means a zero hit rate."""
        assert cache.get_statistics().hit_rate == 0.0


class TestEstimateSize:
    """Tests for estimate_size."""

    def test_bytes(self) -> None:
        """Bytes count their length."""
        assert estimate_size(b"abc") == 3

    def test_json(self) -> None:
        """JSON-serializable values count two bytes per character."""
        assert estimate_size([1, 2]) == len("[1, 2]") * 2

    def test_fallback(self) -> None:
        """Unserializable values use the fallback size."""
        assert estimate_size(object()) == FALLBACK_ENTRY_SIZE
