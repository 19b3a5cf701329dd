"""Unit tests for the TTL cache."""

import asyncio

import pytest

from trivia_api.core.cache import CacheKey, TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(300.0, clock=clock)


class TestTTLCache:
    """Test TTL semantics of the cache."""

    def test_get_returns_stored_value(self, cache: TTLCache) -> None:
        """Test a fresh entry is returned."""
        cache.set("questions:a", ["q1", "q2"])

        assert cache.get("questions:a") == ["q1", "q2"]
        assert cache.stats().hits == 1

    def test_missing_key_is_a_miss(self, cache: TTLCache) -> None:
        """Test an unknown key returns None."""
        assert cache.get("questions:missing") is None
        assert cache.stats().misses == 1

    def test_entry_at_exact_ttl_is_still_live(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        """Test entries expire strictly after the TTL."""
        cache.set("k", "v")
        clock.advance(300.0)

        assert cache.get("k") == "v"

    def test_stale_entry_is_removed_on_read(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        """Test a stale entry is deleted and never returned again."""
        cache.set("k", "v")
        clock.advance(300.5)

        assert cache.get("k") is None
        assert len(cache) == 0
        assert cache.stats().expired == 1

        clock.now -= 300.5
        assert cache.get("k") is None

    def test_set_replaces_entry_and_resets_age(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        """Test overwriting a key refreshes its timestamp."""
        cache.set("k", "old")
        clock.advance(200.0)
        cache.set("k", "new")
        clock.advance(200.0)

        assert cache.get("k") == "new"

    def test_cleanup_removes_only_stale_entries(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        """Test cleanup sweeps expired entries and keeps live ones."""
        cache.set("old-1", 1)
        cache.set("old-2", 2)
        clock.advance(250.0)
        cache.set("fresh", 3)
        clock.advance(100.0)

        removed = cache.cleanup()

        assert removed == 2
        assert len(cache) == 1
        assert cache.get("fresh") == 3

    def test_delete_and_clear(self, cache: TTLCache) -> None:
        """Test explicit removal."""
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.delete("a") is True
        assert cache.delete("a") is False

        cache.clear()
        assert len(cache) == 0

    def test_hit_rate(self, cache: TTLCache) -> None:
        """Test hit rate is computed from hits and misses."""
        cache.set("a", 1)
        cache.get("a")
        cache.get("b")

        assert cache.stats().hit_rate == 0.5

    def test_non_positive_ttl_rejected(self) -> None:
        """Test the TTL must be positive."""
        with pytest.raises(ValueError):
            TTLCache(0)

    @pytest.mark.asyncio
    async def test_background_sweeper_removes_stale_entries(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        """Test the sweeper task calls cleanup periodically."""
        cache.set("k", "v")
        clock.advance(301.0)

        await cache.start_sweeper(0.01)
        try:
            await asyncio.sleep(0.05)
        finally:
            await cache.stop_sweeper()

        assert len(cache) == 0


class TestCacheKey:
    """Test cache key derivation."""

    def test_same_params_in_any_order_share_a_key(self) -> None:
        """Test key generation is order independent."""
        first = CacheKey.from_params("questions", {"limit": 10, "category": "Science"})
        second = CacheKey.from_params("questions", {"category": "Science", "limit": 10})

        assert first.key == second.key
        assert first.key.startswith("questions:")

    def test_none_values_are_ignored(self) -> None:
        """Test omitted and None filters map to the same key."""
        explicit = CacheKey.from_params("questions", {"limit": 10, "difficulty": None})
        omitted = CacheKey.from_params("questions", {"limit": 10})

        assert explicit.key == omitted.key

    def test_different_params_differ(self) -> None:
        """Test distinct request shapes get distinct keys."""
        easy = CacheKey.from_params("questions", {"limit": 10, "difficulty": "Easy"})
        hard = CacheKey.from_params("questions", {"limit": 10, "difficulty": "Hard"})

        assert easy.key != hard.key
