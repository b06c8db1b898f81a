"""Tests for the read-through lookup cache."""

import threading
from unittest.mock import Mock

import pytest

from utils.cache import PointLookupCache
from utils.constants import PLACE_CACHE_TTL_SECONDS


class TestCacheConstruction:
    """Test cache configuration."""

    def test_default_ttl_is_one_minute(self):
        """Test the default TTL policy is 60 seconds."""
        assert PLACE_CACHE_TTL_SECONDS == 60
        assert PointLookupCache().ttl_seconds == 60

    def test_non_positive_ttl_rejected(self):
        """Test that a zero or negative TTL is rejected."""
        with pytest.raises(ValueError):
            PointLookupCache(ttl_seconds=0)

    def test_cache_key_uses_prefix(self):
        """Test keys are namespaced."""
        assert PointLookupCache().cache_key("abc") == "place:abc"


class TestReadThrough:
    """Test read-through behaviour."""

    def test_miss_calls_loader_and_stores(self, place_cache):
        """Test that a miss loads once and the next read is served from cache."""
        loader = Mock(return_value={"id": "p1"})

        first = place_cache.get("p1", loader)
        second = place_cache.get("p1", loader)

        assert first == {"id": "p1"}
        assert second == {"id": "p1"}
        loader.assert_called_once_with("p1")
        assert "p1" in place_cache

    def test_absent_values_not_cached(self, place_cache):
        """Test that None from the loader is returned but not stored."""
        loader = Mock(return_value=None)

        assert place_cache.get("missing", loader) is None
        assert place_cache.get("missing", loader) is None
        assert loader.call_count == 2
        assert "missing" not in place_cache

    def test_entry_expires_after_ttl(self, place_cache, fake_clock):
        """Test that an entry older than the TTL is reloaded."""
        loader = Mock(side_effect=[{"v": 1}, {"v": 2}])

        assert place_cache.get("p1", loader) == {"v": 1}
        fake_clock.advance(59)
        assert place_cache.get("p1", loader) == {"v": 1}
        fake_clock.advance(2)
        assert place_cache.get("p1", loader) == {"v": 2}
        assert loader.call_count == 2

    def test_entry_gone_at_exactly_ttl(self, place_cache, fake_clock):
        """Test an entry is served just before the TTL and reloaded at exactly the TTL."""
        loader = Mock(side_effect=[{"v": 1}, {"v": 2}])

        place_cache.get("p1", loader)
        fake_clock.advance(59)
        assert place_cache.get("p1", loader) == {"v": 1}
        fake_clock.advance(1)

        assert place_cache.get("p1", loader) == {"v": 2}
        assert loader.call_count == 2

    def test_loader_errors_propagate(self, place_cache):
        """Test that loader failures reach the caller and nothing is cached."""
        loader = Mock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            place_cache.get("p1", loader)
        assert "p1" not in place_cache

    def test_keys_are_independent(self, place_cache):
        """Test that different ids are cached separately."""
        loader = Mock(side_effect=lambda place_id: {"id": place_id})

        assert place_cache.get("a", loader) == {"id": "a"}
        assert place_cache.get("b", loader) == {"id": "b"}
        assert len(place_cache) == 2


class TestInvalidation:
    """Test invalidation."""

    def test_invalidate_forces_fresh_load(self, place_cache):
        """Test that after invalidate the next read hits the loader again."""
        loader = Mock(side_effect=[{"v": 1}, {"v": 2}])

        place_cache.get("p1", loader)
        place_cache.invalidate("p1")

        assert place_cache.get("p1", loader) == {"v": 2}
        assert loader.call_count == 2

    def test_invalidate_unknown_key_is_noop(self, place_cache):
        """Test that invalidating an absent key does not raise."""
        place_cache.invalidate("never-cached")
        assert len(place_cache) == 0

    def test_invalidate_during_load_discards_result(self, place_cache):
        """Test that a load overlapping a write is not stored."""

        def loader(place_id):
            # A write lands while the stale value is being fetched
            place_cache.invalidate(place_id)
            return {"v": "stale"}

        assert place_cache.get("p1", loader) == {"v": "stale"}
        assert "p1" not in place_cache

    def test_clear(self, place_cache):
        """Test that clear drops everything."""
        loader = Mock(side_effect=lambda place_id: {"id": place_id})
        place_cache.get("a", loader)
        place_cache.get("b", loader)

        place_cache.clear()

        assert len(place_cache) == 0

    def test_len_ignores_expired_entries(self, place_cache, fake_clock):
        """Test that expired entries are not counted."""
        place_cache.get("a", lambda place_id: {"id": place_id})
        fake_clock.advance(61)

        assert len(place_cache) == 0


class TestConcurrency:
    """Test concurrent access."""

    def test_concurrent_reads_and_invalidations(self):
        """Test the cache stays consistent under concurrent use."""
        cache = PointLookupCache(ttl_seconds=60)
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    key = f"p{i % 10}"
                    value = cache.get(key, lambda place_id: {"id": place_id})
                    assert value == {"id": key}
                    if i % 7 == n % 7:
                        cache.invalidate(key)
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) <= 10
