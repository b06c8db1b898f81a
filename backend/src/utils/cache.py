"""Read-through caching for single place lookups."""

import logging
import threading
import time
from typing import Any, Callable

from cachetools import TTLCache

from utils.constants import (
    PLACE_CACHE_KEY_PREFIX,
    PLACE_CACHE_MAXSIZE,
    PLACE_CACHE_TTL_SECONDS,
)
from utils.exceptions import CacheMiss

logger = logging.getLogger(__name__)


class PointLookupCache:
    """Time-bounded read-through cache in front of fetches by identifier.

    Entries expire lazily once their age reaches the TTL (cachetools treats
    an entry inserted at t as gone from t + ttl onwards). Loads happen
    outside the lock, so concurrent misses for the same key may each fetch.
    A load that overlaps an invalidate() is returned to its caller but not
    stored, so a write can never be shadowed by the value it replaced.

    Args:
        ttl_seconds: Lifetime of an entry
        maxsize: Maximum number of live entries
        timer: Clock returning seconds, injectable for tests
        key_prefix: Namespace prepended to identifiers
    """

    def __init__(
        self,
        ttl_seconds: float = PLACE_CACHE_TTL_SECONDS,
        maxsize: int = PLACE_CACHE_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
        key_prefix: str = PLACE_CACHE_KEY_PREFIX,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()
        self._generation = 0

    def cache_key(self, entity_id: str) -> str:
        return f"{self.key_prefix}{entity_id}"

    def _lookup(self, key: str) -> Any:
        with self._lock:
            try:
                return self._entries[key]
            except KeyError:
                raise CacheMiss(key) from None

    def get(self, entity_id: str, loader: Callable[[str], Any]) -> Any:
        """Return the cached value, or load, store and return it.

        Args:
            entity_id: Identifier of the entity
            loader: Called with entity_id on a miss; returns None when absent

        Returns:
            The entity, or None if the loader found nothing (not cached)
        """
        key = self.cache_key(entity_id)
        try:
            return self._lookup(key)
        except CacheMiss:
            logger.debug("Cache miss for %s", key)

        with self._lock:
            generation = self._generation

        value = loader(entity_id)
        if value is None:
            return None

        with self._lock:
            if generation == self._generation:
                self._entries[key] = value
        return value

    def invalidate(self, entity_id: str) -> None:
        """Drop any entry for the identifier."""
        with self._lock:
            self._generation += 1
            self._entries.pop(self.cache_key(entity_id), None)

    def clear(self) -> None:
        """Drop every entry. Useful for testing."""
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __contains__(self, entity_id: str) -> bool:
        with self._lock:
            return self.cache_key(entity_id) in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
