"""
Card data cache. A TTL-bounded store of Scryfall card data.

Keyed by Scryfall card ID. The cache is a lookup/store only: it never
fetches. Callers fetch on a miss and put() the result.

FRESHNESS:
- An entry is valid while `now - fetched_at_ms < ttl_ms`
- get() on a valid entry is a hit; on a missing or expired entry, a miss
- Failed fetches are never stored, so they are retried on the next read

EVICTION:
- Expired entries are dropped lazily on read, or replaced by the next put()
- Every `sweep_every`-th miss triggers a full sweep of expired entries
  (no timer thread; the cache stays roughly the size of the ids read
  within the last TTL window)
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from cardledger.config import DEFAULT_CARD_CACHE_SWEEP_EVERY, DEFAULT_CARD_CACHE_TTL_SECONDS
from cardledger.models.card import ProviderCardData

logger = logging.getLogger(__name__)


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass(frozen=True, slots=True)
class CacheStatistics:
    """Process-lifetime cache counters."""

    hits: int
    misses: int
    size: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass(slots=True)
class _CacheEntry:
    data: ProviderCardData
    fetched_at_ms: int


class CardCacheProtocol(Protocol):
    """Interface the enrichment services depend on."""

    def get(self, card_id: str) -> ProviderCardData | None: ...

    def put(self, card_id: str, data: ProviderCardData) -> None: ...

    def stats(self) -> CacheStatistics: ...


class CardCache:
    """
    In-memory TTL cache for provider card data.

    Safe to share between concurrent requests: every operation holds a lock
    for its (short, non-suspending) duration. Two concurrent misses on the
    same id may both fetch and both put; the later put wins.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_CARD_CACHE_TTL_SECONDS * 1000,
        sweep_every: int = DEFAULT_CARD_CACHE_SWEEP_EVERY,
        clock: Callable[[], int] = _monotonic_ms,
    ) -> None:
        """
        Args:
            ttl_ms: Maximum entry age in milliseconds
            sweep_every: Sweep expired entries after this many misses
            clock: Current time in milliseconds (injectable for tests)
        """
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        if sweep_every <= 0:
            raise ValueError(f"sweep_every must be positive, got {sweep_every}")

        self.ttl_ms = ttl_ms
        self.sweep_every = sweep_every
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = Lock()

    def _is_fresh(self, entry: _CacheEntry, now_ms: int) -> bool:
        return now_ms - entry.fetched_at_ms < self.ttl_ms

    def get(self, card_id: str) -> ProviderCardData | None:
        """Return fresh data for a card, or None (counted as a miss)."""
        with self._lock:
            now_ms = self._clock()
            entry = self._entries.get(card_id)

            if entry is not None and self._is_fresh(entry, now_ms):
                self._hits += 1
                return entry.data

            if entry is not None:
                del self._entries[card_id]

            self._misses += 1
            if self._misses % self.sweep_every == 0:
                self._sweep(now_ms)
            return None

    def put(self, card_id: str, data: ProviderCardData) -> None:
        """Store freshly fetched data, replacing any previous entry."""
        with self._lock:
            self._entries[card_id] = _CacheEntry(data=data, fetched_at_ms=self._clock())

    def stats(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(hits=self._hits, misses=self._misses, size=len(self._entries))

    def clear(self) -> None:
        """Drop all entries and reset counters (for testing)."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def _sweep(self, now_ms: int) -> None:
        """Evict every expired entry. Caller holds the lock."""
        expired = [
            card_id
            for card_id, entry in self._entries.items()
            if not self._is_fresh(entry, now_ms)
        ]
        for card_id in expired:
            del self._entries[card_id]

        logger.info(
            "CARD_CACHE_SWEEP",
            extra={"evicted": len(expired), "remaining": len(self._entries)},
        )


class NullCardCache:
    """A cache that stores nothing. Every get() is a miss."""

    def __init__(self) -> None:
        self._misses = 0

    def get(self, card_id: str) -> ProviderCardData | None:
        self._misses += 1
        return None

    def put(self, card_id: str, data: ProviderCardData) -> None:
        return None

    def stats(self) -> CacheStatistics:
        return CacheStatistics(hits=0, misses=self._misses, size=0)
