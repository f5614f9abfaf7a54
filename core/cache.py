"""
YAO - TTL Cache

Injectable get/set/invalidate cache used for the book-list cache (keyed by
requesting user) and the single-book content cache (keyed by book id).

- O(1) get/set over an OrderedDict, oldest entry evicted past max_size
- TTL expiry measured against an injectable Clock, so tests can advance
  time by hand instead of sleeping
- Guarded by a re-entrant lock; overlapping writes for the same key are
  idempotent overwrites
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, Optional, Protocol, TypeVar

T = TypeVar("T")


class Clock(Protocol):
    """Monotonic time source, in seconds."""

    def now(self) -> float:
        ...


class SystemClock:
    """Clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry with its insertion time."""

    value: T
    created_at: float


@dataclass
class CacheStats:
    """Statistics for cache monitoring."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    entry_count: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "evictions": self.evictions,
            "entry_count": self.entry_count,
        }


class TTLCache(Generic[T]):
    """
    Bounded cache with time-to-live expiry.

    A ttl_seconds of None (or 0) keeps entries until invalidated.

    Usage:
        cache = TTLCache[list](ttl_seconds=300, clock=ManualClock())
        cache.set("anonymous", books)
        books = cache.get("anonymous")
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_size: int = 1024,
        clock: Optional[Clock] = None,
    ):
        self.ttl_seconds = ttl_seconds or None
        self.max_size = max_size
        self.clock: Clock = clock or SystemClock()

        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def _is_expired(self, entry: CacheEntry[T]) -> bool:
        if self.ttl_seconds is None:
            return False
        return self.clock.now() - entry.created_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[T]:
        """Return the live value for key, or None on a miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self._stats.misses += 1
                return None

            if self._is_expired(entry):
                del self._entries[key]
                self._stats.entry_count = len(self._entries)
                self._stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: T) -> None:
        """Store value under key, restarting its TTL."""
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
                self._stats.evictions += 1
            self._entries[key] = CacheEntry(value=value, created_at=self.clock.now())
            self._stats.entry_count = len(self._entries)

    def contains(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry)

    def invalidate(self, key: Optional[str] = None) -> int:
        """Drop one key, or every key when none is given. Returns the count dropped."""
        with self._lock:
            if key is None:
                count = len(self._entries)
                self._entries.clear()
            else:
                count = 1 if self._entries.pop(key, None) is not None else 0
            self._stats.entry_count = len(self._entries)
            return count

    def get_stats(self) -> CacheStats:
        """Get a snapshot of cache statistics."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                entry_count=len(self._entries),
            )

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))
