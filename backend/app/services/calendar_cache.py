# backend/app/services/calendar_cache.py
"""
Adaptive in-process cache for computed calendar views.

Entries are keyed by (user id, view type, reference calendar day), so any two
reference timestamps on the same day share one entry.

TTL adapts to demand. Each view type has a base TTL; a write uses half of it
unless the key was read more than 5 times since its previous write (1x base)
or more than 10 times (2x base). Expired entries are dropped on read together
with their access count.

Capacity is bounded. Once the entry count reaches the eviction threshold
(80% of max size by default) a write first removes the least-accessed 20%
of entries, at least one.

The cache is an accelerator only: every value can be recomputed from the
database, so losing entries never affects correctness.
"""

from datetime import date, datetime
import logging
import math
import threading
import time
from typing import Any, Callable, Dict, NamedTuple, Optional, Union

from ..core.config import settings
from ..core.enums import CalendarViewType
from ..monitoring.prometheus_metrics import prometheus_metrics
from .date_range_calculator import parse_view_type

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheKey(NamedTuple):
    user_id: str
    view_type: str
    day: date

    def __str__(self) -> str:
        return f"{self.user_id}:{self.view_type}:{self.day.isoformat()}"


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class CalendarViewCache:
    """
    Thread-safe calendar view cache with adaptive TTL and frequency-based eviction.

    Construct one per process and inject it into services; tests build their
    own instance with a fake ``clock``.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        base_ttls: Optional[Dict[str, float]] = None,
        eviction_threshold: Optional[float] = None,
        eviction_ratio: Optional[float] = None,
        clock: Clock = time.monotonic,
    ):
        self.max_size = max_size or settings.calendar_cache_max_size
        self.base_ttls = dict(base_ttls or settings.calendar_cache_base_ttls())
        self.eviction_threshold = eviction_threshold or settings.calendar_cache_eviction_threshold
        self.eviction_ratio = eviction_ratio or settings.calendar_cache_eviction_ratio
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._access_counts: Dict[CacheKey, int] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @staticmethod
    def make_key(
        user_id: str,
        view_type: Union[str, CalendarViewType],
        reference_date: Union[date, datetime],
    ) -> CacheKey:
        """Key for a view; datetimes are truncated to their calendar day."""
        day = reference_date.date() if isinstance(reference_date, datetime) else reference_date
        return CacheKey(str(user_id), parse_view_type(view_type).value, day)

    def get(
        self,
        user_id: str,
        view_type: Union[str, CalendarViewType],
        reference_date: Union[date, datetime],
    ) -> Optional[Any]:
        """Cached view, or None on miss. Expired entries are evicted here."""
        key = self.make_key(user_id, view_type, reference_date)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() < entry.expires_at:
                self._access_counts[key] = self._access_counts.get(key, 0) + 1
                self._hits += 1
                logger.debug(f"Cache hit for key: {key} (access count: {self._access_counts[key]})")
                prometheus_metrics.record_cache_lookup(key.view_type, "hit")
                return entry.value

            if entry is not None:
                self._remove(key)
                self._expirations += 1
                result = "expired"
            else:
                result = "miss"
            self._misses += 1

        logger.debug(f"Cache {result} for key: {key}")
        prometheus_metrics.record_cache_lookup(key.view_type, result)
        return None

    def set(
        self,
        user_id: str,
        view_type: Union[str, CalendarViewType],
        reference_date: Union[date, datetime],
        value: Any,
    ) -> None:
        """Store a view with a TTL derived from the key's access history."""
        key = self.make_key(user_id, view_type, reference_date)
        with self._lock:
            evicted = 0
            if len(self._entries) >= self.max_size * self.eviction_threshold:
                evicted = self._evict_least_accessed()

            ttl = self.ttl_for(key)
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
            self._access_counts[key] = 0

        prometheus_metrics.record_cache_evictions(evicted)
        logger.debug(f"Cache set for key: {key} with TTL: {ttl}s")

    def ttl_for(self, key: CacheKey) -> float:
        """TTL in seconds for the next write of ``key``."""
        base_ttl = self.base_ttls[key.view_type]
        previous_access_count = self._access_counts.get(key, 0)
        if previous_access_count > 10:
            return base_ttl * 2
        if previous_access_count > 5:
            return base_ttl
        return base_ttl / 2

    def clear_user(self, user_id: str) -> int:
        """Drop every entry of ``user_id``; returns how many were removed."""
        with self._lock:
            keys = [key for key in self._entries if key.user_id == str(user_id)]
            for key in keys:
                self._remove(key)
        logger.debug(f"Cleared {len(keys)} cache entries for user: {user_id}")
        return len(keys)

    def clear_all(self) -> None:
        with self._lock:
            self._entries.clear()
            self._access_counts.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0
        logger.debug("Cleared all calendar cache entries")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
                "total_accesses": sum(self._access_counts.values()),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[call-overload]
            return entry is not None and self._clock() < entry.expires_at

    def access_count(self, key: CacheKey) -> int:
        with self._lock:
            return self._access_counts.get(key, 0)

    def _evict_least_accessed(self) -> int:
        # Caller holds the lock. sorted() is stable, so ties keep insertion order.
        ranked = sorted(self._entries, key=lambda k: self._access_counts.get(k, 0))
        count = max(1, math.floor(len(self._entries) * self.eviction_ratio))
        for key in ranked[:count]:
            self._remove(key)
            logger.debug(f"Evicted cache entry: {key}")
        self._evictions += count
        return count

    def _remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        self._access_counts.pop(key, None)
