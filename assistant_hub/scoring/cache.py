# FILE: assistant_hub/scoring/cache.py
"""
Bounded TTL cache shared by the scorer and the semantic index.

Eviction policy (applied before inserting a new key into a full cache):
1. Drop every expired entry.
2. If nothing had expired, drop the oldest `eviction_fraction` of entries
   by write timestamp (at least one).

Reads never refresh an entry's timestamp; writes always do. All mutation is
synchronous, so it is atomic with respect to the event loop.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


def now_ms(clock: Clock = time.time) -> int:
    """Current time in epoch milliseconds."""
    return int(clock() * 1000)


@dataclass
class CacheEntry(Generic[T]):
    value: T
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class BoundedTTLCache(Generic[T]):
    """Size-bounded map with per-entry TTL."""

    def __init__(
        self,
        max_entries: int,
        ttl_s: float,
        eviction_fraction: float = 0.2,
        clock: Clock = time.time,
        name: str = "cache",
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.ttl_s = ttl_s
        self.eviction_fraction = eviction_fraction
        self._clock = clock
        self._name = name
        self._entries: Dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        if key in self._entries:
            # Re-insert so dict order follows write time
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            self.evict()
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock(), ttl=self.ttl_s)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def evict(self) -> int:
        """Run one eviction round. Returns the number of entries removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"[{self._name}] evicted {len(expired)} expired entries")
            return len(expired)

        count = max(1, math.ceil(len(self._entries) * self.eviction_fraction))
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].timestamp)[:count]
        for key, _ in oldest:
            del self._entries[key]
        logger.debug(f"[{self._name}] evicted {len(oldest)} oldest entries")
        return len(oldest)


__all__ = [
    "Clock",
    "now_ms",
    "CacheEntry",
    "BoundedTTLCache",
]
