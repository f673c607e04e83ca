"""
Client-side cache for serialized authorization payloads.

This module provides a TTL-based in-memory store keyed by user identity, so
that switching back to a recently seen user does not cost a round-trip to
the policy server.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Represents a cached authorization payload."""
    payload: str
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if this cache entry has expired."""
        return now > self.timestamp + self.ttl


class PayloadCache:
    """
    Thread-safe TTL cache for authorization payloads.

    Expired entries are reported as missing and dropped on access. When the
    cache is full, expired entries are evicted first, then the oldest one.
    """

    def __init__(
        self,
        default_ttl: float = 60.0,
        max_size: int = 10000,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when save() gets no positive TTL
            max_size: Maximum number of entries before eviction
            clock: Time source returning seconds; replaceable in tests
        """
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock
        self._stats = {
            "hits": 0,
            "misses": 0,
            "invalidations": 0,
        }

    async def load(self, key: str) -> Optional[str]:
        """
        Get the cached payload for a user.

        Returns None if not found or expired.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                self._stats["misses"] += 1
                logger.debug(f"Cached payload for {key!r} expired")
                return None

            self._stats["hits"] += 1
            return entry.payload

    async def save(self, key: str, payload: str, ttl_seconds: Optional[float] = None) -> None:
        """Store a payload for a user, replacing any previous one."""
        with self._lock:
            if key not in self._cache and len(self._cache) >= self._max_size:
                self._evict_expired()

                if len(self._cache) >= self._max_size:
                    oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k].timestamp)
                    del self._cache[oldest_key]

            self._cache[key] = CacheEntry(
                payload=payload,
                timestamp=self._clock(),
                ttl=ttl_seconds if ttl_seconds and ttl_seconds > 0 else self._default_ttl
            )

    def invalidate(self, key: str) -> int:
        """
        Drop the entry for one user.

        Returns the number of entries removed (0 or 1).
        """
        with self._lock:
            if self._cache.pop(key, None) is None:
                return 0
            self._stats["invalidations"] += 1
            return 1

    def invalidate_all(self) -> int:
        """Clear all cache entries."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._stats["invalidations"] += 1
            return count

    def _evict_expired(self) -> int:
        """Remove all expired entries. Must be called with lock held."""
        now = self._clock()
        expired_keys = [
            key for key, entry in self._cache.items()
            if entry.is_expired(now)
        ]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    @property
    def stats(self) -> Dict[str, float]:
        """Get cache statistics."""
        with self._lock:
            return {
                **self._stats,
                "size": len(self._cache),
                "hit_rate": self._stats["hits"] / max(1, self._stats["hits"] + self._stats["misses"])
            }
