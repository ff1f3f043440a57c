"""Concrete implementation of the in-memory TTL Caching Service.

Entries carry their own TTL and are evicted lazily: an expired entry is
dropped the first time get() or has() notices it. There is no background
sweeper. One instance is built in the composition root and shared by
every service and request handler.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from feastfinder.domain.interfaces.cache import CacheService
from feastfinder.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 20 * 60  # 20 minutes


@dataclass
class CacheEntry:
    """Internal representation of a cache entry."""
    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class InMemoryCache(CacheService):
    """Process-lifetime key/value cache with per-entry TTL.

    The lock makes each operation atomic when handlers run on worker
    threads; on a single event loop it is uncontended.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        self.default_ttl = default_ttl
        self._clock = clock
        logger.info(f"InMemoryCache initialized (default ttl={default_ttl}s)")

    def _lookup(self, key: CacheKey) -> Optional[CacheEntry]:
        """Returns the live entry for key, evicting it if stale. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug(f"Cache entry expired and evicted: key={key}")
            return None
        return entry

    async def get(self, key: CacheKey) -> Optional[Any]:
        with self._lock:
            entry = self._lookup(key)
        if entry is None:
            logger.debug(f"Cache miss for key: {key}")
            return None
        logger.debug(f"Cache hit for key: {key}")
        return entry.value

    async def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        effective_ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(value=value, created_at=self._clock(), ttl=effective_ttl)
        logger.debug(f"Stored item in cache: key={key}, ttl={effective_ttl}s")

    async def has(self, key: CacheKey) -> bool:
        with self._lock:
            return self._lookup(key) is not None

    async def delete(self, key: CacheKey) -> None:
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug(f"Deleted item from cache: key={key}")

    async def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared in-memory cache ({count} entries).")

    def __len__(self) -> int:
        # Counts stale-but-not-yet-evicted entries too.
        with self._lock:
            return len(self._entries)
