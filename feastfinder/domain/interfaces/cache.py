"""Interface for caching mechanisms.

Defines the contract for storing, retrieving and invalidating cached data
with a per-entry time-to-live.
"""

import abc
from typing import Any, Optional

from ..models.common import CacheKey


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves an item from the cache asynchronously.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached item if found and not expired, otherwise None.
            An expired entry is evicted as a side effect.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores an item asynchronously.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live in seconds (uses the cache default if None).
        """
        pass

    @abc.abstractmethod
    async def has(self, key: CacheKey) -> bool:
        """Same validity check as get, without returning the value."""
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> None:
        """Removes an item unconditionally."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Clears all items from the cache."""
        pass
