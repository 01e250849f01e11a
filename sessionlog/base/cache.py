# ==============================================================================
# Cache Abstract Base Class
# ==============================================================================
"""
Abstract interface for in-process memoization.

This is NOT a repository. Cached values are derived from the document store
and may be dropped at any time; owners inject a Cache so tests can use a
fresh one and choose their own eviction policy.

Implementations: LRUCache (bounded, in-memory).
"""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    """
    Generic key-value cache.

    Unlike a dict lookup, get() cannot tell a cached None from a miss, so
    callers that cache negative results use contains() first.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Set a cached value, evicting entries if the cache is full.

        Args:
            key: Cache key
            value: Value to cache (None is allowed)
        """
        ...

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Check whether a key is cached (including cached None values)."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if key was deleted, False if not found
        """
        ...

    @abstractmethod
    def clear(self) -> int:
        """
        Drop every entry.

        Returns:
            Count of entries removed
        """
        ...
