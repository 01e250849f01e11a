# ==============================================================================
# In-Memory LRU Cache Implementation
# ==============================================================================
"""
Bounded in-memory implementation of the Cache interface.

Least recently used entries are evicted once maxsize is reached. Reads and
writes both count as a use. Instances are owned by the component that needs
them (e.g. UserDirectory), so each test can start with an empty cache.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any

from sessionlog.base import Cache

logger = logging.getLogger(__name__)

_MISSING = object()


class LRUCache(Cache):
    """Thread-safe bounded LRU cache."""

    def __init__(self, maxsize: int = 1024):
        """
        Initialize the cache.

        Args:
            maxsize: Maximum number of entries (must be positive)
        """
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._maxsize = maxsize
        self._data: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str) -> Any | None:
        with self._lock:
            if key not in self._data:
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return self._data[key]

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self._maxsize:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("Evicted %s from cache", evicted)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, _MISSING) is not _MISSING

    def clear(self) -> int:
        with self._lock:
            count = len(self._data)
            self._data.clear()
            return count

