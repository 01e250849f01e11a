# ==============================================================================
# Cache Infrastructure
# ==============================================================================
"""
Cache implementations for the ports-and-adapters architecture.

Available implementations:
- LRUCache: bounded in-memory cache
"""

from sessionlog.infrastructure.cache.memory import LRUCache

__all__ = [
    "LRUCache",
]
