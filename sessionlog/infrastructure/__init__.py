# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

This module contains concrete implementations of the base ports:
- store/ - Document store adapters (Valkey/Redis)
- cache/ - In-process caches (LRU)
- session_keys.py - Client-local session id persistence
"""

from sessionlog.infrastructure.cache import LRUCache
from sessionlog.infrastructure.session_keys import FileSessionKeyStore, MemorySessionKeyStore
from sessionlog.infrastructure.store import (
    ValkeyDocumentStore,
    check_valkey_connection,
    get_document_store,
)

__all__ = [
    # Cache
    "LRUCache",
    # Session keys
    "FileSessionKeyStore",
    "MemorySessionKeyStore",
    # Store
    "ValkeyDocumentStore",
    "check_valkey_connection",
    "get_document_store",
]
