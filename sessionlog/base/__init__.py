# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the ports-and-adapters layout.

Concrete adapters live in sessionlog.infrastructure.
"""

from sessionlog.base.cache import Cache
from sessionlog.base.document_store import (
    DocumentStore,
    check_collection_path,
    join_path,
    split_document_path,
)
from sessionlog.base.session_key_store import SessionKeyStore

__all__ = [
    "Cache",
    "DocumentStore",
    "SessionKeyStore",
    "check_collection_path",
    "join_path",
    "split_document_path",
]
