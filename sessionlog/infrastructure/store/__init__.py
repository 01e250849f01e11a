# ==============================================================================
# Document Store Infrastructure
# ==============================================================================
"""
Document store implementations for the ports-and-adapters architecture.

Available implementations:
- ValkeyDocumentStore: Valkey/Redis-backed documents with sorted-set indexes
"""

from sessionlog.infrastructure.store.valkey import (
    ValkeyDocumentStore,
    check_valkey_connection,
    generate_document_id,
    get_document_store,
)

__all__ = [
    "ValkeyDocumentStore",
    "check_valkey_connection",
    "generate_document_id",
    "get_document_store",
]
