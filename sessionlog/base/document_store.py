# ==============================================================================
# Document Store Abstract Base Class
# ==============================================================================
"""
Abstract interface for the hosted document store that holds sessions,
events and the per-user session index.

Paths alternate collection and document segments:

    sessions                      -> collection
    sessions/{session_id}         -> document
    sessions/{session_id}/events  -> sub-collection
    users/{uid}/sessions/{sid}    -> document in a sub-collection

Documents are returned as plain dicts with the document id merged in under
the "id" key. Every read or write failure surfaces as PersistenceError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sessionlog.exceptions import InvalidPathError


def join_path(*segments: str) -> str:
    """Join path segments, rejecting empty segments and embedded slashes."""
    for segment in segments:
        if not segment or "/" in str(segment):
            raise InvalidPathError(f"Invalid path segment: {segment!r}")
    return "/".join(str(s) for s in segments)


def split_document_path(path: str) -> tuple[str, str]:
    """
    Split a document path into (collection_path, document_id).

    Raises:
        InvalidPathError: If the path does not name a document
    """
    segments = path.split("/")
    if len(segments) < 2 or len(segments) % 2 != 0 or not all(segments):
        raise InvalidPathError(f"Not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


def check_collection_path(path: str) -> str:
    """Validate a collection path and return it unchanged."""
    segments = path.split("/")
    if len(segments) % 2 != 1 or not all(segments):
        raise InvalidPathError(f"Not a collection path: {path!r}")
    return path


class DocumentStore(ABC):
    """
    Document store with per-document atomicity.

    There are no cross-document transactions: callers that write two
    documents accept that the second write may fail after the first.
    """

    @abstractmethod
    def get(self, path: str) -> dict | None:
        """
        Read one document.

        Args:
            path: Document path

        Returns:
            Document dict including "id", or None if it does not exist
        """
        ...

    @abstractmethod
    def get_many(self, paths: list[str]) -> list[dict | None]:
        """
        Batch read documents.

        Args:
            paths: Document paths

        Returns:
            One entry per path, in order; None for missing documents
        """
        ...

    @abstractmethod
    def set(self, path: str, data: dict) -> None:
        """
        Create or overwrite a document.

        Args:
            path: Document path
            data: JSON-serializable fields
        """
        ...

    @abstractmethod
    def update(self, path: str, fields: dict, keep_max: tuple[str, ...] = ()) -> None:
        """
        Merge fields into an existing document.

        Args:
            path: Document path
            fields: Fields to overwrite
            keep_max: Numeric fields that must never decrease; the stored
                value wins when it is larger than the new one

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        ...

    @abstractmethod
    def add(self, collection: str, data: dict) -> str:
        """
        Create a document with a store-generated id.

        Args:
            collection: Collection path
            data: JSON-serializable fields

        Returns:
            The generated document id
        """
        ...

    @abstractmethod
    def list(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """
        List documents in a collection.

        Args:
            collection: Collection path
            order_by: Numeric field to order by; documents without it are
                skipped. Insertion order when None.
            descending: Reverse the order
            limit: Maximum number of documents

        Returns:
            List of document dicts
        """
        ...

    @abstractmethod
    def query_range(
        self,
        collection: str,
        field: str,
        start: float | None = None,
        end: float | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """
        Query documents whose numeric field lies in [start, end].

        Args:
            collection: Collection path
            field: Indexed numeric field
            start: Inclusive lower bound (unbounded when None)
            end: Inclusive upper bound (unbounded when None)
            descending: Order by field descending
            limit: Maximum number of documents

        Returns:
            List of document dicts ordered by field
        """
        ...

    @abstractmethod
    def count(self, collection: str) -> int:
        """Count documents in a collection."""
        ...

    def exists(self, path: str) -> bool:
        """Check whether a document exists."""
        return self.get(path) is not None

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...
