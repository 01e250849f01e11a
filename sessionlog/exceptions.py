# ==============================================================================
# Exceptions
# ==============================================================================
"""
Exception hierarchy for session tracking and analytics.

Write-path code (heartbeat, event logging) catches PersistenceError and logs
it. Read-path code (analytics) converts any failure into AnalyticsError so the
caller sees exactly one failure signal.
"""


class SessionLogError(Exception):
    """Base class for all sessionlog errors."""


class InvalidPathError(SessionLogError):
    """A document or collection path has the wrong shape."""


class PersistenceError(SessionLogError):
    """The document store rejected or failed a read or write."""


class DocumentNotFoundError(PersistenceError):
    """An update targeted a document that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}")
        self.path = path


class AnalyticsError(SessionLogError):
    """An analytics computation failed; no partial result is available."""
