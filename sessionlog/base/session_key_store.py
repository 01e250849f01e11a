# ==============================================================================
# Session Key Store Abstract Base Class
# ==============================================================================
"""
Abstract interface for persisting the current session id on the client.

A SessionManager saves the id when a session starts so a later process can
resume it, and clears it when the session ends.
"""

from abc import ABC, abstractmethod


class SessionKeyStore(ABC):
    """Client-local persistence of a single session id."""

    @abstractmethod
    def load(self) -> str | None:
        """Return the persisted session id, or None if there is none."""
        ...

    @abstractmethod
    def save(self, session_id: str) -> None:
        """Persist the session id, replacing any previous one."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Forget the persisted session id. Safe to call when none is stored."""
        ...
