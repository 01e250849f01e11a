# ==============================================================================
# Session Key Store Implementations
# ==============================================================================
"""
Client-local persistence of the current session id.

FileSessionKeyStore keeps the id in a small text file (like a PID file), so a
CLI invocation can resume the session a previous invocation started.
MemorySessionKeyStore keeps it in process, for embedding and tests.
"""

import logging
from pathlib import Path

from sessionlog.base import SessionKeyStore
from sessionlog.utils.config import get_settings

logger = logging.getLogger(__name__)


class FileSessionKeyStore(SessionKeyStore):
    """Session id stored in a text file."""

    def __init__(self, path: Path | None = None):
        """
        Initialize the key store.

        Args:
            path: File holding the session id. If None, uses settings.
        """
        self._path = Path(path) if path else get_settings().tracking.session_key_file

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            key = self._path.read_text().strip()
        except OSError as e:
            logger.warning("Could not read session key file %s: %s", self._path, e)
            return None
        return key or None

    def save(self, session_id: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(session_id)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class MemorySessionKeyStore(SessionKeyStore):
    """Session id held in memory for the life of the process."""

    def __init__(self, session_id: str | None = None):
        self._session_id = session_id

    def load(self) -> str | None:
        return self._session_id

    def save(self, session_id: str) -> None:
        self._session_id = session_id

    def clear(self) -> None:
        self._session_id = None
