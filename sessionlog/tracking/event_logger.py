# ==============================================================================
# Event Logger
# ==============================================================================
"""
Append events to a session's event sub-collection.

Every logged event is two independent writes: the event document, then a
touch of the parent session's lastActive. There is no transaction across
them, so an event can exist whose session touch failed; liveness is advisory.

Logging is fire-and-forget: failures are logged here and never reach the
caller.
"""

import logging
from collections.abc import Callable

from sessionlog.base import DocumentStore
from sessionlog.core.collections import events_path, session_path
from sessionlog.core.models import Event
from sessionlog.core.timeutils import now_ms

logger = logging.getLogger(__name__)


class EventLogger:
    """Writes events and session touches to a DocumentStore."""

    def __init__(self, store: DocumentStore, clock: Callable[[], int] = now_ms):
        """
        Initialize the event logger.

        Args:
            store: Document store holding the sessions collection
            clock: Source of epoch-ms timestamps
        """
        self._store = store
        self._clock = clock

    def log_event(
        self,
        session_id: str,
        event_type: str,
        payload: dict | None = None,
        now: int | None = None,
    ) -> str | None:
        """
        Log one event and refresh the session's liveness.

        Args:
            session_id: Parent session id
            event_type: Free-form event tag (e.g. "page_view", "button_click")
            payload: Extra fields stored on the event
            now: Event timestamp (defaults to the clock)

        Returns:
            The new event id, or None if the event write failed
        """
        now = self._clock() if now is None else now
        try:
            event = Event.create(event_type, now, payload)
            event_id = self._store.add(events_path(session_id), event.to_record())
        except Exception:
            logger.exception("Error logging event %s for session %s", event_type, session_id)
            return None

        self.touch_session(session_id, now)
        logger.debug("Event logged: %s (session=%s)", event_type, session_id)
        return event_id

    def touch_session(self, session_id: str, now: int | None = None) -> bool:
        """
        Set the session's lastActive, never moving it backwards.

        Returns:
            True if the update was written, False if it failed
        """
        now = self._clock() if now is None else now
        try:
            self._store.update(session_path(session_id), {"lastActive": now}, keep_max=("lastActive",))
        except Exception:
            logger.exception("Error updating session activity for %s", session_id)
            return False
        return True
