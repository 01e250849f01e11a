# ==============================================================================
# Session Lifecycle Manager
# ==============================================================================
"""
Create, resume and end tracked sessions.

A SessionManager owns at most one active session at a time:

    UNINITIALIZED --start_session--> ACTIVE --end_session--> ENDED
    UNINITIALIZED --resume_session--> ACTIVE
    ENDED --start_session / resume_session--> ACTIVE

While a session is active a Heartbeat refreshes its lastActive every
interval. The session id is persisted through a SessionKeyStore so a later
process can resume it.
"""

import logging
import secrets
import string
import threading
from collections.abc import Callable
from datetime import tzinfo
from enum import Enum

from sessionlog.base import DocumentStore, SessionKeyStore
from sessionlog.core.collections import session_path, user_session_path
from sessionlog.core.device import ClientRuntime, capture_context
from sessionlog.core.models import Session
from sessionlog.core.timeutils import now_ms, start_of_day
from sessionlog.exceptions import SessionLogError
from sessionlog.tracking.event_logger import EventLogger
from sessionlog.tracking.heartbeat import Heartbeat, next_liveness
from sessionlog.utils.config import get_settings

logger = logging.getLogger(__name__)

GUEST_PREFIX = "guest"
SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 9

SESSION_START = "session_start"
SESSION_END = "session_end"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    ENDED = "ended"


def generate_session_id(user_id: str | None, created_at: int) -> str:
    """Build a session id of the form "{uid}_{createdAt}_{suffix}"."""
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{user_id or GUEST_PREFIX}_{created_at}_{suffix}"


def create_session(
    store: DocumentStore,
    user_id: str | None,
    created_at: int,
    email: str | None = None,
    runtime: ClientRuntime | None = None,
    tz: tzinfo | None = None,
) -> Session:
    """
    Write a new session record and its reverse index entry.

    Guest sessions (user_id None) get no reverse index entry. No events are
    logged and no heartbeat is started; SessionManager.start_session does both.

    Raises:
        PersistenceError: If either write fails
    """
    session = Session(
        id=generate_session_id(user_id, created_at),
        uid=user_id,
        created_at=created_at,
        last_active=created_at,
        date_key=start_of_day(created_at, tz),
        info=capture_context(runtime or ClientRuntime.current(), email),
    )
    store.set(session_path(session.id), session.to_record())
    if user_id is not None:
        store.set(user_session_path(user_id, session.id), {"dateKey": session.date_key})
    logger.info("Session created: %s", session.id)
    return session


class SessionManager:
    """
    Session lifecycle for one client.

    Usage:
        manager = SessionManager(get_document_store(), key_store=FileSessionKeyStore())
        manager.start_session("user-123", email="seller@example.com")
        manager.log_event("page_view", {"page": "/orders"})
        manager.end_session()
    """

    def __init__(
        self,
        store: DocumentStore,
        key_store: SessionKeyStore | None = None,
        runtime: ClientRuntime | None = None,
        clock: Callable[[], int] = now_ms,
        heartbeat_interval_seconds: float | None = None,
        validate_resume: bool | None = None,
        tz: tzinfo | None = None,
    ):
        """
        Initialize the manager.

        Args:
            store: Document store holding sessions and the user index
            key_store: Where the active session id is persisted (none if None)
            runtime: Client runtime snapshot source (current process if None)
            clock: Source of epoch-ms timestamps
            heartbeat_interval_seconds: Heartbeat period. If None, uses settings.
            validate_resume: Check the session exists before resuming.
                If None, uses settings.
            tz: Zone for dateKey. If None, uses settings (host local zone
                when unset).
        """
        settings = get_settings().tracking
        self._store = store
        self._key_store = key_store
        self._runtime = runtime
        self._clock = clock
        self._validate_resume = (
            settings.validate_resume if validate_resume is None else validate_resume
        )
        self._tz = tz if tz is not None else settings.tzinfo
        self._events = EventLogger(store, clock)
        self._heartbeat = Heartbeat(
            heartbeat_interval_seconds or settings.heartbeat_interval_seconds, self._beat
        )

        self._lock = threading.Lock()
        self._state = SessionState.UNINITIALIZED
        self._session_id: str | None = None
        self._last_active: int | None = None

    # ==========================================================================
    # State
    # ==========================================================================

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_active(self) -> int | None:
        """Last liveness value this process wrote (ms)."""
        return self._last_active

    @property
    def heartbeat(self) -> Heartbeat:
        return self._heartbeat

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def start_session(
        self,
        user_id: str | None,
        email: str | None = None,
        start_data: dict | None = None,
    ) -> str:
        """
        Create a new session and make it the active one.

        An already active session is detached once the new record is
        written (its heartbeat stops, it is not ended). If the write fails
        the previous session stays active with its heartbeat running.

        Args:
            user_id: Owning user id, or None for a guest session
            email: Signed-in user's email, stored in the device snapshot
            start_data: Payload for the session_start event

        Returns:
            The new session id

        Raises:
            PersistenceError: If the session record cannot be written
        """
        created_at = self._clock()
        session = create_session(
            self._store, user_id, created_at, email=email, runtime=self._runtime, tz=self._tz
        )

        if self.is_active:
            logger.warning("Detaching session %s for %s", self._session_id, session.id)
            self._heartbeat.cancel()

        with self._lock:
            self._session_id = session.id
            self._last_active = created_at
            self._state = SessionState.ACTIVE

        self._events.log_event(session.id, SESSION_START, start_data, now=created_at)
        self._heartbeat.start()
        self._save_key(session.id)
        return session.id

    def resume_session(self, session_id: str | None = None) -> bool:
        """
        Make an existing session the active one.

        Args:
            session_id: Session to resume. If None, the persisted key is used.

        Returns:
            True if a session was resumed, False if there was nothing to
            resume (no key, or the session no longer exists)
        """
        persisted = self._load_key()
        key = session_id or persisted
        if not key:
            return False

        if self._validate_resume:
            try:
                found = self._store.exists(session_path(key))
            except SessionLogError as e:
                logger.warning("Could not verify session %s: %s", key, e)
                return False
            if not found:
                logger.warning("Session %s no longer exists, not resuming", key)
                if key == persisted:
                    self._clear_key()
                return False

        if self.is_active:
            self._heartbeat.cancel()

        with self._lock:
            self._session_id = key
            self._last_active = None
            self._state = SessionState.ACTIVE

        self._beat()
        self._heartbeat.start()
        self._save_key(key)
        logger.info("Session resumed: %s", key)
        return True

    def end_session(self, end_data: dict | None = None) -> None:
        """
        End the active session. Does nothing if no session is active.

        Args:
            end_data: Payload for the session_end event
        """
        if not self.is_active:
            return

        session_id = self._session_id
        self._events.log_event(session_id, SESSION_END, end_data)
        self._heartbeat.cancel()
        self._clear_key()

        with self._lock:
            self._session_id = None
            self._state = SessionState.ENDED

        logger.info("Session ended: %s", session_id)

    def stop_tracking(self) -> None:
        """Stop the heartbeat without ending the session (e.g. on process exit)."""
        self._heartbeat.cancel()

    # ==========================================================================
    # Events
    # ==========================================================================

    def log_event(self, event_type: str, payload: dict | None = None) -> str | None:
        """
        Log an event against the active session.

        Returns:
            The new event id, or None if no session is active or the write failed
        """
        session_id = self._session_id
        if session_id is None:
            logger.warning("No active session, dropping %s event", event_type)
            return None

        now = self._clock()
        event_id = self._events.log_event(session_id, event_type, payload, now=now)
        with self._lock:
            self._last_active = next_liveness(self._last_active, now)
        return event_id

    def _beat(self) -> None:
        session_id = self._session_id
        if session_id is None:
            return
        with self._lock:
            self._last_active = next_liveness(self._last_active, self._clock())
            stamp = self._last_active
        self._events.touch_session(session_id, stamp)

    # ==========================================================================
    # Key persistence
    # ==========================================================================

    def _load_key(self) -> str | None:
        if self._key_store is None:
            return None
        try:
            return self._key_store.load()
        except OSError as e:
            logger.warning("Could not read persisted session key: %s", e)
            return None

    def _save_key(self, session_id: str) -> None:
        if self._key_store is None:
            return
        try:
            self._key_store.save(session_id)
        except OSError as e:
            logger.warning("Could not persist session key: %s", e)

    def _clear_key(self) -> None:
        if self._key_store is None:
            return
        try:
            self._key_store.clear()
        except OSError as e:
            logger.warning("Could not clear persisted session key: %s", e)
