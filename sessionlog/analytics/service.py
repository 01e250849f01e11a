# ==============================================================================
# Analytics Service
# ==============================================================================
"""
Read-side queries over the sessions collection.

compute_analytics() fetches the sessions of a local-day window, counts each
session's events, samples recent events and folds everything into an
AnalyticsSummary through AnalyticsProcessor. It is fail-closed: any read or
processing failure raises AnalyticsError and no partial summary is returned.

The remaining methods are the per-session and per-user lookups used by the
session browser and the CLI. They let PersistenceError propagate.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import date, tzinfo

from sessionlog.analytics.users import UserDirectory
from sessionlog.base import DocumentStore
from sessionlog.core.analytics_processor import (
    AnalyticsProcessor,
    day_label,
    match_event_users,
    summarize_event_types,
)
from sessionlog.core.collections import (
    SESSIONS,
    events_path,
    session_path,
    user_sessions_path,
)
from sessionlog.core.models import (
    AnalyticsSummary,
    Event,
    RecentEvent,
    Session,
    SessionLog,
)
from sessionlog.core.timeutils import MS_PER_MINUTE, date_range, now_ms
from sessionlog.exceptions import AnalyticsError
from sessionlog.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Analytics and lookups against a DocumentStore.

    Usage:
        service = AnalyticsService(get_document_store())
        summary = service.compute_analytics(date(2026, 10, 1), date(2026, 10, 7))
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings | None = None,
        processor: AnalyticsProcessor | None = None,
        directory: UserDirectory | None = None,
        clock: Callable[[], int] = now_ms,
        tz: tzinfo | None = None,
    ):
        """
        Initialize the service.

        Args:
            store: Document store holding the sessions collection
            settings: Application settings. If None, uses get_settings().
            processor: Aggregation logic. If None, built from settings.
            directory: Used to fill in missing top-user emails.
                If None, a UserDirectory over the same store.
            clock: Source of epoch-ms timestamps
            tz: Zone for day windows. If None, uses settings.
        """
        settings = settings or get_settings()
        self._store = store
        self._limits = settings.analytics
        self._threshold_minutes = settings.tracking.active_threshold_minutes
        self._processor = processor or AnalyticsProcessor(
            active_threshold_minutes=settings.tracking.active_threshold_minutes,
            top_users=settings.analytics.top_users,
            active_sessions_limit=settings.analytics.active_sessions_limit,
            recent_events_limit=settings.analytics.recent_events_limit,
        )
        self._directory = directory or UserDirectory(store)
        self._clock = clock
        self._tz = tz if tz is not None else settings.tracking.tzinfo

    @property
    def processor(self) -> AnalyticsProcessor:
        return self._processor

    # ==========================================================================
    # Summary
    # ==========================================================================

    def compute_analytics(self, start_date: date, end_date: date | None = None) -> AnalyticsSummary:
        """
        Aggregate the sessions whose local day falls in [start_date, end_date].

        Args:
            start_date: First day of the window
            end_date: Last day of the window (defaults to start_date)

        Returns:
            AnalyticsSummary

        Raises:
            AnalyticsError: If any read fails or the window is inverted
        """
        end_date = end_date or start_date
        try:
            return self._compute(start_date, end_date)
        except AnalyticsError:
            raise
        except Exception as e:
            logger.error("Error computing analytics for %s..%s: %s", start_date, end_date, e)
            raise AnalyticsError(f"Failed to compute analytics: {e}") from e

    def _compute(self, start_date: date, end_date: date) -> AnalyticsSummary:
        start_ts, end_ts = self._window(start_date, end_date)
        now = self._clock()

        limit = self._limits.session_limit
        sessions = self._query_sessions(start_ts, end_ts, limit + 1)
        truncated = len(sessions) > limit
        if truncated:
            logger.warning("Session fetch hit the limit of %d; results are truncated", limit)
            sessions = sessions[:limit]

        self.count_events(sessions)

        summary = self._processor.summarize(
            sessions,
            now=now,
            start_timestamp=start_ts,
            end_timestamp=end_ts,
            recent_events=self._recent_events(sessions),
            truncated=truncated,
        )

        for user in summary.top_users:
            if user.email is None:
                user.email = self._directory.lookup_email(user.uid)

        logger.info(
            "Analytics computed: %d sessions, %d users, %d events",
            summary.total_sessions,
            summary.dau,
            summary.total_events,
        )
        return summary

    def _recent_events(self, sessions: list[Session]) -> list[RecentEvent]:
        events = []
        for session in self._processor.recent_sessions(sessions, self._limits.recent_sessions):
            documents = self._store.list(
                events_path(session.id),
                order_by="timestamp",
                descending=True,
                limit=self._limits.events_per_session,
            )
            for document in documents:
                events.append(
                    RecentEvent.model_validate(
                        {
                            **document,
                            "sessionId": session.id,
                            "userId": session.uid,
                            "email": session.info.email,
                        }
                    )
                )
        return events

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def count_events(self, sessions: list[Session]) -> list[Session]:
        """Fill in event_count on each session (one count read per session)."""
        for session in sessions:
            session.event_count = self._store.count(events_path(session.id))
        return sessions

    def sessions_in_range(
        self,
        start_date: date,
        end_date: date | None = None,
        limit: int | None = None,
    ) -> list[Session]:
        """Sessions whose local day falls in the window, newest day first."""
        start_ts, end_ts = self._window(start_date, end_date or start_date)
        return self._query_sessions(start_ts, end_ts, limit or self._limits.session_limit)

    def session_logs(self, session_id: str) -> SessionLog | None:
        """A session with all of its events sorted by timestamp, None if missing."""
        document = self._store.get(session_path(session_id))
        if document is None:
            return None
        session = Session.from_record(document)
        events = [Event.from_record(doc) for doc in self._store.list(events_path(session_id))]
        events.sort(key=lambda event: event.timestamp)
        session.event_count = len(events)
        return SessionLog(session=session, events=events)

    def user_sessions(self, user_id: str) -> list[Session]:
        """A user's sessions via the reverse index, newest first."""
        index = self._store.list(user_sessions_path(user_id))
        documents = self._store.get_many([session_path(entry["id"]) for entry in index])
        sessions = [Session.from_record(doc) for doc in documents if doc is not None]
        if len(sessions) < len(index):
            logger.warning(
                "%d indexed sessions for %s are missing", len(index) - len(sessions), user_id
            )
        sessions.sort(key=lambda s: s.created_at or 0, reverse=True)
        return sessions

    def all_user_logs(self, user_id: str) -> list[SessionLog]:
        """Every session of a user with its events, newest session first."""
        logs = []
        for session in self.user_sessions(user_id):
            log = self.session_logs(session.id)
            if log is not None:
                logs.append(log)
        return logs

    def active_sessions(self, threshold_minutes: int | None = None) -> list[Session]:
        """Sessions active within the threshold, most recently active first."""
        minutes = self._threshold_minutes if threshold_minutes is None else threshold_minutes
        since = self._clock() - minutes * MS_PER_MINUTE
        documents = self._store.query_range(SESSIONS, "lastActive", start=since, descending=True)
        return [Session.from_record(doc) for doc in documents]

    def event_summary(self, start_date: date, end_date: date | None = None) -> dict[str, dict[str, int]]:
        """Distinct users per event type for each local day, newest day first."""
        return summarize_event_types(self._event_entries(start_date, end_date))

    def users_for_event(
        self,
        event_type: str,
        start_date: date,
        end_date: date | None = None,
    ) -> dict[str, list[str]]:
        """Users with an event whose type contains event_type, grouped by day."""
        return match_event_users(self._event_entries(start_date, end_date), event_type)

    def _event_entries(
        self, start_date: date, end_date: date | None
    ) -> Iterator[tuple[str, str | None, str]]:
        for session in self.sessions_in_range(start_date, end_date):
            for document in self._store.list(events_path(session.id)):
                event = Event.from_record(document)
                yield day_label(event.timestamp, self._tz), session.uid, event.type

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _window(self, start_date: date, end_date: date) -> tuple[int, int]:
        start_ts, _ = date_range(start_date, self._tz)
        _, end_ts = date_range(end_date, self._tz)
        if end_ts < start_ts:
            raise AnalyticsError(f"End date {end_date} is before start date {start_date}")
        return start_ts, end_ts

    def _query_sessions(self, start_ts: int, end_ts: int, limit: int) -> list[Session]:
        documents = self._store.query_range(
            SESSIONS, "dateKey", start=start_ts, end=end_ts, descending=True, limit=limit
        )
        return [Session.from_record(doc) for doc in documents]
