# ==============================================================================
# Analytics Processor - Pure Domain Logic
# ==============================================================================
"""
Pure analytics aggregation with no external dependencies.

This module contains the domain logic behind the analytics dashboard:
- Derived predicates (session duration, liveness)
- The fold over fetched sessions (DAU, histograms, averages, rankings)
- Event feed merging and per-day event type summaries

Everything works on already-fetched models and an explicit "now", so the
logic can be unit tested with fixed timestamps and no store.
"""

import math
from collections import Counter, defaultdict
from collections.abc import Iterable
from datetime import tzinfo

from sessionlog.core.models import AnalyticsSummary, RecentEvent, Session, TopUser
from sessionlog.core.timeutils import MS_PER_MINUTE, from_epoch_ms

DEFAULT_ACTIVE_THRESHOLD_MINUTES = 15
UNKNOWN = "unknown"


# ==============================================================================
# Derived Predicates
# ==============================================================================


def session_duration(session: Session) -> int | None:
    """
    Session length in whole minutes, floored.

    Returns:
        lastActive - createdAt in minutes, or None when either is missing.
        Callers treat values <= 0 as invalid.
    """
    if session.created_at is None or session.last_active is None:
        return None
    return (session.last_active - session.created_at) // MS_PER_MINUTE


def is_active(
    session: Session,
    now: int,
    threshold_minutes: int = DEFAULT_ACTIVE_THRESHOLD_MINUTES,
) -> bool:
    """
    Check whether a session was active within the threshold.

    With 5-minute heartbeats, the default 15 minutes tolerates two missed
    ticks before a live session is reported inactive.
    """
    if session.last_active is None:
        return False
    return now - session.last_active <= threshold_minutes * MS_PER_MINUTE


def average_duration(sessions: Iterable[Session]) -> int:
    """Mean of the positive session durations, rounded half-up; 0 if there are none."""
    durations = [d for d in (session_duration(s) for s in sessions) if d is not None and d > 0]
    if not durations:
        return 0
    return math.floor(sum(durations) / len(durations) + 0.5)


# ==============================================================================
# Aggregation
# ==============================================================================


class AnalyticsProcessor:
    """
    Folds fetched sessions into an AnalyticsSummary.

    Sessions are expected in fetch order (dateKey descending); that order is
    the tie-break for the top-user ranking.
    """

    def __init__(
        self,
        active_threshold_minutes: int = DEFAULT_ACTIVE_THRESHOLD_MINUTES,
        top_users: int = 10,
        active_sessions_limit: int = 20,
        recent_events_limit: int = 50,
    ):
        self.active_threshold_minutes = active_threshold_minutes
        self.top_users_limit = top_users
        self.active_sessions_limit = active_sessions_limit
        self.recent_events_limit = recent_events_limit

    def is_active(self, session: Session, now: int) -> bool:
        return is_active(session, now, self.active_threshold_minutes)

    def rank_users(self, sessions: list[Session]) -> list[TopUser]:
        """
        Rank signed-in users by session count.

        Ties keep the order in which users were first encountered. Guest
        sessions (uid None) are not ranked.
        """
        counts: dict[str, int] = {}
        emails: dict[str, str] = {}
        for session in sessions:
            if session.uid is None:
                continue
            counts[session.uid] = counts.get(session.uid, 0) + 1
            if session.info.email and session.uid not in emails:
                emails[session.uid] = session.info.email

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [
            TopUser(uid=uid, session_count=count, email=emails.get(uid))
            for uid, count in ranked[: self.top_users_limit]
        ]

    def active_session_list(self, sessions: list[Session], now: int) -> list[Session]:
        """Active sessions, most recently active first, capped."""
        active = [s for s in sessions if self.is_active(s, now)]
        active.sort(key=lambda s: s.last_active or 0, reverse=True)
        return active[: self.active_sessions_limit]

    @staticmethod
    def recent_sessions(sessions: list[Session], count: int) -> list[Session]:
        """The count most recently created sessions."""
        return sorted(sessions, key=lambda s: s.created_at or 0, reverse=True)[:count]

    def merge_recent_events(self, events: Iterable[RecentEvent]) -> list[RecentEvent]:
        """Newest events first, capped."""
        merged = sorted(events, key=lambda e: e.timestamp, reverse=True)
        return merged[: self.recent_events_limit]

    def summarize(
        self,
        sessions: list[Session],
        now: int,
        start_timestamp: int,
        end_timestamp: int,
        recent_events: Iterable[RecentEvent] = (),
        truncated: bool = False,
    ) -> AnalyticsSummary:
        """
        Compute the analytics summary for already-fetched sessions.

        Args:
            sessions: Sessions in the window, with event_count filled in
            now: Instant used for liveness checks (ms)
            start_timestamp: Window start (ms)
            end_timestamp: Window end (ms)
            recent_events: Candidate events for the feed
            truncated: Whether the session fetch hit its cap

        Returns:
            AnalyticsSummary
        """
        device_counts: Counter[str] = Counter()
        platform_counts: Counter[str] = Counter()
        users: set[str] = set()
        active = 0
        total_events = 0

        for session in sessions:
            if session.uid is not None:
                users.add(session.uid)
            device_counts[session.info.device or UNKNOWN] += 1
            platform_counts[session.info.platform or UNKNOWN] += 1
            if self.is_active(session, now):
                active += 1
            total_events += session.event_count or 0

        return AnalyticsSummary(
            start_timestamp=start_timestamp,
            end_timestamp=end_timestamp,
            generated_at=now,
            dau=len(users),
            total_sessions=len(sessions),
            active_sessions=active,
            avg_duration=average_duration(sessions),
            total_events=total_events,
            device_breakdown=dict(device_counts),
            platform_breakdown=dict(platform_counts),
            top_users=self.rank_users(sessions),
            active_session_list=self.active_session_list(sessions, now),
            recent_events=self.merge_recent_events(recent_events),
            truncated=truncated,
        )


# ==============================================================================
# Event Type Summaries
# ==============================================================================


def day_label(epoch_ms: int, tz: tzinfo | None = None) -> str:
    """ISO date (YYYY-MM-DD) of the local day containing epoch_ms."""
    return from_epoch_ms(epoch_ms, tz).date().isoformat()


def summarize_event_types(
    entries: Iterable[tuple[str, str | None, str]],
) -> dict[str, dict[str, int]]:
    """
    Count distinct users per event type per day.

    Args:
        entries: (day, uid, event_type) triples; guest entries (uid None) are skipped

    Returns:
        {day: {event_type: distinct_users}} with event types ordered by count
        descending, days ordered newest first
    """
    users_by_day: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
    for day, uid, event_type in entries:
        if uid is None:
            continue
        users_by_day[day][event_type].add(uid)

    summary = {}
    for day in sorted(users_by_day, reverse=True):
        counts = [(event_type, len(uids)) for event_type, uids in users_by_day[day].items()]
        counts.sort(key=lambda item: item[1], reverse=True)
        summary[day] = dict(counts)
    return summary


def match_event_users(
    entries: Iterable[tuple[str, str | None, str]],
    query: str,
) -> dict[str, list[str]]:
    """
    Users whose event types contain query, grouped by day.

    Returns:
        {day: [uid, ...]} with uids in first-seen order
    """
    matched: dict[str, dict[str, None]] = defaultdict(dict)
    for day, uid, event_type in entries:
        if uid is not None and query in event_type:
            matched[day][uid] = None
    return {day: list(uids) for day, uids in sorted(matched.items(), reverse=True)}
