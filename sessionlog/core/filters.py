# ==============================================================================
# Session Browser Filters and Export
# ==============================================================================
"""
Filtering, sorting, summary stats and CSV export for a fetched session list.

Used by `sessionlog sessions list` and `sessionlog sessions export`.
"""

import csv
from datetime import tzinfo
from enum import Enum
from typing import TextIO

from pydantic import BaseModel, Field

from sessionlog.core.analytics_processor import (
    DEFAULT_ACTIVE_THRESHOLD_MINUTES,
    average_duration,
    is_active,
    session_duration,
)
from sessionlog.core.models import Session
from sessionlog.core.timeutils import format_epoch

CSV_HEADERS = [
    "Session ID",
    "User ID",
    "Email",
    "Device",
    "Platform",
    "Created",
    "Last Active",
    "Duration (min)",
    "Events",
    "Status",
]


class SortField(str, Enum):
    CREATED_AT = "createdAt"
    LAST_ACTIVE = "lastActive"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SessionFilter(BaseModel):
    """
    Session browser filter.

    Text filters are case-insensitive substring matches.
    """

    email: str | None = Field(None, description="Email substring")
    user_id: str | None = Field(None, description="User id substring")
    device: str | None = Field(None, description="Exact device class")
    active_only: bool = Field(False, description="Only sessions within the threshold")
    sort_by: SortField = Field(SortField.CREATED_AT, description="Sort field")
    direction: SortDirection = Field(SortDirection.DESC, description="Sort direction")
    threshold_minutes: int = Field(DEFAULT_ACTIVE_THRESHOLD_MINUTES, description="Liveness threshold")


def _contains(value: str | None, needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


def apply_filters(sessions: list[Session], session_filter: SessionFilter, now: int) -> list[Session]:
    """Filter and sort sessions; the input list is not modified."""
    f = session_filter
    filtered = list(sessions)

    if f.email:
        filtered = [s for s in filtered if _contains(s.info.email, f.email)]
    if f.user_id:
        filtered = [s for s in filtered if _contains(s.uid, f.user_id)]
    if f.device and f.device != "all":
        filtered = [s for s in filtered if s.info.device == f.device]
    if f.active_only:
        filtered = [s for s in filtered if is_active(s, now, f.threshold_minutes)]

    attribute = "created_at" if f.sort_by is SortField.CREATED_AT else "last_active"
    filtered.sort(
        key=lambda s: getattr(s, attribute) or 0,
        reverse=f.direction is SortDirection.DESC,
    )
    return filtered


def session_stats(
    sessions: list[Session],
    now: int,
    threshold_minutes: int = DEFAULT_ACTIVE_THRESHOLD_MINUTES,
) -> dict:
    """Headline numbers for a session list."""
    return {
        "totalSessions": len(sessions),
        "activeSessions": sum(1 for s in sessions if is_active(s, now, threshold_minutes)),
        "uniqueUsers": len({s.uid for s in sessions if s.uid is not None}),
        "avgDuration": average_duration(sessions),
    }


def session_row(
    session: Session,
    now: int,
    threshold_minutes: int = DEFAULT_ACTIVE_THRESHOLD_MINUTES,
    tz: tzinfo | None = None,
) -> list:
    """One export row, matching CSV_HEADERS. Times are rendered in tz (host zone when None)."""
    duration = session_duration(session)
    return [
        session.id,
        session.uid or "N/A",
        session.info.email or "N/A",
        session.info.device or "N/A",
        session.info.platform or "N/A",
        format_epoch(session.created_at, tz),
        format_epoch(session.last_active, tz),
        duration if duration is not None else 0,
        session.event_count or 0,
        "Active" if is_active(session, now, threshold_minutes) else "Inactive",
    ]


def export_sessions_csv(
    sessions: list[Session],
    stream: TextIO,
    now: int,
    threshold_minutes: int = DEFAULT_ACTIVE_THRESHOLD_MINUTES,
    tz: tzinfo | None = None,
) -> int:
    """
    Write sessions as CSV with every cell quoted.

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for session in sessions:
        writer.writerow(session_row(session, now, threshold_minutes, tz))
    return len(sessions)
