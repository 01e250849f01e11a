# ==============================================================================
# Tests for Session Browser Filters
# ==============================================================================
"""
Unit tests for filtering, sorting, stats and CSV export.
"""

import csv
import io
from zoneinfo import ZoneInfo

import pytest
from conftest import REFERENCE_MS

from sessionlog.core.filters import (
    CSV_HEADERS,
    SessionFilter,
    SortDirection,
    SortField,
    apply_filters,
    export_sessions_csv,
    session_stats,
)
from sessionlog.core.models import DeviceInfo, Session
from sessionlog.core.timeutils import MS_PER_MINUTE

NOW = REFERENCE_MS


def make_session(session_id, uid, email, device, created_ago, idle):
    created_at = NOW - created_ago * MS_PER_MINUTE
    return Session(
        id=session_id,
        uid=uid,
        created_at=created_at,
        last_active=NOW - idle * MS_PER_MINUTE,
        date_key=0,
        info=DeviceInfo(device=device, platform="Win32", email=email),
        event_count=3,
    )


@pytest.fixture()
def sessions():
    return [
        make_session("s1", "alice", "alice@shop.com", "desktop", created_ago=120, idle=90),
        make_session("s2", "bob", "bob@store.com", "mobile", created_ago=30, idle=2),
        make_session("s3", None, None, "tablet", created_ago=60, idle=5),
        make_session("s4", "alice", "Alice@Shop.com", "mobile", created_ago=10, idle=20),
    ]


class TestApplyFilters:
    """Tests for apply_filters()."""

    def test_default_newest_created_first(self, sessions):
        result = apply_filters(sessions, SessionFilter(), NOW)
        assert [s.id for s in result] == ["s4", "s2", "s3", "s1"]

    def test_email_substring_case_insensitive(self, sessions):
        result = apply_filters(sessions, SessionFilter(email="SHOP"), NOW)
        assert {s.id for s in result} == {"s1", "s4"}

    def test_user_id_substring(self, sessions):
        result = apply_filters(sessions, SessionFilter(user_id="bo"), NOW)
        assert [s.id for s in result] == ["s2"]

    def test_device(self, sessions):
        result = apply_filters(sessions, SessionFilter(device="mobile"), NOW)
        assert {s.id for s in result} == {"s2", "s4"}

    def test_device_all(self, sessions):
        assert len(apply_filters(sessions, SessionFilter(device="all"), NOW)) == 4

    def test_active_only(self, sessions):
        result = apply_filters(sessions, SessionFilter(active_only=True), NOW)
        assert {s.id for s in result} == {"s2", "s3"}

    def test_sort_last_active_ascending(self, sessions):
        session_filter = SessionFilter(sort_by=SortField.LAST_ACTIVE, direction=SortDirection.ASC)
        result = apply_filters(sessions, session_filter, NOW)
        assert [s.id for s in result] == ["s1", "s4", "s3", "s2"]

    def test_input_not_modified(self, sessions):
        before = [s.id for s in sessions]
        apply_filters(sessions, SessionFilter(device="mobile"), NOW)
        assert [s.id for s in sessions] == before

    def test_sort_field_from_record_name(self):
        assert SessionFilter(sort_by="lastActive").sort_by is SortField.LAST_ACTIVE


class TestSessionStats:
    """Tests for session_stats()."""

    def test_stats(self, sessions):
        stats = session_stats(sessions, NOW)

        assert stats["totalSessions"] == 4
        assert stats["activeSessions"] == 2
        assert stats["uniqueUsers"] == 2
        # Durations: 30, 28, 55, -10 -> mean of positives is 37.67
        assert stats["avgDuration"] == 38

    def test_empty(self):
        assert session_stats([], NOW) == {
            "totalSessions": 0,
            "activeSessions": 0,
            "uniqueUsers": 0,
            "avgDuration": 0,
        }


class TestExportCsv:
    """Tests for export_sessions_csv()."""

    def test_headers_and_rows(self, sessions):
        stream = io.StringIO()
        written = export_sessions_csv(sessions[:2], stream, NOW)

        rows = list(csv.reader(io.StringIO(stream.getvalue())))
        assert written == 2
        assert rows[0] == CSV_HEADERS
        assert rows[1][0] == "s1"
        assert rows[1][7] == "30"
        assert rows[1][9] == "Inactive"
        assert rows[2][9] == "Active"

    def test_every_cell_quoted(self, sessions):
        stream = io.StringIO()
        export_sessions_csv(sessions[:1], stream, NOW)

        header = stream.getvalue().splitlines()[0]
        assert header.startswith('"Session ID","User ID"')

    def test_missing_values(self, sessions):
        stream = io.StringIO()
        export_sessions_csv([sessions[2]], stream, NOW)

        row = list(csv.reader(io.StringIO(stream.getvalue())))[1]
        assert row[1] == "N/A"
        assert row[2] == "N/A"

    def test_embedded_quotes_and_commas(self):
        session = make_session("s9", "u9", 'odd,"name"@x.com', "desktop", 5, 0)
        stream = io.StringIO()
        export_sessions_csv([session], stream, NOW)

        row = list(csv.reader(io.StringIO(stream.getvalue())))[1]
        assert row[2] == 'odd,"name"@x.com'

    def test_times_in_given_zone(self, sessions):
        stream = io.StringIO()
        export_sessions_csv(sessions[:1], stream, NOW, tz=ZoneInfo("Asia/Kolkata"))

        row = list(csv.reader(io.StringIO(stream.getvalue())))[1]
        assert row[5] == "Oct 19, 2026, 01:30:00 PM"
        assert row[6] == "Oct 19, 2026, 02:00:00 PM"
