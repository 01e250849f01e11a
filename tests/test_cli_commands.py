# ==============================================================================
# Tests for CLI Commands
# ==============================================================================
"""
Tests for the sessionlog CLI commands.

Tests cover:
- Window and payload option parsing
- `analytics` (text, JSON, failure)
- `sessions list|show|export|user|active`
- `events summary|users`
- `track start|log|end` as separate invocations sharing a session key
- `users find|show`, `config show` and `status`

The factories in each CLI module are patched to return services over the
fakeredis-backed store, so no real Valkey connection is needed. CLI output
is captured via typer.testing.CliRunner.
"""

import json
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from sessionlog.analytics import AnalyticsService, UserDirectory
from sessionlog.app import app
from sessionlog.cli.shared import format_time, resolve_window
from sessionlog.cli.track import _parse_data
from sessionlog.core.collections import events_path
from sessionlog.core.filters import CSV_HEADERS
from sessionlog.exceptions import AnalyticsError
from sessionlog.infrastructure import MemorySessionKeyStore
from sessionlog.infrastructure.cache import LRUCache
from sessionlog.tracking import EventLogger, SessionManager, create_session

UTC = timezone.utc
DAY = "2026-10-19"

runner = CliRunner()

# Paths to mock in the CLI modules (where they are imported)
_ANALYTICS_SERVICE = "sessionlog.cli.analytics.get_analytics_service"
_SESSIONS_SERVICE = "sessionlog.cli.sessions.get_analytics_service"
_EVENTS_SERVICE = "sessionlog.cli.events.get_analytics_service"
_TRACK_MANAGER = "sessionlog.cli.track.get_session_manager"
_USERS_DIRECTORY = "sessionlog.cli.users.get_user_directory"
_STATUS_CHECK = "sessionlog.cli.config.check_valkey_connection"


@pytest.fixture()
def service(store, clock):
    return AnalyticsService(store, clock=clock, tz=UTC)


@pytest.fixture()
def seeded(store, clock, desktop_runtime):
    """Two sessions for u1 (one with events) and a guest session, all on DAY."""
    logger = EventLogger(store, clock=clock)
    first = create_session(
        store, "u1", clock.now - 30 * 60_000, email="u1@x.com", runtime=desktop_runtime, tz=UTC
    )
    logger.log_event(first.id, "page_view", {"page": "/orders"})
    logger.log_event(first.id, "button_click", {"button": "export"}, now=clock.now + 1000)
    second = create_session(store, "u1", clock.now, email="u1@x.com", runtime=desktop_runtime, tz=UTC)
    guest = create_session(store, None, clock.now, runtime=desktop_runtime, tz=UTC)
    return {"first": first, "second": second, "guest": guest}


# ==============================================================================
# Option parsing
# ==============================================================================


class TestResolveWindow:
    """Tests for resolve_window()."""

    TODAY = date(2026, 10, 19)

    def test_preset(self):
        assert resolve_window("yesterday", None, None, self.TODAY) == (
            date(2026, 10, 18),
            date(2026, 10, 18),
        )

    def test_start_implies_custom(self):
        assert resolve_window("today", "2026-10-01", None, self.TODAY) == (
            date(2026, 10, 1),
            date(2026, 10, 1),
        )

    def test_start_and_end(self):
        assert resolve_window("custom", "2026-10-01", "2026-10-05", self.TODAY) == (
            date(2026, 10, 1),
            date(2026, 10, 5),
        )

    def test_bad_date(self):
        with pytest.raises(typer.BadParameter, match="Invalid date for --start"):
            resolve_window("today", "10/01/2026", None, self.TODAY)

    def test_unknown_preset(self):
        with pytest.raises(typer.BadParameter):
            resolve_window("fortnight", None, None, self.TODAY)


class TestFormatTime:
    """Tests for format_time()."""

    MOMENT = int(datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc).timestamp() * 1000)

    def test_configured_zone(self, monkeypatch):
        monkeypatch.setenv("TRACKING_TIMEZONE", "Asia/Kolkata")
        assert format_time(self.MOMENT) == "Oct 19, 2026, 01:30:00 PM"

    def test_utc(self, monkeypatch):
        monkeypatch.setenv("TRACKING_TIMEZONE", "UTC")
        assert format_time(self.MOMENT) == "Oct 19, 2026, 08:00:00 AM"

    def test_missing(self):
        assert format_time(None) == "N/A"


class TestParseData:
    """Tests for KEY=VALUE payload parsing."""

    def test_json_and_string_values(self):
        assert _parse_data(["page=/orders", "count=3", "ok=true", 'tags=["a"]']) == {
            "page": "/orders",
            "count": 3,
            "ok": True,
            "tags": ["a"],
        }

    def test_empty(self):
        assert _parse_data(None) == {}

    @pytest.mark.parametrize("item", ["novalue", "=x"])
    def test_invalid(self, item):
        with pytest.raises(typer.BadParameter, match="Use KEY=VALUE"):
            _parse_data([item])


# ==============================================================================
# analytics
# ==============================================================================


class TestAnalyticsCommand:
    """Tests for `sessionlog analytics`."""

    def test_json(self, service, seeded):
        with patch(_ANALYTICS_SERVICE, return_value=service):
            result = runner.invoke(app, ["analytics", "--start", DAY, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["totalSessions"] == 3
        assert data["dau"] == 1
        assert data["totalEvents"] == 2
        assert data["topUsers"][0]["uid"] == "u1"
        assert data["topUsers"][0]["sessionCount"] == 2
        assert [e["type"] for e in data["recentEvents"]] == ["button_click", "page_view"]

    def test_text(self, service, seeded):
        with patch(_ANALYTICS_SERVICE, return_value=service):
            result = runner.invoke(app, ["analytics", "--start", DAY])

        assert result.exit_code == 0
        assert "SESSION ANALYTICS" in result.output
        assert "Daily Active Users" in result.output
        assert "Top Users" in result.output
        assert "u1@x.com" in result.output

    def test_failure_json(self):
        failing = MagicMock()
        failing.compute_analytics.side_effect = AnalyticsError("store down")
        with patch(_ANALYTICS_SERVICE, return_value=failing):
            result = runner.invoke(app, ["analytics", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout) == {"error": "store down"}

    def test_failure_text(self):
        failing = MagicMock()
        failing.compute_analytics.side_effect = AnalyticsError("store down")
        with patch(_ANALYTICS_SERVICE, return_value=failing):
            result = runner.invoke(app, ["analytics"])

        assert result.exit_code == 1
        assert "Failed to load analytics: store down" in result.output

    def test_bad_range(self):
        result = runner.invoke(app, ["analytics", "--range", "fortnight"])
        assert result.exit_code == 2


# ==============================================================================
# sessions
# ==============================================================================


class TestSessionsCommands:
    """Tests for `sessionlog sessions ...`."""

    def test_list_json(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "list", "--start", DAY, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["stats"]["totalSessions"] == 3
        assert data["stats"]["uniqueUsers"] == 1
        first = next(s for s in data["sessions"] if s["id"] == seeded["first"].id)
        assert first["eventCount"] == 2
        assert "durationMinutes" in first
        assert "active" in first

    def test_list_filters(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(
                app, ["sessions", "list", "--start", DAY, "--user", "u1", "--json"]
            )

        ids = {s["id"] for s in json.loads(result.stdout)["sessions"]}
        assert ids == {seeded["first"].id, seeded["second"].id}

    def test_list_text(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "list", "--start", DAY])

        assert result.exit_code == 0
        assert "Sessions" in result.output
        assert "Avg duration" in result.output

    def test_list_empty(self, service):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "list", "--start", DAY])

        assert result.exit_code == 0
        assert "No sessions found" in result.output

    def test_list_invalid_sort(self, service):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "list", "--sort", "duration"])

        assert result.exit_code == 2

    def test_show_json(self, service, seeded):
        session_id = seeded["first"].id
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "show", session_id, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["id"] == session_id
        assert [e["type"] for e in data["events"]] == ["page_view", "button_click"]
        assert data["events"][0]["page"] == "/orders"

    def test_show_text(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "show", seeded["first"].id])

        assert result.exit_code == 0
        assert "Events (2)" in result.output
        assert "button_click" in result.output

    def test_show_missing(self, service):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "show", "u1_1_missing00"])

        assert result.exit_code == 1
        assert "Session not found" in result.output

    def test_export_to_file(self, service, seeded, tmp_path):
        output = tmp_path / "sessions.csv"
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(
                app, ["sessions", "export", "--start", DAY, "-o", str(output)]
            )

        assert result.exit_code == 0
        assert "Exported 3 sessions" in result.output
        lines = output.read_text().splitlines()
        assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADERS)
        assert len(lines) == 4

    def test_export_to_stdout(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "export", "--start", DAY, "--user", "u1"])

        assert result.exit_code == 0
        assert result.stdout.startswith('"Session ID"')
        assert len(result.stdout.strip().splitlines()) == 3

    def test_user_json(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "user", "u1", "--json"])

        assert result.exit_code == 0
        ids = [s["id"] for s in json.loads(result.stdout)]
        assert ids == [seeded["second"].id, seeded["first"].id]

    def test_user_with_events(self, service, seeded):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "user", "u1", "--events", "--json"])

        logs = json.loads(result.stdout)
        assert [len(log["events"]) for log in logs] == [0, 2]

    def test_user_unknown(self, service):
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "user", "nobody"])

        assert result.exit_code == 0
        assert "No sessions found for nobody" in result.output

    def test_active_json(self, service, seeded, store, clock, desktop_runtime):
        stale = create_session(store, "u2", clock.now - 120 * 60_000, runtime=desktop_runtime, tz=UTC)
        with patch(_SESSIONS_SERVICE, return_value=service):
            result = runner.invoke(app, ["sessions", "active", "--json"])

        assert result.exit_code == 0
        ids = {s["id"] for s in json.loads(result.stdout)}
        assert stale.id not in ids
        assert ids == {seeded["first"].id, seeded["second"].id, seeded["guest"].id}


# ==============================================================================
# events
# ==============================================================================


class TestEventsCommands:
    """Tests for `sessionlog events ...`."""

    def test_summary_json(self, service, seeded):
        with patch(_EVENTS_SERVICE, return_value=service):
            result = runner.invoke(app, ["events", "summary", "--start", DAY, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {DAY: {"page_view": 1, "button_click": 1}}

    def test_summary_empty(self, service):
        with patch(_EVENTS_SERVICE, return_value=service):
            result = runner.invoke(app, ["events", "summary", "--start", DAY])

        assert "No events in range" in result.output

    def test_users(self, service, seeded):
        with patch(_EVENTS_SERVICE, return_value=service):
            result = runner.invoke(app, ["events", "users", "click", "--start", DAY])

        assert result.exit_code == 0
        assert "u1" in result.output
        assert "1 user-days" in result.output

    def test_users_no_match(self, service, seeded):
        with patch(_EVENTS_SERVICE, return_value=service):
            result = runner.invoke(app, ["events", "users", "checkout", "--start", DAY, "--json"])

        assert json.loads(result.stdout) == {}


# ==============================================================================
# track
# ==============================================================================


class TestTrackCommands:
    """Tests for `sessionlog track ...` across separate invocations."""

    @pytest.fixture()
    def manager_factory(self, store, clock, desktop_runtime):
        key_store = MemorySessionKeyStore()

        def factory():
            return SessionManager(
                store,
                key_store=key_store,
                runtime=desktop_runtime,
                clock=clock,
                heartbeat_interval_seconds=3600,
                tz=UTC,
            )

        factory.key_store = key_store
        return factory

    def test_start_log_end(self, store, clock, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            started = runner.invoke(app, ["track", "start", "--user", "u1", "-e", "u1@x.com"])
            session_id = manager_factory.key_store.load()

            clock.advance(1000)
            logged = runner.invoke(app, ["track", "log", "page_view", "-d", "page=/orders"])
            clock.advance(1000)
            ended = runner.invoke(app, ["track", "end", "-d", "reason=logout"])

        assert started.exit_code == 0
        assert "Session started:" in started.output
        assert session_id in started.output

        assert logged.exit_code == 0
        assert "Logged page_view" in logged.output

        assert ended.exit_code == 0
        assert "Session ended:" in ended.output
        assert manager_factory.key_store.load() is None

        events = store.list(events_path(session_id), order_by="timestamp")
        assert [e["type"] for e in events] == ["session_start", "page_view", "session_end"]
        assert events[1]["page"] == "/orders"
        assert events[2]["reason"] == "logout"

    def test_guest_start(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            result = runner.invoke(app, ["track", "start"])

        assert result.exit_code == 0
        assert manager_factory.key_store.load().startswith("guest_")

    def test_log_without_session(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            result = runner.invoke(app, ["track", "log", "page_view"])

        assert result.exit_code == 1
        assert "No active session" in result.output

    def test_log_invalid_data(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            result = runner.invoke(app, ["track", "log", "page_view", "-d", "oops"])

        assert result.exit_code == 2

    def test_end_without_session(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            result = runner.invoke(app, ["track", "end"])

        assert result.exit_code == 0
        assert "No active session" in result.output

    def test_resume(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            runner.invoke(app, ["track", "start", "--user", "u1"])
            result = runner.invoke(app, ["track", "resume"])

        assert result.exit_code == 0
        assert "Session resumed:" in result.output

    def test_resume_nothing(self, manager_factory):
        with patch(_TRACK_MANAGER, side_effect=manager_factory):
            result = runner.invoke(app, ["track", "resume"])

        assert result.exit_code == 1
        assert "No session to resume" in result.output


# ==============================================================================
# users
# ==============================================================================


class TestUsersCommands:
    """Tests for `sessionlog users ...`."""

    @pytest.fixture()
    def directory(self, store):
        store.set("users-details/u1", {"details": {"email": "seller@example.com"}})
        store.set("users-details/u2", {"details": {"email": "buyer@example.com"}})
        return UserDirectory(store, cache=LRUCache(8))

    def test_find_exact(self, directory):
        with patch(_USERS_DIRECTORY, return_value=directory):
            result = runner.invoke(app, ["users", "find", "seller@example.com", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"email": "seller@example.com", "uid": "u1"}

    def test_find_missing(self, directory):
        with patch(_USERS_DIRECTORY, return_value=directory):
            result = runner.invoke(app, ["users", "find", "nobody@example.com"])

        assert result.exit_code == 1
        assert "No user with email" in result.output

    def test_find_partial(self, directory):
        with patch(_USERS_DIRECTORY, return_value=directory):
            result = runner.invoke(app, ["users", "find", "example.com", "--partial", "--json"])

        assert sorted(u["uid"] for u in json.loads(result.stdout)) == ["u1", "u2"]

    def test_show(self, directory):
        with patch(_USERS_DIRECTORY, return_value=directory):
            result = runner.invoke(app, ["users", "show", "u2"])

        assert result.exit_code == 0
        assert "buyer@example.com" in result.output

    def test_show_missing(self, directory):
        with patch(_USERS_DIRECTORY, return_value=directory):
            result = runner.invoke(app, ["users", "show", "u9", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout) == {"error": "User not found: u9"}


# ==============================================================================
# config and status
# ==============================================================================


class TestConfigCommands:
    """Tests for `sessionlog config show` and `sessionlog status`."""

    def test_config_json(self, monkeypatch):
        monkeypatch.setenv("VALKEY_HOST", "valkey.internal")
        monkeypatch.setenv("TRACKING_ACTIVE_THRESHOLD_MINUTES", "20")

        result = runner.invoke(app, ["config", "show", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["valkey"]["host"] == "valkey.internal"
        assert data["tracking"]["active_threshold_minutes"] == 20
        assert data["analytics"]["session_limit"] == 1000
        assert data["directory"]["collection"] == "users-details"

    def test_config_text(self):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "Valkey" in result.output
        assert "Tracking" in result.output

    def test_status_json(self, tmp_path, monkeypatch):
        key_file = tmp_path / "session_key"
        key_file.write_text("u1_1_abcdefghi")
        monkeypatch.setenv("TRACKING_SESSION_KEY_FILE", str(key_file))

        with patch(_STATUS_CHECK, return_value=True):
            result = runner.invoke(app, ["status", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["valkey"]["reachable"] is True
        assert data["session_id"] == "u1_1_abcdefghi"

    def test_status_unreachable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TRACKING_SESSION_KEY_FILE", str(tmp_path / "none"))

        with patch(_STATUS_CHECK, return_value=False):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "unreachable" in result.output
        assert "Session  none" in result.output
