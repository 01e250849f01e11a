# ==============================================================================
# Tests for CLI Help Commands
# ==============================================================================
"""
Tests that all CLI help commands generate the expected output.

Verifies that every command and subcommand in the sessionlog CLI:
- Exits with code 0 when invoked with --help
- Contains the expected description text
- Lists the expected subcommands or options

These tests use the real app from sessionlog.app (not minimal Typer apps)
to ensure the full command tree is wired up correctly and that Typer can
introspect all command function signatures without errors.
"""

import pytest
from typer.testing import CliRunner

from sessionlog.app import app

runner = CliRunner()


# ==============================================================================
# Root App
# ==============================================================================


class TestRootHelp:
    """Tests for the root `sessionlog --help` output."""

    def test_exit_code(self):
        """Root --help exits successfully."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0

    def test_description(self):
        """Root --help shows the app description."""
        result = runner.invoke(app, ["--help"])
        assert "Session tracking and analytics CLI" in result.output

    def test_lists_all_subcommands(self):
        """Root --help lists every top-level command."""
        result = runner.invoke(app, ["--help"])
        for cmd in ["analytics", "config", "events", "sessions", "status", "track", "users"]:
            assert cmd in result.output, f"Missing command: {cmd}"


# ==============================================================================
# Command Groups
# ==============================================================================


@pytest.mark.parametrize(
    "group,description,subcommands",
    [
        ("sessions", "Browse, filter and export sessions", ["list", "show", "export", "user", "active"]),
        ("events", "Event type reports", ["summary", "users"]),
        ("track", "Track a session from the command line", ["start", "resume", "log", "end"]),
        ("users", "User directory lookups", ["find", "show"]),
        ("config", "Configuration management", ["show"]),
    ],
)
class TestGroupHelp:
    """Tests for each command group's --help output."""

    def test_exit_code(self, group, description, subcommands):
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0

    def test_description(self, group, description, subcommands):
        result = runner.invoke(app, [group, "--help"])
        assert description in result.output

    def test_lists_subcommands(self, group, description, subcommands):
        result = runner.invoke(app, [group, "--help"])
        for cmd in subcommands:
            assert cmd in result.output, f"Missing subcommand: {cmd}"


# ==============================================================================
# Commands
# ==============================================================================


@pytest.mark.parametrize(
    "args,description,options",
    [
        (["analytics"], "Show session analytics for a time range", ["--range", "--start", "--end", "--json"]),
        (["status"], "Show store connectivity", ["--json"]),
        (["sessions", "list"], "List sessions in a time range", ["--email", "--user", "--device", "--active", "--sort", "--asc"]),
        (["sessions", "export"], "Export filtered sessions as CSV", ["--output", "--range"]),
        (["sessions", "show"], "Show one session and its full event log", ["--json"]),
        (["sessions", "user"], "List a user's sessions", ["--events", "--json"]),
        (["sessions", "active"], "Show sessions active right now", ["--minutes", "--json"]),
        (["events", "summary"], "Summarize event types by day", ["--range", "--json"]),
        (["events", "users"], "Find users who triggered an event type", ["--range"]),
        (["track", "start"], "Start a new tracked session", ["--user", "--email", "--follow"]),
        (["track", "resume"], "Resume a session", []),
        (["track", "log"], "Log an event against the persisted session", ["--data"]),
        (["track", "end"], "End the persisted session", ["--data"]),
        (["users", "find"], "Find user IDs by email", ["--partial", "--json"]),
        (["users", "show"], "Show a user's directory entry", ["--json"]),
        (["config", "show"], "Display current configuration", ["--json"]),
    ],
)
class TestCommandHelp:
    """Tests for each leaf command's --help output."""

    def test_exit_code(self, args, description, options):
        result = runner.invoke(app, [*args, "--help"])
        assert result.exit_code == 0

    def test_description(self, args, description, options):
        result = runner.invoke(app, [*args, "--help"])
        assert description in result.output

    def test_lists_options(self, args, description, options):
        result = runner.invoke(app, [*args, "--help"])
        for opt in options:
            assert opt in result.output, f"Missing option: {opt}"
