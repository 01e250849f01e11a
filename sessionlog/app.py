# ==============================================================================
# sessionlog CLI
# ==============================================================================
"""
Command-line interface for session tracking and analytics.

Usage:
    sessionlog --help
    sessionlog status
    sessionlog config show
    sessionlog analytics --range last7days
    sessionlog sessions list --active
    sessionlog sessions show <session-id>
    sessionlog sessions export -o sessions.csv
    sessionlog events summary
    sessionlog track start --user user-123
    sessionlog track log page_view -d page=/orders
    sessionlog track end
    sessionlog users find seller@example.com
"""

import logging
import os

import typer

from sessionlog.utils.config import get_settings

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="sessionlog",
    help="Session tracking and analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

sessions_app = typer.Typer(
    help="Browse, filter and export sessions",
    no_args_is_help=True,
)
app.add_typer(sessions_app, name="sessions")

# Register session commands from cli.sessions module
from sessionlog.cli.sessions import (
    sessions_active,
    sessions_export,
    sessions_list,
    sessions_show,
    sessions_user,
)

sessions_app.command("list")(sessions_list)
sessions_app.command("show")(sessions_show)
sessions_app.command("export")(sessions_export)
sessions_app.command("user")(sessions_user)
sessions_app.command("active")(sessions_active)

events_app = typer.Typer(
    help="Event type reports",
    no_args_is_help=True,
)
app.add_typer(events_app, name="events")

from sessionlog.cli.events import events_summary, events_users

events_app.command("summary")(events_summary)
events_app.command("users")(events_users)

track_app = typer.Typer(
    help="Track a session from the command line",
    no_args_is_help=True,
)
app.add_typer(track_app, name="track")

from sessionlog.cli.track import track_end, track_log, track_resume, track_start

track_app.command("start")(track_start)
track_app.command("resume")(track_resume)
track_app.command("log")(track_log)
track_app.command("end")(track_end)

users_app = typer.Typer(
    help="User directory lookups",
    no_args_is_help=True,
)
app.add_typer(users_app, name="users")

from sessionlog.cli.users import users_find, users_show

users_app.command("find")(users_find)
users_app.command("show")(users_show)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from sessionlog.cli.config import config_show, show_status

config_app.command("show")(config_show)

app.command("status")(show_status)

# Analytics command is imported from sessionlog.cli.analytics
from sessionlog.cli.analytics import show_analytics

app.command("analytics")(show_analytics)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
