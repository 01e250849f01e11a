# ==============================================================================
# Tracking Commands
# ==============================================================================
"""
Session tracking commands for the sessionlog CLI.

Each invocation is a short-lived client: the active session id is kept in the
session key file between commands, so `track start`, `track log` and
`track end` can run as separate processes.
"""

import json
import time
from typing import Annotated, Optional

import typer

from sessionlog.cli.shared import C, I, _error_banner, get_session_manager
from sessionlog.exceptions import SessionLogError


# ==============================================================================
# Helper Functions
# ==============================================================================


def _parse_data(items: Optional[list[str]]) -> dict:
    """Parse repeated KEY=VALUE options; values are JSON when they parse as JSON."""
    data = {}
    for item in items or []:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Invalid data item: '{item}'. Use KEY=VALUE")
        try:
            data[key] = json.loads(raw)
        except ValueError:
            data[key] = raw
    return data


DataOption = Annotated[
    Optional[list[str]],
    typer.Option("--data", "-d", help="Event payload entry KEY=VALUE (repeatable)"),
]


# ==============================================================================
# Commands
# ==============================================================================


def track_start(
    user_id: Annotated[
        Optional[str], typer.Option("--user", "-u", help="User ID (guest session if omitted)")
    ] = None,
    email: Annotated[Optional[str], typer.Option("--email", "-e", help="User email")] = None,
    follow: Annotated[
        bool,
        typer.Option(
            "--follow", "-f", help="Keep the session alive with heartbeats until Ctrl+C, then end it"
        ),
    ] = False,
) -> None:
    """Start a new tracked session.

    Examples:
        sessionlog track start --user user-123 --email seller@example.com
        sessionlog track start --follow
    """
    manager = get_session_manager()
    try:
        session_id = manager.start_session(user_id, email=email)
    except SessionLogError as e:
        _error_banner(f"Failed to start session: {e}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Session started:{C.RESET} {session_id}")

    if not follow:
        manager.stop_tracking()
        return

    interval = manager.heartbeat.interval_seconds
    print(f"  {C.DIM}Heartbeat every {interval:g}s. Press Ctrl+C to end the session.{C.RESET}")
    try:
        while manager.is_active:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    manager.end_session()
    print(f"\n{C.BRIGHT_GREEN}{I.CHECK} Session ended:{C.RESET} {session_id}")


def track_resume(
    session_id: Annotated[
        Optional[str], typer.Argument(help="Session ID (the persisted one if omitted)")
    ] = None,
) -> None:
    """Resume a session and refresh its liveness.

    Examples:
        sessionlog track resume
        sessionlog track resume user-123_1760000000000_abc123xyz
    """
    manager = get_session_manager()
    if not manager.resume_session(session_id):
        print(f"{C.BRIGHT_YELLOW}{I.WARN} No session to resume{C.RESET}")
        raise typer.Exit(1)
    manager.stop_tracking()
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Session resumed:{C.RESET} {manager.session_id}")


def track_log(
    event_type: Annotated[str, typer.Argument(help="Event type, e.g. page_view")],
    data: DataOption = None,
) -> None:
    """Log an event against the persisted session.

    Examples:
        sessionlog track log page_view -d page=/orders
        sessionlog track log button_click -d button=export -d count=3
    """
    payload = _parse_data(data)
    manager = get_session_manager()
    if not manager.resume_session():
        print(f"{C.BRIGHT_YELLOW}{I.WARN} No active session. Run 'sessionlog track start' first.{C.RESET}")
        raise typer.Exit(1)

    event_id = manager.log_event(event_type, payload)
    manager.stop_tracking()
    if event_id is None:
        _error_banner(f"Failed to log {event_type}")
        raise typer.Exit(1)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Logged {event_type}{C.RESET} {C.DIM}({event_id}){C.RESET}")


def track_end(
    data: DataOption = None,
) -> None:
    """End the persisted session.

    Examples:
        sessionlog track end
        sessionlog track end -d reason=logout
    """
    payload = _parse_data(data)
    manager = get_session_manager()
    if not manager.resume_session():
        print(f"{C.DIM}No active session{C.RESET}")
        return

    session_id = manager.session_id
    manager.end_session(payload)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Session ended:{C.RESET} {session_id}")
