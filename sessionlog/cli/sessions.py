# ==============================================================================
# Session Browser Commands
# ==============================================================================
"""
Session browsing commands for the sessionlog CLI.

List, filter and export the sessions of a time range, inspect one session's
event log, and look up a user's sessions.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sessionlog.cli.shared import (
    C,
    I,
    _error_banner,
    format_time,
    _status_badge,
    get_analytics_service,
    resolve_window,
)
from sessionlog.core.analytics_processor import is_active, session_duration
from sessionlog.core.filters import (
    SessionFilter,
    SortDirection,
    SortField,
    apply_filters,
    export_sessions_csv,
    session_stats,
)
from sessionlog.core.models import Session
from sessionlog.core.timeutils import now_ms, time_ago
from sessionlog.exceptions import SessionLogError
from sessionlog.utils.config import get_settings


# ==============================================================================
# Helper Functions
# ==============================================================================


def _fetch_filtered(
    time_range: str,
    start: Optional[str],
    end: Optional[str],
    session_filter: SessionFilter,
    now: int,
) -> list[Session]:
    start_date, end_date = resolve_window(time_range, start, end)
    service = get_analytics_service()
    sessions = service.sessions_in_range(start_date, end_date)
    sessions = apply_filters(sessions, session_filter, now)
    return service.count_events(sessions)


def _build_filter(
    email: Optional[str],
    user_id: Optional[str],
    device: Optional[str],
    active_only: bool,
    sort_by: str,
    ascending: bool,
) -> SessionFilter:
    try:
        sort_field = SortField(sort_by)
    except ValueError:
        raise typer.BadParameter(f"Invalid sort field: '{sort_by}'. Use createdAt or lastActive")
    return SessionFilter(
        email=email,
        user_id=user_id,
        device=device,
        active_only=active_only,
        sort_by=sort_field,
        direction=SortDirection.ASC if ascending else SortDirection.DESC,
        threshold_minutes=get_settings().tracking.active_threshold_minutes,
    )


def _session_json(session: Session, now: int, threshold: int) -> dict:
    return {
        **session.model_dump(mode="json", by_alias=True),
        "durationMinutes": session_duration(session),
        "active": is_active(session, now, threshold),
    }


def _status_cell(active: bool) -> str:
    return "[green]Active[/green]" if active else "[dim]Inactive[/dim]"


def _sessions_table(title: str, sessions: list[Session], now: int, threshold: int) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Session ID")
    table.add_column("User")
    table.add_column("Device")
    table.add_column("Created")
    table.add_column("Last Active", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Events", justify="right")
    table.add_column("Status")
    for session in sessions:
        duration = session_duration(session)
        table.add_row(
            session.id,
            session.info.email or session.uid or "guest",
            session.info.device or "unknown",
            format_time(session.created_at),
            time_ago(session.last_active, now),
            str(duration) if duration is not None else "-",
            str(session.event_count) if session.event_count is not None else "-",
            _status_cell(is_active(session, now, threshold)),
        )
    return table


def _fail(message: str, json_output: bool) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        _error_banner(message)
    raise typer.Exit(1)


# Options shared by list and export
RangeOption = Annotated[
    str,
    typer.Option(
        "--range", "-r", help="today, yesterday, last7days, last30days, thisMonth or custom"
    ),
]
StartOption = Annotated[Optional[str], typer.Option("--start", help="Custom range start (YYYY-MM-DD)")]
EndOption = Annotated[Optional[str], typer.Option("--end", help="Custom range end (YYYY-MM-DD)")]
EmailOption = Annotated[Optional[str], typer.Option("--email", "-e", help="Email contains")]
UserOption = Annotated[Optional[str], typer.Option("--user", "-u", help="User ID contains")]
DeviceOption = Annotated[
    Optional[str], typer.Option("--device", "-d", help="mobile, tablet or desktop")
]
ActiveOption = Annotated[bool, typer.Option("--active", "-a", help="Only active sessions")]
SortOption = Annotated[str, typer.Option("--sort", help="createdAt or lastActive")]
AscendingOption = Annotated[bool, typer.Option("--asc", help="Sort oldest first")]


# ==============================================================================
# Commands
# ==============================================================================


def sessions_list(
    time_range: RangeOption = "today",
    start: StartOption = None,
    end: EndOption = None,
    email: EmailOption = None,
    user_id: UserOption = None,
    device: DeviceOption = None,
    active_only: ActiveOption = False,
    sort_by: SortOption = "createdAt",
    ascending: AscendingOption = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List sessions in a time range with optional filters.

    Examples:
        sessionlog sessions list
        sessionlog sessions list --range last7days --device mobile --active
        sessionlog sessions list --email @example.com --sort lastActive --json
    """
    session_filter = _build_filter(email, user_id, device, active_only, sort_by, ascending)
    now = now_ms()
    try:
        sessions = _fetch_filtered(time_range, start, end, session_filter, now)
    except SessionLogError as e:
        _fail(f"Failed to load sessions: {e}", json_output)

    threshold = session_filter.threshold_minutes
    stats = session_stats(sessions, now, threshold)

    if json_output:
        print(
            json.dumps(
                {
                    "stats": stats,
                    "sessions": [_session_json(s, now, threshold) for s in sessions],
                },
                indent=2,
            )
        )
        return

    if not sessions:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No sessions found{C.RESET}\n")
        return

    print()
    Console().print(_sessions_table("Sessions", sessions, now, threshold))
    print(f"  {C.BOLD}Total:{C.RESET}        {stats['totalSessions']:,}")
    print(f"  {C.BOLD}Active:{C.RESET}       {stats['activeSessions']:,}")
    print(f"  {C.BOLD}Users:{C.RESET}        {stats['uniqueUsers']:,}")
    print(f"  {C.BOLD}Avg duration:{C.RESET} {stats['avgDuration']} min")
    print()


def sessions_export(
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="CSV file (stdout if omitted)")
    ] = None,
    time_range: RangeOption = "today",
    start: StartOption = None,
    end: EndOption = None,
    email: EmailOption = None,
    user_id: UserOption = None,
    device: DeviceOption = None,
    active_only: ActiveOption = False,
    sort_by: SortOption = "createdAt",
    ascending: AscendingOption = False,
) -> None:
    """Export filtered sessions as CSV.

    Examples:
        sessionlog sessions export --range last30days -o sessions.csv
        sessionlog sessions export --active > live.csv
    """
    session_filter = _build_filter(email, user_id, device, active_only, sort_by, ascending)
    now = now_ms()
    try:
        sessions = _fetch_filtered(time_range, start, end, session_filter, now)
    except SessionLogError as e:
        _fail(f"Failed to load sessions: {e}", False)

    threshold = session_filter.threshold_minutes
    tz = get_settings().tracking.tzinfo
    if output is None:
        export_sessions_csv(sessions, sys.stdout, now, threshold, tz)
        return

    with open(output, "w", newline="", encoding="utf-8") as f:
        rows = export_sessions_csv(sessions, f, now, threshold, tz)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Exported {rows:,} sessions to {output}{C.RESET}")


def sessions_show(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show one session and its full event log.

    Examples:
        sessionlog sessions show user-1_1760000000000_abc123xyz
    """
    try:
        log = get_analytics_service().session_logs(session_id)
    except SessionLogError as e:
        _fail(f"Failed to load session: {e}", json_output)

    if log is None:
        _fail(f"Session not found: {session_id}", json_output)

    if json_output:
        print(json.dumps(log.to_json_dict(), indent=2))
        return

    session = log.session
    now = now_ms()
    threshold = get_settings().tracking.active_threshold_minutes
    duration = session_duration(session)

    print()
    print(f"  {C.BOLD}Session:{C.RESET}     {session.id}")
    print(f"  {C.BOLD}User:{C.RESET}        {session.uid or 'guest'}")
    print(f"  {C.BOLD}Email:{C.RESET}       {session.info.email or 'N/A'}")
    print(f"  {C.BOLD}Device:{C.RESET}      {session.info.device or 'unknown'} ({session.info.platform or 'unknown'})")
    print(f"  {C.BOLD}Created:{C.RESET}     {format_time(session.created_at)}")
    print(f"  {C.BOLD}Last active:{C.RESET} {format_time(session.last_active)}")
    print(f"  {C.BOLD}Duration:{C.RESET}    {duration if duration is not None else '-'} min")
    print(f"  {C.BOLD}Status:{C.RESET}      {_status_badge(is_active(session, now, threshold))}")

    table = Table(title=f"Events ({len(log.events)})", show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Data")
    for event in log.events:
        payload = event.payload
        table.add_row(
            format_time(event.timestamp),
            event.type,
            escape(json.dumps(payload)) if payload else "",
        )
    print()
    Console().print(table)
    print()


def sessions_user(
    user_id: Annotated[str, typer.Argument(help="User ID")],
    with_events: Annotated[
        bool, typer.Option("--events", help="Include every session's event log")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List a user's sessions, newest first.

    Examples:
        sessionlog sessions user user-123
        sessionlog sessions user user-123 --events --json
    """
    service = get_analytics_service()
    try:
        if with_events:
            logs = service.all_user_logs(user_id)
            sessions = [log.session for log in logs]
        else:
            logs = []
            sessions = service.count_events(service.user_sessions(user_id))
    except SessionLogError as e:
        _fail(f"Failed to load sessions for {user_id}: {e}", json_output)

    now = now_ms()
    threshold = get_settings().tracking.active_threshold_minutes

    if json_output:
        if with_events:
            print(json.dumps([log.to_json_dict() for log in logs], indent=2))
        else:
            print(json.dumps([_session_json(s, now, threshold) for s in sessions], indent=2))
        return

    if not sessions:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No sessions found for {user_id}{C.RESET}\n")
        return

    print()
    Console().print(_sessions_table(f"Sessions for {user_id}", sessions, now, threshold))
    for log in logs:
        print(f"\n  {C.BOLD}{log.session.id}{C.RESET}")
        for event in log.events:
            print(f"    {C.DIM}{format_time(event.timestamp)}{C.RESET}  {event.type}")
    print()


def sessions_active(
    minutes: Annotated[
        Optional[int], typer.Option("--minutes", "-m", help="Liveness threshold in minutes")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show sessions active right now.

    Examples:
        sessionlog sessions active
        sessionlog sessions active --minutes 5
    """
    threshold = minutes if minutes is not None else get_settings().tracking.active_threshold_minutes
    service = get_analytics_service()
    try:
        sessions = service.count_events(service.active_sessions(threshold))
    except SessionLogError as e:
        _fail(f"Failed to load active sessions: {e}", json_output)

    now = now_ms()
    if json_output:
        print(json.dumps([_session_json(s, now, threshold) for s in sessions], indent=2))
        return

    if not sessions:
        print(f"\n  {C.DIM}No sessions active in the last {threshold} minutes{C.RESET}\n")
        return

    print()
    Console().print(_sessions_table("Active Sessions", sessions, now, threshold))
    print()
