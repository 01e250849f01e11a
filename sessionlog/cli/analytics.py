# ==============================================================================
# Analytics Command
# ==============================================================================
"""
Analytics command for the sessionlog CLI.

Displays the dashboard summary (DAU, sessions, durations, device mix, top
users, live sessions and the recent event feed) for a local-day window.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sessionlog.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _error_banner,
    format_time,
    _section_header,
    get_analytics_service,
    resolve_window,
)
from sessionlog.core.models import AnalyticsSummary
from sessionlog.core.timeutils import time_ago
from sessionlog.exceptions import SessionLogError


# ==============================================================================
# Rendering
# ==============================================================================


def _render_breakdown(title: str, counts: dict[str, int], width: int) -> None:
    print(_section_header(title, width))
    if not counts:
        print(_box_line(f"  {C.DIM}No data{C.RESET}", width))
        return
    total = sum(counts.values())
    for name, count in sorted(counts.items(), key=lambda item: item[1], reverse=True):
        share = count * 100.0 / total
        print(_box_line(f"  {name:<30}{count:>10,}  {share:>6.1f}%", width))


def _render_summary(summary: AnalyticsSummary) -> None:
    W = BOX_WIDTH

    print()
    print(_box_header("SESSION ANALYTICS", W))
    window = (
        f"  {format_time(summary.start_timestamp)}  {I.ARROW}  "
        f"{format_time(summary.end_timestamp)}"
    )
    print(_box_line(f"{C.DIM}{window}{C.RESET}", W))
    print(_empty_line(W))

    rows = [
        ("Daily Active Users", f"{summary.dau:,}"),
        ("Total Sessions", f"{summary.total_sessions:,}"),
        ("Active Sessions", f"{summary.active_sessions:,}"),
        ("Avg Duration", f"{summary.avg_duration} min"),
        ("Total Events", f"{summary.total_events:,}"),
    ]
    for label, value in rows:
        print(_box_line(f"  {label:<30}{value:>18}", W))

    if summary.truncated:
        print(_empty_line(W))
        print(
            _box_line(
                f"  {C.BRIGHT_YELLOW}{I.WARN} Session limit reached; figures are partial{C.RESET}",
                W,
            )
        )

    print(_empty_line(W))
    _render_breakdown("Devices", summary.device_breakdown, W)
    print(_empty_line(W))
    _render_breakdown("Platforms", summary.platform_breakdown, W)
    print(_empty_line(W))
    print(_box_bottom(W))

    console = Console()

    if summary.top_users:
        table = Table(title="Top Users", show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("User ID")
        table.add_column("Email")
        table.add_column("Sessions", justify="right")
        for rank, user in enumerate(summary.top_users, start=1):
            table.add_row(str(rank), user.uid, user.email or "N/A", f"{user.session_count:,}")
        print()
        console.print(table)

    if summary.active_session_list:
        table = Table(title="Active Sessions", show_header=True, header_style="bold")
        table.add_column("Session ID")
        table.add_column("User")
        table.add_column("Device")
        table.add_column("Last Active", justify="right")
        for session in summary.active_session_list:
            table.add_row(
                session.id,
                session.info.email or session.uid or "guest",
                session.info.device or "unknown",
                time_ago(session.last_active, summary.generated_at),
            )
        print()
        console.print(table)

    if summary.recent_events:
        table = Table(title="Recent Events", show_header=True, header_style="bold")
        table.add_column("Time")
        table.add_column("Type")
        table.add_column("User")
        table.add_column("Session")
        for event in summary.recent_events:
            table.add_row(
                format_time(event.timestamp),
                escape(event.type),
                event.email or event.user_id or "guest",
                event.session_id,
            )
        print()
        console.print(table)

    print()


# ==============================================================================
# Commands
# ==============================================================================


def show_analytics(
    time_range: Annotated[
        str,
        typer.Option(
            "--range",
            "-r",
            help="today, yesterday, last7days, last30days, thisMonth or custom",
        ),
    ] = "today",
    start: Annotated[
        Optional[str], typer.Option("--start", help="Custom range start (YYYY-MM-DD)")
    ] = None,
    end: Annotated[
        Optional[str], typer.Option("--end", help="Custom range end (YYYY-MM-DD)")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show session analytics for a time range.

    Windows cover whole local days, inclusive at both ends. Activity is
    evaluated against the current time.

    Examples:
        sessionlog analytics                          # Today
        sessionlog analytics --range last7days
        sessionlog analytics --start 2026-10-01 --end 2026-10-07 --json
    """
    start_date, end_date = resolve_window(time_range, start, end)

    try:
        summary = get_analytics_service().compute_analytics(start_date, end_date)
    except SessionLogError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            _error_banner(f"Failed to load analytics: {e}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(summary.to_json_dict(), indent=2))
        return

    _render_summary(summary)
