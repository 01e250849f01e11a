# ==============================================================================
# Event Report Commands
# ==============================================================================
"""
Event type reports for the sessionlog CLI.

`events summary` counts distinct users per event type per day; `events users`
finds the users who triggered a given event type.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sessionlog.cli.shared import C, I, _error_banner, get_analytics_service, resolve_window
from sessionlog.exceptions import SessionLogError

RangeOption = Annotated[
    str,
    typer.Option(
        "--range", "-r", help="today, yesterday, last7days, last30days, thisMonth or custom"
    ),
]
StartOption = Annotated[Optional[str], typer.Option("--start", help="Custom range start (YYYY-MM-DD)")]
EndOption = Annotated[Optional[str], typer.Option("--end", help="Custom range end (YYYY-MM-DD)")]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


def _load_failed(e: Exception, json_output: bool) -> None:
    if json_output:
        print(json.dumps({"error": str(e)}))
    else:
        _error_banner(f"Failed to load events: {e}")
    raise typer.Exit(1)


# ==============================================================================
# Commands
# ==============================================================================


def events_summary(
    time_range: RangeOption = "today",
    start: StartOption = None,
    end: EndOption = None,
    json_output: JsonOption = False,
) -> None:
    """Summarize event types by day (distinct users per type).

    Examples:
        sessionlog events summary --range last7days
    """
    start_date, end_date = resolve_window(time_range, start, end)
    try:
        summary = get_analytics_service().event_summary(start_date, end_date)
    except SessionLogError as e:
        _load_failed(e, json_output)

    if json_output:
        print(json.dumps(summary, indent=2))
        return

    if not summary:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No events in range{C.RESET}\n")
        return

    console = Console()
    for day, counts in summary.items():
        table = Table(title=day, show_header=True, header_style="bold")
        table.add_column("Event")
        table.add_column("Users", justify="right")
        for event_type, users in counts.items():
            table.add_row(escape(event_type), f"{users:,}")
        print()
        console.print(table)
    print()


def events_users(
    event_type: Annotated[str, typer.Argument(help="Event type (substring match)")],
    time_range: RangeOption = "today",
    start: StartOption = None,
    end: EndOption = None,
    json_output: JsonOption = False,
) -> None:
    """Find users who triggered an event type, grouped by day.

    Examples:
        sessionlog events users button_click --range last30days
    """
    start_date, end_date = resolve_window(time_range, start, end)
    try:
        matched = get_analytics_service().users_for_event(event_type, start_date, end_date)
    except SessionLogError as e:
        _load_failed(e, json_output)

    if json_output:
        print(json.dumps(matched, indent=2))
        return

    if not matched:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No users triggered '{event_type}'{C.RESET}\n")
        return

    total = sum(len(uids) for uids in matched.values())
    print()
    for day, uids in matched.items():
        print(f"  {C.BOLD}{day}{C.RESET}  {C.DIM}({len(uids)} users){C.RESET}")
        for uid in uids:
            print(f"    {I.BULLET} {uid}")
    print(f"\n  {C.BOLD}Total:{C.RESET} {total:,} user-days\n")
