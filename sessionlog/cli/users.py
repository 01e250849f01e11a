# ==============================================================================
# User Directory Commands
# ==============================================================================
"""
User lookup commands for the sessionlog CLI.
"""

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from sessionlog.cli.shared import C, I, get_user_directory


def users_find(
    email: Annotated[str, typer.Argument(help="Email address or fragment")],
    partial: Annotated[
        bool, typer.Option("--partial", "-p", help="List every user whose email contains EMAIL")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Find user IDs by email.

    Examples:
        sessionlog users find seller@example.com
        sessionlog users find @example.com --partial
    """
    directory = get_user_directory()

    if not partial:
        uid = directory.find_uid(email)
        if json_output:
            print(json.dumps({"email": email, "uid": uid}))
        elif uid is None:
            print(f"{C.BRIGHT_YELLOW}{I.WARN} No user with email {email}{C.RESET}")
        else:
            print(f"{C.BRIGHT_GREEN}{I.CHECK}{C.RESET} {uid}")
        if uid is None:
            raise typer.Exit(1)
        return

    matches = directory.find_uids(email)
    if json_output:
        print(json.dumps([m.model_dump(by_alias=True) for m in matches], indent=2))
        return

    if not matches:
        print(f"{C.BRIGHT_YELLOW}{I.WARN} No users matching '{email}'{C.RESET}")
        return

    table = Table(title=f"Users matching '{email}'", show_header=True, header_style="bold")
    table.add_column("User ID")
    table.add_column("Email")
    table.add_column("Phone")
    for match in matches:
        table.add_row(match.uid, match.email or "", match.phone_number or "")
    print()
    Console().print(table)
    print()


def users_show(
    uid: Annotated[str, typer.Argument(help="User ID")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show a user's directory entry.

    Examples:
        sessionlog users show user-123
    """
    details = get_user_directory().get_details(uid)
    if details is None:
        if json_output:
            print(json.dumps({"error": f"User not found: {uid}"}))
        else:
            print(f"{C.BRIGHT_YELLOW}{I.WARN} User not found: {uid}{C.RESET}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(details.model_dump(by_alias=True), indent=2))
        return

    print()
    print(f"  {C.BOLD}User ID:{C.RESET} {details.uid}")
    print(f"  {C.BOLD}Email:{C.RESET}   {details.email or 'N/A'}")
    print(f"  {C.BOLD}Phone:{C.RESET}   {details.phone_number or 'N/A'}")
    print()
