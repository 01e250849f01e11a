# ==============================================================================
# Config and Status Commands
# ==============================================================================
"""
Configuration display and connectivity status for the sessionlog CLI.
"""

import json
from typing import Annotated

import typer

from sessionlog.cli.shared import C, I
from sessionlog.infrastructure import FileSessionKeyStore, check_valkey_connection
from sessionlog.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
                "namespace": settings.valkey.namespace,
                "socket_timeout": settings.valkey.socket_timeout,
            },
            "tracking": {
                "heartbeat_interval_seconds": settings.tracking.heartbeat_interval_seconds,
                "active_threshold_minutes": settings.tracking.active_threshold_minutes,
                "validate_resume": settings.tracking.validate_resume,
                "session_key_file": str(settings.tracking.session_key_file),
                "timezone": settings.tracking.timezone,
            },
            "analytics": settings.analytics.model_dump(),
            "directory": settings.directory.model_dump(),
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.valkey.db}{C.RESET}")
    valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
    print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
    print(f"  Namespace:  {C.WHITE}{settings.valkey.namespace}{C.RESET}")
    print()

    print(f"{C.CYAN}Tracking{C.RESET}")
    print(f"  Heartbeat:  {C.WHITE}{settings.tracking.heartbeat_interval_seconds:g} seconds{C.RESET}")
    print(f"  Active:     {C.WHITE}{settings.tracking.active_threshold_minutes} minutes{C.RESET}")
    validate = "enabled" if settings.tracking.validate_resume else "disabled"
    print(f"  Validate:   {C.WHITE}{validate}{C.RESET}")
    print(f"  Key file:   {C.WHITE}{settings.tracking.session_key_file}{C.RESET}")
    print(f"  Timezone:   {C.WHITE}{settings.tracking.timezone or 'local'}{C.RESET}")
    print()

    print(f"{C.CYAN}Analytics{C.RESET}")
    print(f"  Sessions:   {C.WHITE}{settings.analytics.session_limit:,} max{C.RESET}")
    print(f"  Top users:  {C.WHITE}{settings.analytics.top_users}{C.RESET}")
    print(f"  Active:     {C.WHITE}{settings.analytics.active_sessions_limit} listed{C.RESET}")
    feed = (
        f"{settings.analytics.recent_events_limit} events from "
        f"{settings.analytics.recent_sessions} sessions"
    )
    print(f"  Feed:       {C.WHITE}{feed}{C.RESET}")
    print()

    print(f"{C.CYAN}User Directory{C.RESET}")
    print(f"  Collection: {C.WHITE}{settings.directory.collection}{C.RESET}")
    print(f"  Cache:      {C.WHITE}{settings.directory.email_cache_size:,} entries{C.RESET}")
    print()


def show_status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show store connectivity and the locally persisted session."""
    settings = get_settings()
    reachable = check_valkey_connection()
    session_id = FileSessionKeyStore().load()

    if json_output:
        print(
            json.dumps(
                {
                    "valkey": {
                        "host": settings.valkey.host,
                        "port": settings.valkey.port,
                        "reachable": reachable,
                    },
                    "session_id": session_id,
                }
            )
        )
        return

    print()
    if reachable:
        print(f"  {C.BRIGHT_GREEN}{I.CHECK} Valkey{C.RESET}   {settings.valkey.host}:{settings.valkey.port}")
    else:
        print(f"  {C.BRIGHT_RED}{I.CROSS} Valkey{C.RESET}   {settings.valkey.host}:{settings.valkey.port} unreachable")
    if session_id:
        print(f"  {C.BRIGHT_CYAN}{I.CIRCLE} Session{C.RESET}  {session_id}")
    else:
        print(f"  {C.DIM}{I.CIRCLE} Session  none{C.RESET}")
    print()
