# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for sessionlog.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and factories
- analytics.py: Dashboard summary
- sessions.py: Session browser and CSV export
- events.py: Event type reports
- track.py: Session tracking from the command line
- users.py: User directory lookups
- config.py: Configuration and status
"""

from sessionlog.cli.shared import (
    # Constants
    BOX_WIDTH,
    # Classes
    Box,
    Colors,
    Icons,
    # Aliases
    B,
    C,
    I,
    # Option parsing
    parse_date,
    resolve_window,
    # Factories
    get_analytics_service,
    get_session_manager,
    get_store,
    get_user_directory,
)

__all__ = [
    # Constants
    "BOX_WIDTH",
    # Classes
    "Box",
    "Colors",
    "Icons",
    # Aliases
    "B",
    "C",
    "I",
    # Option parsing
    "parse_date",
    "resolve_window",
    # Factories
    "get_analytics_service",
    "get_session_manager",
    "get_store",
    "get_user_directory",
]
