# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and box-drawing characters
- Box drawing helpers for formatted output
- Date window parsing for the reporting commands
- Factories for the store, services and session manager (patched in tests)
"""

import re
from datetime import date, datetime
from typing import Optional

import typer

from sessionlog.analytics import AnalyticsService, UserDirectory
from sessionlog.base import DocumentStore
from sessionlog.core.timeutils import TimeRangePreset, format_epoch, resolve_preset
from sessionlog.infrastructure import FileSessionKeyStore, get_document_store
from sessionlog.tracking import SessionManager
from sessionlog.utils.config import get_settings

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 68


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


class Box:
    """Unicode box-drawing characters."""

    H = "─"  # horizontal
    V = "│"  # vertical
    TL = "┌"  # top-left
    TR = "┐"  # top-right
    BL = "└"  # bottom-left
    BR = "┘"  # bottom-right
    LT = "├"  # left-tee
    RT = "┤"  # right-tee


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    CIRCLE = "●"
    BULLET = "•"
    ARROW = "→"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons


# ==============================================================================
# Box Drawing Helpers
# ==============================================================================

_ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(s: str) -> int:
    """Length of a string as displayed (ANSI codes stripped)."""
    return len(_ANSI_ESCAPE_PATTERN.sub("", s))


def _box_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a single-line box header."""
    inner_width = width - 2
    title_padded = f" {title} "
    left_bar = (inner_width - len(title_padded)) // 2
    right_bar = inner_width - left_bar - len(title_padded)
    return (
        f"{C.CYAN}{B.TL}{B.H * left_bar}{C.BOLD}{C.WHITE}{title_padded}"
        f"{C.RESET}{C.CYAN}{B.H * right_bar}{B.TR}{C.RESET}"
    )


def _section_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a section divider inside a box."""
    inner_width = width - 2
    title_padded = f" {title} "
    bar_len = inner_width - len(title_padded) - 1  # -1 for the first H after LT
    return (
        f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_padded}{C.RESET}{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"
    )


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = max(0, inner_width - _visible_len(content))
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _empty_line(width: int = BOX_WIDTH) -> str:
    """Create an empty line inside the box."""
    return f"{C.CYAN}{B.V}{' ' * (width - 2)}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    """Create a box bottom border."""
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"


def _status_badge(is_active: bool) -> str:
    """Colored Active/Inactive badge."""
    if is_active:
        return f"{C.BRIGHT_GREEN}{I.CIRCLE} Active{C.RESET}"
    return f"{C.DIM}{I.CIRCLE} Inactive{C.RESET}"


def _error_banner(message: str) -> None:
    print(f"\n{C.BRIGHT_RED}{I.CROSS} {message}{C.RESET}\n")


def format_time(epoch_ms: Optional[int]) -> str:
    """format_epoch in the configured tracking zone (the zone of dateKey)."""
    return format_epoch(epoch_ms, get_settings().tracking.tzinfo)


# ==============================================================================
# Option Parsing
# ==============================================================================


def parse_date(value: Optional[str], option: str) -> Optional[date]:
    """Parse a YYYY-MM-DD option value."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date for {option}: '{value}'. Use YYYY-MM-DD")


def resolve_window(
    preset: str,
    start: Optional[str],
    end: Optional[str],
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Turn --range/--start/--end into a (start_date, end_date) pair.

    Passing --start implies a custom range.

    Raises:
        typer.BadParameter: For an unknown preset or an invalid custom range
    """
    start_date = parse_date(start, "--start")
    end_date = parse_date(end, "--end")
    if start_date is not None:
        preset = TimeRangePreset.CUSTOM.value
        end_date = end_date or start_date
    try:
        today = today or datetime.now(get_settings().tracking.tzinfo).date()
        return resolve_preset(preset, today, start_date, end_date)
    except ValueError as e:
        raise typer.BadParameter(str(e))


# ==============================================================================
# Factories
# ==============================================================================


def get_store() -> DocumentStore:
    """Document store configured from settings."""
    return get_document_store()


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(get_store())


def get_user_directory() -> UserDirectory:
    return UserDirectory(get_store())


def get_session_manager() -> SessionManager:
    """Session manager persisting its session id to the configured key file."""
    return SessionManager(get_store(), key_store=FileSessionKeyStore())
