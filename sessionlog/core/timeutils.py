# ==============================================================================
# Time Utilities - Pure Domain Logic
# ==============================================================================
"""
Epoch-millisecond helpers for day buckets, dashboard time ranges and display.

Day boundaries are computed in a caller-supplied zone; tz=None means the host
local zone, which is what a session's dateKey uses when no zone is configured.
"""

import time as _time
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

MS_PER_MINUTE = 60 * 1000
END_OF_DAY = time(23, 59, 59, 999000)


class TimeRangePreset(str, Enum):
    """Dashboard time range selections."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_MONTH = "thisMonth"
    CUSTOM = "custom"


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return _time.time_ns() // 1_000_000


def _to_ms(moment: datetime) -> int:
    return round(moment.timestamp() * 1000)


def from_epoch_ms(epoch_ms: int, tz: tzinfo | None = None) -> datetime:
    """Convert epoch milliseconds to a datetime in tz (naive local time when tz is None)."""
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz)


def start_of_day(epoch_ms: int, tz: tzinfo | None = None) -> int:
    """Epoch ms of local midnight on the day containing epoch_ms."""
    local = from_epoch_ms(epoch_ms, tz)
    return _to_ms(local.replace(hour=0, minute=0, second=0, microsecond=0))


def date_range(day: date | datetime | None = None, tz: tzinfo | None = None) -> tuple[int, int]:
    """
    Inclusive epoch-ms bounds of a local day.

    Args:
        day: The day (today when None). Aware datetimes are converted to tz first.
        tz: Zone for the day boundaries

    Returns:
        (start, end) where start is 00:00:00.000 and end is 23:59:59.999
    """
    if day is None:
        day = datetime.now(tz)
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            day = day.astimezone(tz)
        day = day.date()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, END_OF_DAY, tzinfo=tz)
    return _to_ms(start), _to_ms(end)


def resolve_preset(
    preset: TimeRangePreset | str,
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date, date]:
    """
    Turn a dashboard time range selection into (start_date, end_date).

    Raises:
        ValueError: For an unknown preset, or a custom range missing a bound
            or ending before it starts
    """
    preset = TimeRangePreset(preset)
    if preset is TimeRangePreset.TODAY:
        return today, today
    if preset is TimeRangePreset.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if preset is TimeRangePreset.LAST_7_DAYS:
        return today - timedelta(days=7), today
    if preset is TimeRangePreset.LAST_30_DAYS:
        return today - timedelta(days=30), today
    if preset is TimeRangePreset.THIS_MONTH:
        return today.replace(day=1), today

    if start is None or end is None:
        raise ValueError("A custom range needs both a start and an end date")
    if end < start:
        raise ValueError(f"Range ends ({end}) before it starts ({start})")
    return start, end


def format_epoch(epoch_ms: int | None, tz: tzinfo | None = None) -> str:
    """Format epoch ms like 'Oct 5, 2026, 01:02:03 PM'; 'N/A' when missing."""
    if not epoch_ms:
        return "N/A"
    moment = from_epoch_ms(epoch_ms, tz)
    return f"{moment:%b} {moment.day}, {moment:%Y, %I:%M:%S %p}"


def time_ago(epoch_ms: int | None, now: int) -> str:
    """Short relative time such as '3 mins ago'; empty string when missing."""
    if epoch_ms is None:
        return ""
    seconds = max(0, (now - epoch_ms) // 1000)
    for size, unit in ((86400, "day"), (3600, "hour"), (60, "min")):
        if seconds >= size:
            value = seconds // size
            return f"{value} {unit}{'' if value == 1 else 's'} ago"
    return f"{seconds} sec{'' if seconds == 1 else 's'} ago"
