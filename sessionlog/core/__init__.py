# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no store or framework dependencies.

This module contains:
- Domain models (Session, Event, DeviceInfo, AnalyticsSummary)
- Device classification and context capture
- Day-bucket and time-range helpers
- Analytics aggregation and session filtering

All code here is easily unit-testable with fixed timestamps.
"""

from sessionlog.core.analytics_processor import (
    AnalyticsProcessor,
    average_duration,
    is_active,
    session_duration,
)
from sessionlog.core.device import ClientRuntime, capture_context, classify_device
from sessionlog.core.models import (
    AnalyticsSummary,
    DeviceInfo,
    DeviceType,
    Event,
    RecentEvent,
    Session,
    SessionLog,
    TopUser,
)

__all__ = [
    "AnalyticsProcessor",
    "AnalyticsSummary",
    "ClientRuntime",
    "DeviceInfo",
    "DeviceType",
    "Event",
    "RecentEvent",
    "Session",
    "SessionLog",
    "TopUser",
    "average_duration",
    "capture_context",
    "classify_device",
    "is_active",
    "session_duration",
]
