# ==============================================================================
# Analytics
# ==============================================================================
"""
Read-side services: windowed analytics, session lookups and the user directory.
"""

from sessionlog.analytics.service import AnalyticsService
from sessionlog.analytics.users import UserDetails, UserDirectory

__all__ = [
    "AnalyticsService",
    "UserDetails",
    "UserDirectory",
]
