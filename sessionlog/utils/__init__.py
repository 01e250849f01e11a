# ==============================================================================
# Utilities
# ==============================================================================
"""
Shared utilities: configuration and the store retry policy.
"""

from sessionlog.utils.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
