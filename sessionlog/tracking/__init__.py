# ==============================================================================
# Session Tracking
# ==============================================================================
"""
Client-side session tracking: lifecycle, heartbeat and event logging.
"""

from sessionlog.tracking.event_logger import EventLogger
from sessionlog.tracking.heartbeat import Heartbeat, next_liveness
from sessionlog.tracking.session_manager import (
    SessionManager,
    SessionState,
    create_session,
    generate_session_id,
)

__all__ = [
    "EventLogger",
    "Heartbeat",
    "SessionManager",
    "SessionState",
    "create_session",
    "generate_session_id",
    "next_liveness",
]
