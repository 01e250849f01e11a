# ==============================================================================
# Collection Layout
# ==============================================================================
"""
Document paths for sessions, their events and the per-user session index.

    sessions/{session_id}                  -> Session record
    sessions/{session_id}/events/{id}      -> Event records
    users/{uid}/sessions/{session_id}      -> {"dateKey": ...} reverse index
"""

from sessionlog.base.document_store import join_path

SESSIONS = "sessions"
EVENTS = "events"
USERS = "users"


def session_path(session_id: str) -> str:
    return join_path(SESSIONS, session_id)


def events_path(session_id: str) -> str:
    return join_path(SESSIONS, session_id, EVENTS)


def user_sessions_path(uid: str) -> str:
    return join_path(USERS, uid, SESSIONS)


def user_session_path(uid: str, session_id: str) -> str:
    return join_path(USERS, uid, SESSIONS, session_id)
