# ==============================================================================
# Session Tracking Domain Models
# ==============================================================================
"""
Pydantic models for sessions, events and analytics summaries.

These models are used for:
- Building the records written to the document store
- Validating records read back from it
- Serializing analytics results for the CLI and JSON output

Python attributes are snake_case; the stored record shapes use the camelCase
aliases (createdAt, lastActive, dateKey, userAgent, ...).
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Keys an event payload may not override
RESERVED_EVENT_KEYS = frozenset({"id", "type", "timestamp"})


class DeviceType(str, Enum):
    """Device classes derived from the user agent."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class DeviceInfo(BaseModel):
    """
    Snapshot of the client runtime taken when a session starts.

    Attributes:
        device: Device class (mobile, tablet, desktop)
        user_agent: Raw user agent string
        platform: Platform string (e.g. "Win32", "MacIntel", "Linux x86_64")
        email: Email of the signed-in user, if known
    """

    model_config = ConfigDict(populate_by_name=True)

    device: str | None = Field(None, description="Device class")
    user_agent: str | None = Field(None, alias="userAgent", description="User agent")
    platform: str | None = Field(None, description="Client platform")
    email: str | None = Field(None, description="User email")


class Session(BaseModel):
    """
    One continuous user visit.

    Timestamps are optional on read so that a damaged record degrades to
    "unknown duration, inactive" instead of failing a whole analytics run.
    Records written by SessionManager always carry all three.

    Attributes:
        id: Composite key "{uid}_{createdAt}_{suffix}"
        uid: Owning user id (None for guests)
        created_at: Creation time in epoch ms
        last_active: Last heartbeat or event in epoch ms
        date_key: Start of the creator's local day in epoch ms
        info: Device snapshot
        event_count: Number of events, filled in by readers (never stored)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Session id")
    uid: str | None = Field(None, description="User id")
    created_at: int | None = Field(None, alias="createdAt", description="Creation time (ms)")
    last_active: int | None = Field(None, alias="lastActive", description="Last activity (ms)")
    date_key: int | None = Field(None, alias="dateKey", description="Start of day (ms)")
    info: DeviceInfo = Field(default_factory=DeviceInfo, description="Device snapshot")
    event_count: int | None = Field(None, alias="eventCount", description="Event count")

    def to_record(self) -> dict:
        """Serialize for the sessions collection."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id", "event_count"})

    @classmethod
    def from_record(cls, data: dict) -> "Session":
        """Deserialize a sessions collection document (with "id" merged in)."""
        return cls.model_validate(data)


class Event(BaseModel):
    """
    One user action within a session.

    Any extra keys in the record are the event payload and are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = Field(None, description="Store-generated event id")
    type: str = Field(..., description="Event type tag")
    timestamp: int = Field(..., description="Event time (ms)")

    @property
    def payload(self) -> dict:
        """Additional key/value data logged with the event."""
        return dict(self.model_extra or {})

    @classmethod
    def create(cls, event_type: str, timestamp: int, payload: dict | None = None) -> "Event":
        """Build a new event, dropping payload keys that clash with reserved fields."""
        payload = dict(payload or {})
        clashing = RESERVED_EVENT_KEYS.intersection(payload)
        if clashing:
            logger.warning("Ignoring reserved payload keys for %s: %s", event_type, sorted(clashing))
            for key in clashing:
                payload.pop(key)
        return cls(type=event_type, timestamp=timestamp, **payload)

    def to_record(self) -> dict:
        """Serialize for a session's events sub-collection."""
        return {"type": self.type, "timestamp": self.timestamp, **self.payload}

    @classmethod
    def from_record(cls, data: dict) -> "Event":
        return cls.model_validate(data)


class RecentEvent(Event):
    """An event in the dashboard feed, tagged with its session and user."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", description="Parent session id")
    user_id: str | None = Field(None, alias="userId", description="Session owner")
    email: str | None = Field(None, description="Session owner email")


class TopUser(BaseModel):
    """A user ranked by session count."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    session_count: int = Field(..., alias="sessionCount")
    email: str | None = None


class AnalyticsSummary(BaseModel):
    """
    Aggregated metrics for a time window.

    Attributes:
        start_timestamp: Inclusive window start (ms)
        end_timestamp: Inclusive window end (ms)
        generated_at: When the summary was computed (ms); activity is
            evaluated against this instant
        dau: Distinct signed-in users with a session in the window
        total_sessions: Sessions fetched
        active_sessions: Sessions within the liveness threshold
        avg_duration: Mean duration in minutes over positive durations
        total_events: Events across all fetched sessions
        truncated: True when the session fetch hit its cap
    """

    model_config = ConfigDict(populate_by_name=True)

    start_timestamp: int = Field(..., alias="startTimestamp")
    end_timestamp: int = Field(..., alias="endTimestamp")
    generated_at: int = Field(..., alias="generatedAt")
    dau: int = 0
    total_sessions: int = Field(0, alias="totalSessions")
    active_sessions: int = Field(0, alias="activeSessions")
    avg_duration: int = Field(0, alias="avgDuration")
    total_events: int = Field(0, alias="totalEvents")
    device_breakdown: dict[str, int] = Field(default_factory=dict, alias="deviceBreakdown")
    platform_breakdown: dict[str, int] = Field(default_factory=dict, alias="platformBreakdown")
    top_users: list[TopUser] = Field(default_factory=list, alias="topUsers")
    active_session_list: list[Session] = Field(default_factory=list, alias="activeSessionList")
    recent_events: list[RecentEvent] = Field(default_factory=list, alias="recentEvents")
    truncated: bool = False

    @property
    def unique_users(self) -> int:
        return self.dau

    def to_json_dict(self) -> dict:
        """JSON-ready dict using the camelCase record names."""
        return self.model_dump(mode="json", by_alias=True)


class SessionLog(BaseModel):
    """A session together with all of its events, oldest event first."""

    session: Session
    events: list[Event] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        return {
            **self.session.model_dump(mode="json", by_alias=True, exclude_none=True),
            "events": [event.model_dump(mode="json") for event in self.events],
        }
