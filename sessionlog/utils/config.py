# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the document store."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")
    namespace: str = Field(default="sessionlog", description="Key prefix for all documents")
    socket_timeout: int = Field(default=10, description="Socket timeout in seconds")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class TrackingSettings(BaseSettings):
    """Session lifecycle settings.

    The active threshold should stay a multiple of the heartbeat interval so
    that a live session is never reported inactive between two ticks.
    """

    model_config = SettingsConfigDict(env_prefix="TRACKING_")

    heartbeat_interval_seconds: float = Field(
        default=300, description="Seconds between liveness updates"
    )
    active_threshold_minutes: int = Field(
        default=15, description="Sessions idle longer than this are inactive"
    )
    validate_resume: bool = Field(
        default=True, description="Check that a session exists before resuming it"
    )
    session_key_file: Path = Field(
        default=Path.home() / ".sessionlog" / "session_key",
        description="Where the current session id is persisted between runs",
    )
    timezone: Optional[str] = Field(
        default=None, description="IANA zone for day buckets (host local zone if unset)"
    )

    @property
    def tzinfo(self) -> ZoneInfo | None:
        """Resolve the configured zone, or None for the host local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


class AnalyticsSettings(BaseSettings):
    """Analytics aggregation limits."""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    session_limit: int = Field(default=1000, description="Max sessions fetched per query")
    top_users: int = Field(default=10, description="Number of top users reported")
    active_sessions_limit: int = Field(default=20, description="Max active sessions listed")
    recent_sessions: int = Field(
        default=10, description="Most recent sessions scanned for the event feed"
    )
    events_per_session: int = Field(
        default=5, description="Events taken from each recent session"
    )
    recent_events_limit: int = Field(default=50, description="Max events in the feed")


class DirectorySettings(BaseSettings):
    """User directory lookup settings."""

    model_config = SettingsConfigDict(env_prefix="DIRECTORY_")

    collection: str = Field(default="users-details", description="User details collection")
    email_cache_size: int = Field(default=1024, description="Max cached UID to email entries")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="WARNING", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
