# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyDocumentStore instances
- Clean Redis state per test (automatic flush)
- A controllable millisecond clock and a fixed UTC day
"""

from datetime import datetime, timezone

import fakeredis
import pytest

from sessionlog.core.device import ClientRuntime
from sessionlog.infrastructure.store import ValkeyDocumentStore
from sessionlog.utils.config import get_settings

UTC = timezone.utc

# 2026-10-19 10:00:00 UTC
REFERENCE_TIME = datetime(2026, 10, 19, 10, 0, 0, tzinfo=UTC)
REFERENCE_MS = int(REFERENCE_TIME.timestamp() * 1000)

DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached per process; start each test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyDocumentStore client.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def store(fake_redis):
    """A ValkeyDocumentStore backed by fakeredis."""
    return ValkeyDocumentStore(client=fake_redis, namespace="test")


@pytest.fixture()
def clock():
    """A FakeClock starting at 2026-10-19 10:00:00 UTC."""
    return FakeClock(REFERENCE_MS)


@pytest.fixture()
def desktop_runtime():
    return ClientRuntime(user_agent=DESKTOP_UA, platform="Win32")
