# ==============================================================================
# Device / Context Probe
# ==============================================================================
"""
Classify the client device and capture a context snapshot for a new session.

The snapshot is pure: nothing here performs I/O, and missing values come back
as None rather than raising.
"""

import platform as _platform
import re
from dataclasses import dataclass
from typing import Optional

from sessionlog.core.models import DeviceInfo, DeviceType

# Checked first: tablets also match several of the generic mobile tokens
# (Android, Silk), so the order of these two patterns matters.
TABLET_PATTERN = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.IGNORECASE)
MOBILE_PATTERN = re.compile(
    r"Mobile|Android|iP(hone|od)|IEMobile|BlackBerry|Kindle|Silk-Accelerated"
    r"|(hpw|web)OS|Opera M(obi|ini)"
)

# (user agent token, platform) in match order
_PLATFORM_TOKENS = (
    ("iPad", "iPad"),
    ("iPhone", "iPhone"),
    ("iPod", "iPod"),
    ("Android", "Linux armv8l"),
    ("Windows", "Win32"),
    ("Macintosh", "MacIntel"),
    ("CrOS", "Linux x86_64"),
    ("Linux", "Linux x86_64"),
)


@dataclass(frozen=True)
class ClientRuntime:
    """What the client reports about itself."""

    user_agent: Optional[str] = None
    platform: Optional[str] = None

    @classmethod
    def current(cls) -> "ClientRuntime":
        """Describe the running Python process as a desktop client."""
        from sessionlog import __version__

        system = _platform.system() or "Unknown"
        machine = _platform.machine()
        user_agent = (
            f"sessionlog/{__version__} Python/{_platform.python_version()} "
            f"({system}{' ' + machine if machine else ''})"
        )
        return cls(user_agent=user_agent, platform=f"{system} {machine}".strip())


def classify_device(user_agent: str | None) -> DeviceType:
    """
    Classify a user agent as tablet, mobile or desktop.

    Args:
        user_agent: Raw user agent string (None is treated as desktop)

    Returns:
        DeviceType
    """
    if not user_agent:
        return DeviceType.DESKTOP
    if TABLET_PATTERN.search(user_agent):
        return DeviceType.TABLET
    if MOBILE_PATTERN.search(user_agent):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP


def guess_platform(user_agent: str | None) -> str | None:
    """Best-effort platform string from a user agent, None if unrecognised."""
    if not user_agent:
        return None
    for token, platform in _PLATFORM_TOKENS:
        if token in user_agent:
            return platform
    return None


def capture_context(runtime: ClientRuntime | None = None, email: str | None = None) -> DeviceInfo:
    """
    Take the device snapshot stored on a new session.

    Args:
        runtime: Client runtime description (an empty one when None)
        email: Signed-in user's email, if known

    Returns:
        DeviceInfo with device class, user agent, platform and email
    """
    runtime = runtime or ClientRuntime()
    return DeviceInfo(
        device=classify_device(runtime.user_agent).value,
        user_agent=runtime.user_agent,
        platform=runtime.platform or guess_platform(runtime.user_agent),
        email=email,
    )
