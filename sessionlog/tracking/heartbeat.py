# ==============================================================================
# Session Heartbeat
# ==============================================================================
"""
Periodic liveness updates for an active session.

The tick is split in two: next_liveness() computes the new lastActive value
(pure, testable with fake clocks) and the beat callable owned by the
SessionManager performs the store write.
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60
JOIN_TIMEOUT_SECONDS = 5.0


def next_liveness(previous: int | None, now: int) -> int:
    """
    Next lastActive value for a heartbeat tick.

    Never moves backwards, so a clock step back cannot break
    lastActive >= createdAt.
    """
    if previous is None:
        return now
    return max(previous, now)


class Heartbeat:
    """
    Cancellable fixed-interval task running on a daemon thread.

    The first beat fires one interval after start(). Exceptions raised by the
    beat are logged and the schedule continues.
    """

    def __init__(
        self,
        interval_seconds: float,
        beat: Callable[[], None],
        name: str = "sessionlog-heartbeat",
    ):
        """
        Initialize the heartbeat.

        Args:
            interval_seconds: Seconds between beats (must be positive)
            beat: Callable invoked on every tick
            name: Thread name, shown in logs and debuggers
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._interval = interval_seconds
        self._beat = beat
        self._name = name
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self.beats = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def start(self) -> None:
        """Start beating. Does nothing if already running."""
        if self.is_running:
            return
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stopped,), name=self._name, daemon=True
        )
        self._thread.start()
        logger.debug("Heartbeat started (every %ss)", self._interval)

    def cancel(self) -> None:
        """Stop beating. Safe to call when not running."""
        self._stopped.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=JOIN_TIMEOUT_SECONDS)
            logger.debug("Heartbeat cancelled after %d beats", self.beats)

    def beat(self) -> None:
        """Run one tick now, outside the schedule."""
        try:
            self._beat()
        except Exception:
            logger.exception("Heartbeat tick failed")
        self.beats += 1

    def _run(self, stopped: threading.Event) -> None:
        while not stopped.wait(self._interval):
            self.beat()
