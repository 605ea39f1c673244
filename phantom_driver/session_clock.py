"""
Session Clock

Stopwatch used to mete out recording and playback. Works in whole
milliseconds on top of an integer nanosecond time source, so time indexes
computed from it are exact.
"""

import time
from typing import Callable, Optional

NS_PER_MS = 1_000_000


class SessionClock:
    """Resettable stopwatch with the same reset/start/stop/get cycle as a match timer."""

    def __init__(self, time_source: Optional[Callable[[], int]] = None):
        """
        Args:
            time_source: Returns monotonic time in nanoseconds. Defaults to time.monotonic_ns
        """
        self._time_source = time_source or time.monotonic_ns
        self._accumulated_ns = 0
        self._started_at: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def start(self):
        """Start counting from the current reading. No effect if already running."""
        if self._started_at is None:
            self._started_at = self._time_source()

    def stop(self):
        """Freeze the reading."""
        if self._started_at is not None:
            self._accumulated_ns += self._time_source() - self._started_at
            self._started_at = None

    def reset(self):
        """Set the reading back to zero. A running clock keeps running."""
        self._accumulated_ns = 0
        if self._started_at is not None:
            self._started_at = self._time_source()

    def elapsed_ns(self) -> int:
        elapsed = self._accumulated_ns
        if self._started_at is not None:
            elapsed += self._time_source() - self._started_at
        return elapsed

    def elapsed_ms(self) -> int:
        """Whole milliseconds on the clock, truncated."""
        return self.elapsed_ns() // NS_PER_MS


def time_index(elapsed_ms: int, time_spacing: int) -> int:
    """
    Translate elapsed time into an index into a route timeline.

    The elapsed time is divided into steps of time_spacing and truncated, e.g.
    with a spacing of 100ms, 127ms is index 1 and one second is index 10.

    Args:
        elapsed_ms: Milliseconds since playback started
        time_spacing: Nominal milliseconds between recorded values

    Returns:
        Timeline index for the elapsed time
    """
    return elapsed_ms // time_spacing
