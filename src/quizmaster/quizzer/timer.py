"""Countdown bookkeeping for timed sessions.

The timer only measures time; deciding what happens on expiry is up to the
session front end, which grades exactly once with the answers collected so
far.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

Clock = Callable[[], float]


def format_time(seconds: float) -> str:
    """Render a non-negative duration as ``MM:SS``."""

    total = max(0, int(seconds))
    minutes, remaining = divmod(total, 60)
    return f"{minutes:02d}:{remaining:02d}"


class SessionTimer:
    """Monotonic countdown with an optional limit.

    A ``limit_seconds`` of ``None`` or ``0`` disables expiry; elapsed time is
    still tracked so results can report how long a session took.
    """

    def __init__(
        self,
        limit_seconds: Optional[int],
        *,
        clock: Clock = time.monotonic,
        low_time_seconds: int = 0,
    ) -> None:
        self.limit_seconds = limit_seconds or None
        self.low_time_seconds = low_time_seconds
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return max(0.0, self._clock() - self._started)

    def remaining(self) -> Optional[float]:
        if self.limit_seconds is None:
            return None
        return max(0.0, self.limit_seconds - self.elapsed())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    @property
    def is_low(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining < self.low_time_seconds

    def remaining_text(self) -> str:
        remaining = self.remaining()
        if remaining is None:
            return "--:--"
        return format_time(remaining)

    def elapsed_text(self) -> str:
        if self.limit_seconds is not None:
            return format_time(min(self.elapsed(), self.limit_seconds))
        return format_time(self.elapsed())
