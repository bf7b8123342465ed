"""Frame timing based on a monotonic clock."""

from __future__ import annotations

import time
from typing import Callable

__all__ = ["FrameClock"]


class FrameClock:
    """Measures the seconds elapsed between successive ticks."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._last = clock()

    def reset(self) -> None:
        """Restart measurement from the current instant."""
        self._last = self._clock()

    def tick_seconds(self) -> float:
        """Return seconds since the previous tick (or reset) and start a new interval."""
        now = self._clock()
        elapsed = now - self._last
        self._last = now
        return elapsed