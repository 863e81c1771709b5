from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Time source for trial recorders.

    Recorders stamp samples from ``now()`` relative to the moment they were
    started; tests pass a fake clock so sample timestamps are exact.
    """

    def now(self) -> float:
        """Seconds on a monotonic timeline."""


class RealClock:
    def now(self) -> float:
        return time.monotonic()


def elapsed_ms(clock: Clock, started_at_s: float) -> float:
    """Milliseconds since ``started_at_s``, never negative."""

    return max(0.0, (clock.now() - started_at_s) * 1000.0)
