"""Append-only sample buffers for a trial's driving loop.

The driving loop calls ``start()`` once, appends one sample per tick, then
calls ``finalize()`` exactly once.  Finalized samples are the only input the
metric reducers ever see, so the ordering guarantees they rely on
(non-decreasing timestamps, first sample at or after 0) are enforced here.
"""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

from .clock import Clock, RealClock, elapsed_ms
from .samples import Sample, Sample2D
from .training_core import Vec2

logger = logging.getLogger(__name__)

S = TypeVar("S", Sample, Sample2D)


class _RecorderBase(Generic[S]):
    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or RealClock()
        self._started_at_s: float | None = None
        self._samples: list[S] = []
        self._finalized: tuple[S, ...] | None = None

    @property
    def started(self) -> bool:
        return self._started_at_s is not None

    @property
    def finalized(self) -> bool:
        return self._finalized is not None

    def __len__(self) -> int:
        return len(self._samples)

    def start(self) -> None:
        if self.started:
            raise RuntimeError("recorder already started")
        self._started_at_s = self._clock.now()
        logger.debug("%s started", type(self).__name__)

    def elapsed_ms(self) -> float:
        if self._started_at_s is None:
            raise RuntimeError("recorder not started")
        return elapsed_ms(self._clock, self._started_at_s)

    def _append(self, sample: S) -> None:
        if self._started_at_s is None:
            raise RuntimeError("recorder not started")
        if self._finalized is not None:
            raise RuntimeError("recorder already finalized")
        t = sample.timestamp_ms
        if t < 0.0:
            raise ValueError(f"timestamp must be >= 0, got {t}")
        if self._samples and t < self._samples[-1].timestamp_ms:
            raise ValueError(
                f"timestamps must be non-decreasing: {t} < {self._samples[-1].timestamp_ms}"
            )
        self._samples.append(sample)

    def finalize(self) -> tuple[S, ...]:
        if self._started_at_s is None:
            raise RuntimeError("recorder not started")
        if self._finalized is not None:
            raise RuntimeError("recorder already finalized")
        self._finalized = tuple(self._samples)
        logger.debug("%s finalized with %d samples", type(self).__name__, len(self._finalized))
        return self._finalized


class SampleRecorder(_RecorderBase[Sample]):
    """Recorder for 1D tracking samples."""

    def record_at(
        self,
        t_ms: float,
        *,
        target_position: float,
        cursor_position: float,
        input_value: float,
    ) -> Sample:
        sample = Sample(
            timestamp_ms=float(t_ms),
            target_position=float(target_position),
            cursor_position=float(cursor_position),
            input_value=float(input_value),
        )
        self._append(sample)
        return sample

    def record(self, *, target_position: float, cursor_position: float, input_value: float) -> Sample:
        return self.record_at(
            self.elapsed_ms(),
            target_position=target_position,
            cursor_position=cursor_position,
            input_value=input_value,
        )


class SampleRecorder2D(_RecorderBase[Sample2D]):
    """Recorder for 2D tracking samples."""

    def record_at(
        self,
        t_ms: float,
        *,
        target_position: Vec2,
        cursor_position: Vec2,
        input_value: Vec2,
    ) -> Sample2D:
        sample = Sample2D(
            timestamp_ms=float(t_ms),
            target_position=target_position,
            cursor_position=cursor_position,
            input_value=input_value,
        )
        self._append(sample)
        return sample

    def record(self, *, target_position: Vec2, cursor_position: Vec2, input_value: Vec2) -> Sample2D:
        return self.record_at(
            self.elapsed_ms(),
            target_position=target_position,
            cursor_position=cursor_position,
            input_value=input_value,
        )
