"""Closed-loop difficulty adaptation between trials.

Two control laws are used:

* Tracking trials use a threshold law.  A trial succeeds when its RMSE is
  below ``0.3 / (1 + difficulty)``; success steps difficulty up, anything
  else steps it down.
* Accuracy trials (spatial) use a dead-band law around the 70-85% target
  band.  Accuracy above the band steps up, below the band steps down, and
  inside the band leaves difficulty untouched.

Each decision depends only on ``(current difficulty, metrics)``.  The outcome
history kept in ``DifficultyState`` is for reporting and never feeds back
into a decision.  Output is always clamped to ``[0.1, 1.0]``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import StrEnum

from .results import MetricsRecord
from .spatial_metrics import SpatialMetrics
from .tracking_metrics import TrackingMetrics
from .training_core import (
    DEFAULT_DIFFICULTY,
    DIFFICULTY_STEP,
    clamp_difficulty,
)

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10


@dataclass(frozen=True, slots=True)
class ThresholdControllerConfig:
    base_threshold: float = 0.3
    step: float = DIFFICULTY_STEP

    def __post_init__(self) -> None:
        if self.base_threshold <= 0.0:
            raise ValueError("base_threshold must be > 0")
        if self.step <= 0.0:
            raise ValueError("step must be > 0")


@dataclass(frozen=True, slots=True)
class BandControllerConfig:
    lower: float = 0.70
    upper: float = 0.85
    step: float = DIFFICULTY_STEP

    def __post_init__(self) -> None:
        if not (self.lower <= self.upper):
            raise ValueError("lower must be <= upper")
        if self.step <= 0.0:
            raise ValueError("step must be > 0")


class BandPosition(StrEnum):
    ABOVE = "above"
    WITHIN = "within"
    BELOW = "below"


class ThresholdController:
    def __init__(self, config: ThresholdControllerConfig | None = None) -> None:
        self._cfg = config or ThresholdControllerConfig()

    def threshold(self, difficulty: float) -> float:
        return self._cfg.base_threshold / (1.0 + difficulty)

    def is_success(self, difficulty: float, rmse: float) -> bool:
        # NaN RMSE fails the comparison and counts as a failure.
        return rmse < self.threshold(difficulty)

    def next_difficulty(self, difficulty: float, metrics: TrackingMetrics) -> float:
        d = clamp_difficulty(difficulty)
        if self.is_success(d, metrics.rmse):
            return clamp_difficulty(d + self._cfg.step)
        return clamp_difficulty(d - self._cfg.step)


class BandController:
    """Dead-band controller: no correction while accuracy sits in the band."""

    def __init__(self, config: BandControllerConfig | None = None) -> None:
        self._cfg = config or BandControllerConfig()

    def classify(self, accuracy: float) -> BandPosition:
        if accuracy > self._cfg.upper:
            return BandPosition.ABOVE
        if accuracy < self._cfg.lower:
            return BandPosition.BELOW
        return BandPosition.WITHIN

    def next_difficulty(self, difficulty: float, accuracy: float) -> float:
        d = clamp_difficulty(difficulty)
        position = self.classify(accuracy)
        if position is BandPosition.ABOVE:
            return clamp_difficulty(d + self._cfg.step)
        if position is BandPosition.BELOW:
            return clamp_difficulty(d - self._cfg.step)
        return d


@dataclass(frozen=True, slots=True)
class DifficultyState:
    value: float = DEFAULT_DIFFICULTY
    history: tuple[bool, ...] = ()  # most recent last

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", clamp_difficulty(self.value))

    def with_outcome(self, *, value: float, success: bool, window: int) -> DifficultyState:
        history = (*self.history, bool(success))[-window:]
        return DifficultyState(value=value, history=history)

    @property
    def success_rate(self) -> float:
        if not self.history:
            return 0.0
        return sum(1 for ok in self.history if ok) / len(self.history)


class DifficultyController:
    """Per-module-run difficulty state, updated once per completed trial."""

    def __init__(
        self,
        *,
        initial_difficulty: float = DEFAULT_DIFFICULTY,
        history_window: int = HISTORY_WINDOW,
        threshold: ThresholdControllerConfig | None = None,
        band: BandControllerConfig | None = None,
    ) -> None:
        if history_window < 1:
            raise ValueError("history_window must be >= 1")
        self._initial = clamp_difficulty(initial_difficulty)
        self._window = int(history_window)
        self._threshold = ThresholdController(threshold)
        self._band = BandController(band)
        self._state = DifficultyState(value=self._initial)

    @property
    def state(self) -> DifficultyState:
        return self._state

    @property
    def difficulty(self) -> float:
        return self._state.value

    @property
    def success_rate(self) -> float:
        return self._state.success_rate

    def update(self, metrics: MetricsRecord) -> float:
        """Consume one trial's metrics and return the next trial's difficulty."""

        current = self._state.value
        if isinstance(metrics, TrackingMetrics):
            success = self._threshold.is_success(current, metrics.rmse)
            new_value = self._threshold.next_difficulty(current, metrics)
        elif isinstance(metrics, SpatialMetrics):
            success = self._band.classify(metrics.accuracy) is BandPosition.ABOVE
            new_value = self._band.next_difficulty(current, metrics.accuracy)
        else:
            logger.debug("no difficulty law for %s trials; keeping %.2f", metrics.family, current)
            return current

        self._state = self._state.with_outcome(value=new_value, success=success, window=self._window)
        if new_value != current:
            logger.info(
                "difficulty %.2f -> %.2f (%s trial, success=%s)",
                current,
                new_value,
                metrics.family,
                success,
            )
        return new_value

    def reset(self, initial_difficulty: float | None = None) -> None:
        """Start a new module run."""

        if initial_difficulty is not None:
            self._initial = clamp_difficulty(initial_difficulty)
        self._state = DifficultyState(value=self._initial)


class RmseTracker:
    """Rolling RMSE window over recent tracking trials, for reporting."""

    def __init__(self, window_size: int = HISTORY_WINDOW) -> None:
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self._recent: deque[float] = deque(maxlen=window_size)

    def add(self, metrics: TrackingMetrics) -> None:
        self._recent.append(metrics.rmse)

    def average_rmse(self) -> float:
        if not self._recent:
            return 0.0
        return sum(self._recent) / len(self._recent)

    def success_rate(self, threshold: float) -> float:
        if not self._recent:
            return 0.0
        return sum(1 for v in self._recent if v < threshold) / len(self._recent)

    def reset(self) -> None:
        self._recent.clear()
