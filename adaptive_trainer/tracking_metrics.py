"""Tracking error statistics for 1D and 2D pursuit trials.

Both variants report the same record.  1D error is the signed difference
``target - cursor``; 2D error is the unsigned Euclidean distance.  Smoothness
is the mean absolute sample-to-sample change of the raw input (total
variation per sample); lower is smoother and 0 means no input movement.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from .samples import Sample, Sample2D
from .training_core import MetricsFamily

THRESHOLD_1D = 0.05
THRESHOLD_2D = 0.1


@dataclass(frozen=True, slots=True)
class TrackingMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.TRACKING

    mae: float = 0.0
    rmse: float = 0.0
    time_on_target: float = 0.0  # percent of samples
    overshoot_count: int = 0
    overshoot_magnitude: float = 0.0
    smoothness: float = 0.0
    reacquisition_times_ms: tuple[float, ...] = ()  # 2D only


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


def rmse_1d(samples: Sequence[Sample]) -> float:
    if not samples:
        return 0.0
    return math.sqrt(sum(s.error * s.error for s in samples) / len(samples))


def rmse_2d(samples: Sequence[Sample2D]) -> float:
    if not samples:
        return 0.0
    total = 0.0
    for s in samples:
        e = s.error
        total += e * e
    return math.sqrt(total / len(samples))


def calculate_tracking_metrics(
    samples: Sequence[Sample],
    threshold: float = THRESHOLD_1D,
) -> TrackingMetrics:
    if not samples:
        return TrackingMetrics()

    errors = [s.error for s in samples]
    n = len(errors)

    mae = sum(abs(e) for e in errors) / n
    rmse = math.sqrt(sum(e * e for e in errors) / n)
    on_target = sum(1 for e in errors if abs(e) <= threshold)

    # A sign flip of the error means the cursor crossed the target.
    overshoots = 0
    overshoot_total = 0.0
    for prev, cur in zip(errors, errors[1:]):
        if _sign(cur) != _sign(prev) and abs(cur) > threshold:
            overshoots += 1
            overshoot_total += abs(cur)

    smoothness = 0.0
    if n > 1:
        smoothness = sum(
            abs(b.input_value - a.input_value) for a, b in zip(samples, samples[1:])
        ) / (n - 1)

    return TrackingMetrics(
        mae=mae,
        rmse=rmse,
        time_on_target=on_target / n * 100.0,
        overshoot_count=overshoots,
        overshoot_magnitude=overshoot_total / overshoots if overshoots else 0.0,
        smoothness=smoothness,
    )


def calculate_tracking_metrics_2d(
    samples: Sequence[Sample2D],
    threshold: float = THRESHOLD_2D,
) -> TrackingMetrics:
    if not samples:
        return TrackingMetrics()

    n = len(samples)
    errors: list[float] = []
    on_target = 0
    reacquisitions: list[float] = []
    off_target = False
    lost_at_ms = 0.0

    for s in samples:
        e = s.error
        errors.append(e)
        if e <= threshold:
            on_target += 1
            if off_target:
                reacquisitions.append(s.timestamp_ms - lost_at_ms)
                off_target = False
        elif not off_target:
            lost_at_ms = s.timestamp_ms
            off_target = True

    mae = sum(errors) / n
    rmse = math.sqrt(sum(e * e for e in errors) / n)

    # Two-step lookback: a reversal of the cursor->target direction while
    # clearly off target on both ends.
    overshoots = 0
    overshoot_total = 0.0
    for i in range(2, n):
        v1 = samples[i - 2].error_vector
        v2 = samples[i].error_vector
        m1 = v1.length()
        m2 = v2.length()
        if v1.dot(v2) < 0.0 and m1 > threshold and m2 > threshold:
            overshoots += 1
            overshoot_total += (m1 + m2) / 2.0

    smoothness = 0.0
    if n > 1:
        smoothness = sum(
            (b.input_value - a.input_value).length() for a, b in zip(samples, samples[1:])
        ) / (n - 1)

    return TrackingMetrics(
        mae=mae,
        rmse=rmse,
        time_on_target=on_target / n * 100.0,
        overshoot_count=overshoots,
        overshoot_magnitude=overshoot_total / overshoots if overshoots else 0.0,
        smoothness=smoothness,
        reacquisition_times_ms=tuple(reacquisitions),
    )
