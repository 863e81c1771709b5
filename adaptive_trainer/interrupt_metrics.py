"""Metrics for interrupt handling under continuous 2D tracking load.

Samples inside +/-1000 ms of an interrupt's appearance form the interrupt
partition.  Samples before the first interrupt (and before the configured
baseline duration) and outside every interrupt window form the baseline.

Recovery time is measured per answered interrupt: starting where the
response landed, slide a window over the following samples until its RMSE is
back within 120% of the baseline RMSE.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from .interrupts import Interrupt, InterruptResponse
from .samples import Sample2D
from .tracking_metrics import rmse_2d
from .training_core import MetricsFamily

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InterruptMetricsConfig:
    interrupt_half_window_ms: float = 1000.0
    recovery_factor: float = 1.2
    recovery_window_samples: int = 10
    # When set, recovery windows span this much elapsed time instead of a
    # fixed number of samples.
    recovery_window_ms: float | None = None

    def __post_init__(self) -> None:
        if self.interrupt_half_window_ms < 0.0:
            raise ValueError("interrupt_half_window_ms must be >= 0")
        if self.recovery_factor <= 0.0:
            raise ValueError("recovery_factor must be > 0")
        if self.recovery_window_samples < 1:
            raise ValueError("recovery_window_samples must be >= 1")
        if self.recovery_window_ms is not None and self.recovery_window_ms <= 0.0:
            raise ValueError("recovery_window_ms must be > 0")


@dataclass(frozen=True, slots=True)
class InterruptMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.INTERRUPT

    baseline_rmse: float = 0.0
    interrupt_rmse: float = 0.0
    overall_rmse: float = 0.0
    interference_cost: float = 0.0

    interrupt_accuracy: float = 0.0
    interrupt_hit_rate: float = 0.0
    interrupt_miss_rate: float = 0.0
    interrupt_error_rate: float = 0.0
    mean_reaction_time_ms: float = 0.0  # correct responses only

    recovery_times_ms: tuple[float, ...] = ()
    mean_recovery_time_ms: float = 0.0

    total_interrupts: int = 0
    correct_responses: int = 0
    incorrect_responses: int = 0
    missed_responses: int = 0


def _partition(
    samples: Sequence[Sample2D],
    interrupts: Sequence[Interrupt],
    baseline_duration_ms: float,
    half_window_ms: float,
) -> tuple[list[Sample2D], list[Sample2D]]:
    windows = [(i.appear_time_ms - half_window_ms, i.appear_time_ms + half_window_ms) for i in interrupts]
    baseline_end = baseline_duration_ms
    if interrupts:
        baseline_end = min(baseline_end, min(i.appear_time_ms for i in interrupts))

    baseline: list[Sample2D] = []
    in_interrupt: list[Sample2D] = []
    for s in samples:
        t = s.timestamp_ms
        if any(lo <= t <= hi for lo, hi in windows):
            in_interrupt.append(s)
        elif t < baseline_end:
            baseline.append(s)
    return baseline, in_interrupt


def _recovery_time(
    post: Sequence[Sample2D],
    search_start_ms: float,
    threshold: float,
    cfg: InterruptMetricsConfig,
) -> float | None:
    if cfg.recovery_window_ms is None:
        size = cfg.recovery_window_samples
        for i in range(len(post) - size + 1):
            window = post[i : i + size]
            if rmse_2d(window) <= threshold:
                return window[0].timestamp_ms - search_start_ms
        return None

    times = [s.timestamp_ms for s in post]
    for i, start in enumerate(times):
        end = start + cfg.recovery_window_ms
        if end > times[-1]:
            # Not enough data left to fill a whole window.
            return None
        j = bisect.bisect_right(times, end)
        if rmse_2d(post[i:j]) <= threshold:
            return start - search_start_ms
    return None


def _recovery_times(
    samples: Sequence[Sample2D],
    interrupts: Sequence[Interrupt],
    responses: Sequence[InterruptResponse],
    baseline_rmse: float,
    cfg: InterruptMetricsConfig,
) -> list[float]:
    threshold = baseline_rmse * cfg.recovery_factor
    by_id: dict[int, InterruptResponse] = {}
    for r in responses:
        by_id.setdefault(r.interrupt_id, r)
    times = [s.timestamp_ms for s in samples]

    found: list[float] = []
    for interrupt in interrupts:
        response = by_id.get(interrupt.interrupt_id)
        if response is None or response.missed:
            continue
        search_start = interrupt.appear_time_ms + response.response_time_ms
        post = samples[bisect.bisect_right(times, search_start) :]
        rt = _recovery_time(post, search_start, threshold, cfg)
        if rt is not None:
            found.append(rt)
    return found


def calculate_interrupt_metrics(
    samples: Sequence[Sample2D],
    interrupts: Sequence[Interrupt],
    responses: Sequence[InterruptResponse],
    baseline_duration_ms: float,
    config: InterruptMetricsConfig | None = None,
) -> InterruptMetrics:
    if not samples:
        return InterruptMetrics()
    cfg = config or InterruptMetricsConfig()

    baseline, in_interrupt = _partition(samples, interrupts, baseline_duration_ms, cfg.interrupt_half_window_ms)
    if not baseline:
        logger.debug("no baseline samples before the first interrupt; baseline RMSE is 0")

    baseline_rmse = rmse_2d(baseline)
    interrupt_rmse = rmse_2d(in_interrupt)
    interference_cost = (interrupt_rmse - baseline_rmse) / baseline_rmse if baseline_rmse > 0 else 0.0

    correct = sum(1 for r in responses if r.correct and not r.missed)
    incorrect = sum(1 for r in responses if not r.correct and not r.missed)
    missed = sum(1 for r in responses if r.missed)
    total = len(interrupts)

    def _rate(count: int) -> float:
        return count / total if total > 0 else 0.0

    correct_rts = [r.response_time_ms for r in responses if r.correct and not r.missed]
    mean_rt = sum(correct_rts) / len(correct_rts) if correct_rts else 0.0

    recovery = _recovery_times(samples, interrupts, responses, baseline_rmse, cfg)

    return InterruptMetrics(
        baseline_rmse=baseline_rmse,
        interrupt_rmse=interrupt_rmse,
        overall_rmse=rmse_2d(samples),
        interference_cost=interference_cost,
        interrupt_accuracy=_rate(correct),
        interrupt_hit_rate=_rate(correct + incorrect),
        interrupt_miss_rate=_rate(missed),
        interrupt_error_rate=_rate(incorrect),
        mean_reaction_time_ms=mean_rt,
        recovery_times_ms=tuple(recovery),
        mean_recovery_time_ms=sum(recovery) / len(recovery) if recovery else 0.0,
        total_interrupts=total,
        correct_responses=correct,
        incorrect_responses=incorrect,
        missed_responses=missed,
    )
