"""Dual- and triple-task costs, and tracking interference around auditory events.

Costs are relative degradations against single-task baselines:
``(combined - baseline) / baseline``.  Positive means performance got worse
under load.  A zero baseline gives a cost of 0 rather than inf/NaN.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from .attention_metrics import AttentionMetrics
from .samples import Response, Sample, Sample2D
from .tracking_metrics import TrackingMetrics, rmse_1d, rmse_2d
from .training_core import MetricsFamily

INTERFERENCE_WINDOW_MS = 500.0


def relative_cost(value: float, baseline: float) -> float:
    if baseline == 0.0:
        return 0.0
    return (value - baseline) / baseline


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


@dataclass(frozen=True, slots=True)
class MultitaskMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.MULTITASK

    dual_task_cost: float = 0.0
    baseline_rmse: float = 0.0
    dual_rmse: float = 0.0


def calculate_multitask_metrics(
    *,
    baseline_1d: TrackingMetrics,
    baseline_2d: TrackingMetrics,
    dual_1d: TrackingMetrics,
    dual_2d: TrackingMetrics,
) -> MultitaskMetrics:
    cost_1d = relative_cost(dual_1d.rmse, baseline_1d.rmse)
    cost_2d = relative_cost(dual_2d.rmse, baseline_2d.rmse)
    return MultitaskMetrics(
        dual_task_cost=(cost_1d + cost_2d) / 2.0,
        baseline_rmse=(baseline_1d.rmse + baseline_2d.rmse) / 2.0,
        dual_rmse=(dual_1d.rmse + dual_2d.rmse) / 2.0,
    )


@dataclass(frozen=True, slots=True)
class InterferenceMetrics:
    error_spikes_around_responses: tuple[float, ...] = ()
    mean_error_spike_response: float = 0.0
    error_spikes_around_stimuli: tuple[float, ...] = ()
    mean_error_spike_stimulus: float = 0.0


class _TimeIndex:
    """Timestamp lookup over a finalized, time-ordered sample sequence."""

    def __init__(self, samples: Sequence[Sample] | Sequence[Sample2D]) -> None:
        self._samples = samples
        self._times = [s.timestamp_ms for s in samples]

    def around(self, t_ms: float, half_width_ms: float) -> Sequence:
        lo = bisect.bisect_left(self._times, t_ms - half_width_ms)
        hi = bisect.bisect_right(self._times, t_ms + half_width_ms)
        return self._samples[lo:hi]


def _spike_at(
    t_ms: float,
    index_1d: _TimeIndex,
    index_2d: _TimeIndex,
    window_ms: float,
) -> float | None:
    in_1d = index_1d.around(t_ms, window_ms)
    in_2d = index_2d.around(t_ms, window_ms)
    if not in_1d and not in_2d:
        return None
    # A task with no samples in the window contributes 0.
    return (rmse_1d(in_1d) + rmse_2d(in_2d)) / 2.0


def calculate_interference_metrics(
    samples_1d: Sequence[Sample],
    samples_2d: Sequence[Sample2D],
    responses: Sequence[Response],
    window_ms: float = INTERFERENCE_WINDOW_MS,
) -> InterferenceMetrics:
    index_1d = _TimeIndex(samples_1d)
    index_2d = _TimeIndex(samples_2d)

    around_responses: list[float] = []
    for r in responses:
        if not r.responded or r.response_timestamp_ms is None:
            continue
        spike = _spike_at(r.response_timestamp_ms, index_1d, index_2d, window_ms)
        if spike is not None:
            around_responses.append(spike)

    around_stimuli: list[float] = []
    for r in responses:
        spike = _spike_at(r.stimulus_timestamp_ms, index_1d, index_2d, window_ms)
        if spike is not None:
            around_stimuli.append(spike)

    return InterferenceMetrics(
        error_spikes_around_responses=tuple(around_responses),
        mean_error_spike_response=_mean(around_responses),
        error_spikes_around_stimuli=tuple(around_stimuli),
        mean_error_spike_stimulus=_mean(around_stimuli),
    )


@dataclass(frozen=True, slots=True)
class TripleTaskMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.TRIPLE_TASK

    tracking_1d: TrackingMetrics = TrackingMetrics()
    tracking_2d: TrackingMetrics = TrackingMetrics()
    attention: AttentionMetrics = AttentionMetrics()
    dual_motor_cost: float = 0.0
    auditory_cost: float = 0.0
    # Same value as dual_motor_cost; kept as its own field for reporting.
    motor_interference_cost: float = 0.0
    interference: InterferenceMetrics = InterferenceMetrics()


def calculate_triple_task_metrics(
    *,
    metrics_1d: TrackingMetrics,
    metrics_2d: TrackingMetrics,
    metrics_audio: AttentionMetrics,
    baseline_1d: TrackingMetrics,
    baseline_2d: TrackingMetrics,
    baseline_audio: AttentionMetrics,
    samples_1d: Sequence[Sample] = (),
    samples_2d: Sequence[Sample2D] = (),
    auditory_responses: Sequence[Response] = (),
) -> TripleTaskMetrics:
    baseline_motor = (baseline_1d.rmse + baseline_2d.rmse) / 2.0
    triple_motor = (metrics_1d.rmse + metrics_2d.rmse) / 2.0
    dual_motor_cost = relative_cost(triple_motor, baseline_motor)

    if baseline_audio.d_prime == 0.0:
        auditory_cost = 0.0
    else:
        auditory_cost = (metrics_audio.d_prime - baseline_audio.d_prime) / abs(baseline_audio.d_prime)

    return TripleTaskMetrics(
        tracking_1d=metrics_1d,
        tracking_2d=metrics_2d,
        attention=metrics_audio,
        dual_motor_cost=dual_motor_cost,
        auditory_cost=auditory_cost,
        motor_interference_cost=dual_motor_cost,
        interference=calculate_interference_metrics(samples_1d, samples_2d, auditory_responses),
    )
