"""Signal-detection statistics for the go/no-go attention task.

Rates of exactly 0 or 1 are pulled to 0.01 / 0.99 before the z-transform.
This is a deliberate approximation that keeps d' finite; it is not a
log-linear correction and it does not depend on the trial count.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from .samples import Response
from .training_core import MetricsFamily

Z_LIMIT = 6.0
RATE_FLOOR = 0.01
RATE_CEIL = 0.99

# Acklam's rational approximation to the standard normal quantile.
_A = (
    -3.969683028665376e01,
    2.209460984245205e02,
    -2.759285104469687e02,
    1.383577518672690e02,
    -3.066479806614716e01,
    2.506628277459239e00,
)
_B = (
    -5.447609879822406e01,
    1.615858368580409e02,
    -1.556989798598866e02,
    6.680131188771972e01,
    -1.328068155288572e01,
)
_C = (
    -7.784894002430293e-03,
    -3.223964580411365e-01,
    -2.400758277161838e00,
    -2.549732539343734e00,
    4.374664141464968e00,
    2.938163982698783e00,
)
_D = (
    7.784695709041462e-03,
    3.224671290700398e-01,
    2.445134137142996e00,
    3.754408661907416e00,
)
_P_LOW = 0.02425
_P_HIGH = 1.0 - _P_LOW


@dataclass(frozen=True, slots=True)
class AttentionMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.ATTENTION

    hit_rate: float = 0.0
    miss_rate: float = 0.0
    false_alarm_rate: float = 0.0
    d_prime: float = 0.0
    reaction_times_ms: tuple[float, ...] = ()
    mean_rt_ms: float = 0.0
    median_rt_ms: float = 0.0


def _tail(q: float) -> float:
    c = _C
    d = _D
    return (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / (
        (((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0
    )


def inverse_normal_cdf(p: float) -> float:
    """Standard normal quantile, accurate to ~1e-9 and clamped to [-6, 6]."""

    if p <= 0.0:
        return -Z_LIMIT
    if p >= 1.0:
        return Z_LIMIT

    if p < _P_LOW:
        z = _tail(math.sqrt(-2.0 * math.log(p)))
    elif p <= _P_HIGH:
        q = p - 0.5
        r = q * q
        a = _A
        b = _B
        z = (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5]) * q / (
            ((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1.0
        )
    else:
        z = -_tail(math.sqrt(-2.0 * math.log(1.0 - p)))
    return max(-Z_LIMIT, min(Z_LIMIT, z))


def correct_rate(rate: float) -> float:
    if rate == 0.0:
        return RATE_FLOOR
    if rate == 1.0:
        return RATE_CEIL
    return rate


def d_prime(hit_rate: float, false_alarm_rate: float) -> float:
    return inverse_normal_cdf(correct_rate(hit_rate)) - inverse_normal_cdf(
        correct_rate(false_alarm_rate)
    )


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2.0


def calculate_attention_metrics(responses: Sequence[Response]) -> AttentionMetrics:
    if not responses:
        return AttentionMetrics()

    targets = [r for r in responses if r.is_target]
    non_targets = [r for r in responses if not r.is_target]

    hits = sum(1 for r in targets if r.responded)
    misses = len(targets) - hits
    false_alarms = sum(1 for r in non_targets if r.responded)

    hit_rate = hits / len(targets) if targets else 0.0
    miss_rate = misses / len(targets) if targets else 0.0
    fa_rate = false_alarms / len(non_targets) if non_targets else 0.0

    rts = tuple(float(r.reaction_time_ms) for r in responses if r.reaction_time_ms is not None)
    mean_rt = sum(rts) / len(rts) if rts else 0.0

    return AttentionMetrics(
        hit_rate=hit_rate,
        miss_rate=miss_rate,
        false_alarm_rate=fa_rate,
        d_prime=d_prime(hit_rate, fa_rate),
        reaction_times_ms=rts,
        mean_rt_ms=mean_rt,
        median_rt_ms=median(rts),
    )
