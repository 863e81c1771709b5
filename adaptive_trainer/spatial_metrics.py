from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from .samples import SpatialResponse
from .training_core import MetricsFamily

TARGET_BAND = (0.70, 0.85)


@dataclass(frozen=True, slots=True)
class SpatialMetrics:
    family: ClassVar[MetricsFamily] = MetricsFamily.SPATIAL

    accuracy: float = 0.0  # fraction correct
    reaction_time_ms: float = 0.0
    speed_accuracy_tradeoff: float = 0.0  # correct answers per second


def calculate_spatial_metrics(responses: Sequence[SpatialResponse]) -> SpatialMetrics:
    if not responses:
        return SpatialMetrics()

    n = len(responses)
    accuracy = sum(1 for r in responses if r.is_correct) / n
    rt = sum(r.reaction_time_ms for r in responses) / n
    tradeoff = accuracy / (rt / 1000.0) if rt > 0 else 0.0
    return SpatialMetrics(accuracy=accuracy, reaction_time_ms=rt, speed_accuracy_tradeoff=tradeoff)


def should_increase_difficulty(
    metrics: SpatialMetrics,
    target_band: tuple[float, float] = TARGET_BAND,
) -> bool:
    return metrics.accuracy > target_band[1]


def should_decrease_difficulty(
    metrics: SpatialMetrics,
    target_band: tuple[float, float] = TARGET_BAND,
) -> bool:
    return metrics.accuracy < target_band[0]
