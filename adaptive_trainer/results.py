from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from .attention_metrics import AttentionMetrics
from .interrupt_metrics import InterruptMetrics
from .multitask_metrics import MultitaskMetrics, TripleTaskMetrics
from .samples import Response, Sample, Sample2D, SpatialResponse
from .spatial_metrics import SpatialMetrics
from .tracking_metrics import TrackingMetrics
from .training_core import MetricsFamily, Vec2

# Closed union: one trial has exactly one metrics family.
MetricsRecord = (
    TrackingMetrics
    | AttentionMetrics
    | SpatialMetrics
    | MultitaskMetrics
    | TripleTaskMetrics
    | InterruptMetrics
)


class EventType(StrEnum):
    INPUT = "input"
    STIMULUS = "stimulus"
    RESPONSE = "response"


@dataclass(frozen=True, slots=True)
class EventSample:
    """Plain-data event log entry handed to an external store.

    ``value`` is stored as a read-only mapping.
    """

    t_ms: float  # relative to trial start
    type: EventType
    value: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", EventType(self.type))
        object.__setattr__(self, "value", MappingProxyType(dict(self.value)))


@dataclass(frozen=True, slots=True)
class TrialResult:
    """Persistable summary + event log for one completed trial."""

    trial_id: str
    module_run_id: str
    family: MetricsFamily
    difficulty: float
    duration_ms: float
    metrics: MetricsRecord
    events: tuple[EventSample, ...] = ()
    seed: int | None = None


def build_trial_result(
    *,
    trial_id: str,
    module_run_id: str,
    difficulty: float,
    duration_ms: float,
    metrics: MetricsRecord,
    events: Iterable[EventSample] = (),
    seed: int | None = None,
) -> TrialResult:
    return TrialResult(
        trial_id=str(trial_id),
        module_run_id=str(module_run_id),
        family=metrics.family,
        difficulty=float(difficulty),
        duration_ms=float(duration_ms),
        metrics=metrics,
        events=tuple(events),
        seed=None if seed is None else int(seed),
    )


def metrics_to_dict(metrics: MetricsRecord) -> dict[str, Any]:
    out = asdict(metrics)
    out["family"] = str(metrics.family)
    return out


def _vec(v: Vec2) -> dict[str, float]:
    return {"x": v.x, "y": v.y}


def _unvec(raw: object) -> Vec2:
    if isinstance(raw, Mapping):
        return Vec2(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))
    return Vec2()


def samples_to_events(samples: Sequence[Sample]) -> tuple[EventSample, ...]:
    return tuple(
        EventSample(
            t_ms=s.timestamp_ms,
            type=EventType.INPUT,
            value={
                "target_position": s.target_position,
                "cursor_position": s.cursor_position,
                "input_value": s.input_value,
            },
        )
        for s in samples
    )


def events_to_samples(events: Iterable[EventSample]) -> tuple[Sample, ...]:
    return tuple(
        Sample(
            timestamp_ms=e.t_ms,
            target_position=float(e.value.get("target_position") or 0.0),
            cursor_position=float(e.value.get("cursor_position") or 0.0),
            input_value=float(e.value.get("input_value") or 0.0),
        )
        for e in events
        if e.type is EventType.INPUT
    )


def samples_to_events_2d(samples: Sequence[Sample2D]) -> tuple[EventSample, ...]:
    return tuple(
        EventSample(
            t_ms=s.timestamp_ms,
            type=EventType.INPUT,
            value={
                "target_position": _vec(s.target_position),
                "cursor_position": _vec(s.cursor_position),
                "input_value": _vec(s.input_value),
            },
        )
        for s in samples
    )


def events_to_samples_2d(events: Iterable[EventSample]) -> tuple[Sample2D, ...]:
    return tuple(
        Sample2D(
            timestamp_ms=e.t_ms,
            target_position=_unvec(e.value.get("target_position")),
            cursor_position=_unvec(e.value.get("cursor_position")),
            input_value=_unvec(e.value.get("input_value")),
        )
        for e in events
        if e.type is EventType.INPUT
    )


def responses_to_events(responses: Sequence[Response]) -> tuple[EventSample, ...]:
    return tuple(
        EventSample(
            t_ms=r.stimulus_timestamp_ms,
            type=EventType.RESPONSE if r.responded else EventType.STIMULUS,
            value={
                "is_target": r.is_target,
                "responded": r.responded,
                "response_timestamp_ms": r.response_timestamp_ms,
                "reaction_time_ms": r.reaction_time_ms,
            },
        )
        for r in responses
    )


def events_to_responses(events: Iterable[EventSample]) -> tuple[Response, ...]:
    out: list[Response] = []
    for e in events:
        if e.type not in (EventType.RESPONSE, EventType.STIMULUS) or "task_index" in e.value:
            continue
        responded = bool(e.value.get("responded", False))
        response_ts = e.value.get("response_timestamp_ms")
        rt = e.value.get("reaction_time_ms")
        out.append(
            Response(
                stimulus_timestamp_ms=e.t_ms,
                response_timestamp_ms=float(response_ts) if responded and response_ts is not None else None,
                is_target=bool(e.value.get("is_target", False)),
                responded=responded,
                reaction_time_ms=float(rt) if responded and rt is not None else None,
            )
        )
    return tuple(out)


def spatial_responses_to_events(responses: Sequence[SpatialResponse]) -> tuple[EventSample, ...]:
    """One RESPONSE event per answered item, timed at the cumulative answer time."""

    events: list[EventSample] = []
    t_ms = 0.0
    for r in responses:
        t_ms += r.reaction_time_ms
        events.append(
            EventSample(
                t_ms=t_ms,
                type=EventType.RESPONSE,
                value={
                    "task_index": r.task_index,
                    "selected_answer": r.selected_answer,
                    "correct_answer": r.correct_answer,
                    "reaction_time_ms": r.reaction_time_ms,
                    "is_correct": r.is_correct,
                },
            )
        )
    return tuple(events)


def events_to_spatial_responses(events: Iterable[EventSample]) -> tuple[SpatialResponse, ...]:
    return tuple(
        SpatialResponse(
            task_index=int(e.value["task_index"]),
            selected_answer=int(e.value["selected_answer"]),
            correct_answer=int(e.value["correct_answer"]),
            reaction_time_ms=float(e.value.get("reaction_time_ms") or 0.0),
        )
        for e in events
        if e.type is EventType.RESPONSE and "task_index" in e.value
    )
