"""Go/no-go tone schedules for the auditory selective attention task.

A block assigns one or two tone kinds as targets.  The full schedule for a
trial is generated up front with jittered inter-stimulus intervals; raw key
press times are then folded into exactly one ``Response`` per presented
stimulus.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from .samples import Response
from .training_core import RandomSource, validate_difficulty

TARGET_PROBABILITY = 0.35
SCHEDULE_START_MS = 500.0
JITTER_RANGE_MS = 300.0  # +/-150 ms
TONE_DURATION_MS = 150.0


class ToneKind(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TONE_FREQUENCY_HZ: dict[ToneKind, float] = {
    ToneKind.LOW: 440.0,
    ToneKind.MEDIUM: 587.0,
    ToneKind.HIGH: 880.0,
}


@dataclass(frozen=True, slots=True)
class AuditoryStimulusConfig:
    target_kinds: tuple[ToneKind, ...]
    difficulty: float = 0.5

    def __post_init__(self) -> None:
        kinds = tuple(ToneKind(k) for k in self.target_kinds)
        if not kinds:
            raise ValueError("at least one target tone kind is required")
        if set(kinds) >= set(ToneKind):
            raise ValueError("at least one tone kind must remain a non-target")
        object.__setattr__(self, "target_kinds", kinds)
        validate_difficulty(self.difficulty)

    @property
    def non_target_kinds(self) -> tuple[ToneKind, ...]:
        return tuple(k for k in ToneKind if k not in self.target_kinds)


@dataclass(frozen=True, slots=True)
class StimulusEvent:
    timestamp_ms: float  # relative to trial start
    kind: ToneKind
    is_target: bool


@dataclass(frozen=True, slots=True)
class ResponseWindow:
    min_ms: float
    max_ms: float

    def contains(self, reaction_time_ms: float) -> bool:
        return self.min_ms <= reaction_time_ms <= self.max_ms


def response_window(difficulty: float) -> ResponseWindow:
    """Valid reaction-time window; harder trials close it sooner."""

    d = validate_difficulty(difficulty)
    return ResponseWindow(min_ms=100.0, max_ms=1200.0 - 600.0 * d)


def pick_target_kinds(rng: RandomSource) -> tuple[ToneKind, ...]:
    """Choose one or two target tone kinds for a block."""

    count = 1 + rng.randint(0, 1)
    picked = rng.sample(tuple(ToneKind), count)
    return tuple(sorted(picked, key=list(ToneKind).index))


def generate_stimulus_sequence(
    config: AuditoryStimulusConfig,
    total_duration_ms: float,
    rng: RandomSource,
) -> tuple[StimulusEvent, ...]:
    base_isi = 1500.0 - 800.0 * config.difficulty
    non_targets = config.non_target_kinds

    events: list[StimulusEvent] = []
    t = SCHEDULE_START_MS
    while t < total_duration_ms:
        is_target = rng.random() < TARGET_PROBABILITY
        kind = rng.choice(config.target_kinds if is_target else non_targets)
        events.append(StimulusEvent(timestamp_ms=t, kind=kind, is_target=is_target))

        jitter = (rng.random() - 0.5) * JITTER_RANGE_MS
        t += base_isi + jitter
    return tuple(events)


def score_auditory_responses(
    events: Sequence[StimulusEvent],
    press_times_ms: Sequence[float],
    window: ResponseWindow,
) -> tuple[Response, ...]:
    """Fold raw press timestamps into one Response per presented event.

    A press is attributed to the most recent stimulus at or before it.  Only
    the first press inside that stimulus' window counts; presses that are too
    early or too late are disregarded, leaving the stimulus unanswered.
    """

    onsets = [e.timestamp_ms for e in events]
    answered: dict[int, float] = {}

    for press in sorted(press_times_ms):
        idx = bisect.bisect_right(onsets, press) - 1
        if idx < 0 or idx in answered:
            continue
        rt = press - onsets[idx]
        if window.contains(rt):
            answered[idx] = press

    responses: list[Response] = []
    for idx, event in enumerate(events):
        press = answered.get(idx)
        if press is None:
            responses.append(
                Response.no_response(stimulus_timestamp_ms=event.timestamp_ms, is_target=event.is_target)
            )
            continue
        responses.append(
            Response(
                stimulus_timestamp_ms=event.timestamp_ms,
                response_timestamp_ms=press,
                is_target=event.is_target,
                responded=True,
                reaction_time_ms=press - event.timestamp_ms,
            )
        )
    return tuple(responses)
