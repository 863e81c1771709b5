from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .training_core import RandomSource, validate_difficulty

END_MARGIN_MS = 2000.0


class InterruptShape(StrEnum):
    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE = "triangle"
    STAR = "star"


class InterruptColor(StrEnum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"


# Colour alone decides the response key; shape is a distractor.
COLOR_KEYS: dict[InterruptColor, str] = {
    InterruptColor.RED: "1",
    InterruptColor.BLUE: "2",
    InterruptColor.GREEN: "3",
    InterruptColor.YELLOW: "4",
}


@dataclass(frozen=True, slots=True)
class Interrupt:
    interrupt_id: int
    shape: InterruptShape
    color: InterruptColor
    correct_key: str
    appear_time_ms: float
    response_window_ms: float


@dataclass(frozen=True, slots=True)
class InterruptSequence:
    interrupts: tuple[Interrupt, ...]
    baseline_duration_ms: float
    total_duration_ms: float


@dataclass(frozen=True, slots=True)
class InterruptResponse:
    interrupt_id: int
    response_time_ms: float
    key_pressed: str
    correct: bool
    missed: bool


@dataclass(frozen=True, slots=True)
class InterruptTiming:
    min_interval_ms: float
    max_interval_ms: float
    response_window_ms: float

    @classmethod
    def for_difficulty(cls, difficulty: float) -> InterruptTiming:
        ease = 1.0 - validate_difficulty(difficulty)
        return cls(
            min_interval_ms=2000.0 + 3000.0 * ease,
            max_interval_ms=3000.0 + 4000.0 * ease,
            response_window_ms=800.0 + 700.0 * ease,
        )


def _make_interrupt(
    interrupt_id: int,
    appear_time_ms: float,
    response_window_ms: float,
    rng: RandomSource,
) -> Interrupt:
    shape = rng.choice(tuple(InterruptShape))
    color = rng.choice(tuple(InterruptColor))
    return Interrupt(
        interrupt_id=interrupt_id,
        shape=shape,
        color=color,
        correct_key=COLOR_KEYS[color],
        appear_time_ms=appear_time_ms,
        response_window_ms=response_window_ms,
    )


def generate_interrupt_sequence(
    difficulty: float,
    total_duration_ms: float,
    rng: RandomSource,
) -> InterruptSequence:
    timing = InterruptTiming.for_difficulty(difficulty)
    baseline = 5000.0 + rng.random() * 3000.0

    interrupts: list[Interrupt] = []
    t = baseline
    while t < total_duration_ms - END_MARGIN_MS:
        interrupts.append(_make_interrupt(len(interrupts), t, timing.response_window_ms, rng))
        t += rng.uniform(timing.min_interval_ms, timing.max_interval_ms)

    return InterruptSequence(
        interrupts=tuple(interrupts),
        baseline_duration_ms=baseline,
        total_duration_ms=float(total_duration_ms),
    )


def classify_interrupt_response(
    interrupt: Interrupt,
    key_pressed: str | None,
    response_time_ms: float | None,
) -> InterruptResponse:
    """Classify the first key press for an interrupt.

    No press, or a press after the window closed, is a miss that carries the
    full window as its time.
    """

    late = response_time_ms is None or response_time_ms > interrupt.response_window_ms
    if key_pressed is None or late:
        return InterruptResponse(
            interrupt_id=interrupt.interrupt_id,
            response_time_ms=interrupt.response_window_ms,
            key_pressed="",
            correct=False,
            missed=True,
        )
    assert response_time_ms is not None
    return InterruptResponse(
        interrupt_id=interrupt.interrupt_id,
        response_time_ms=max(0.0, float(response_time_ms)),
        key_pressed=str(key_pressed),
        correct=str(key_pressed) == interrupt.correct_key,
        missed=False,
    )
