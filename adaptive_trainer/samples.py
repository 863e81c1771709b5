from __future__ import annotations

from dataclasses import dataclass

from .training_core import Vec2


@dataclass(frozen=True, slots=True)
class Sample:
    """One recorded tick of a 1D tracking trial."""

    timestamp_ms: float
    target_position: float
    cursor_position: float
    input_value: float

    @property
    def error(self) -> float:
        return self.target_position - self.cursor_position


@dataclass(frozen=True, slots=True)
class Sample2D:
    """One recorded tick of a 2D tracking trial."""

    timestamp_ms: float
    target_position: Vec2
    cursor_position: Vec2
    input_value: Vec2

    @property
    def error_vector(self) -> Vec2:
        return self.target_position - self.cursor_position

    @property
    def error(self) -> float:
        return self.error_vector.length()


@dataclass(frozen=True, slots=True)
class Response:
    """Outcome of one presented go/no-go stimulus.

    Non-responses are kept: they are misses on targets and correct
    rejections on non-targets.
    """

    stimulus_timestamp_ms: float
    response_timestamp_ms: float | None
    is_target: bool
    responded: bool
    reaction_time_ms: float | None

    def __post_init__(self) -> None:
        if not self.responded and (
            self.response_timestamp_ms is not None or self.reaction_time_ms is not None
        ):
            raise ValueError("a non-response cannot carry response or reaction times")

    @classmethod
    def no_response(cls, *, stimulus_timestamp_ms: float, is_target: bool) -> Response:
        return cls(
            stimulus_timestamp_ms=stimulus_timestamp_ms,
            response_timestamp_ms=None,
            is_target=is_target,
            responded=False,
            reaction_time_ms=None,
        )


@dataclass(frozen=True, slots=True)
class SpatialResponse:
    task_index: int
    selected_answer: int
    correct_answer: int
    reaction_time_ms: float

    @property
    def is_correct(self) -> bool:
        return self.selected_answer == self.correct_answer
