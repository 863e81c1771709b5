from __future__ import annotations

from dataclasses import dataclass

import pytest

from adaptive_trainer.trial_recorder import SampleRecorder, SampleRecorder2D
from adaptive_trainer.training_core import Vec2


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_record_uses_clock_relative_to_start() -> None:
    clock = FakeClock(t=100.0)
    rec = SampleRecorder(clock=clock)
    rec.start()

    rec.record(target_position=0.5, cursor_position=0.4, input_value=0.1)
    clock.advance(1.0 / 60.0)
    rec.record(target_position=0.6, cursor_position=0.5, input_value=0.2)
    clock.advance(0.5)
    rec.record(target_position=0.7, cursor_position=0.7, input_value=0.0)

    samples = rec.finalize()
    assert [s.timestamp_ms for s in samples] == pytest.approx([0.0, 1000.0 / 60.0, 1000.0 / 60.0 + 500.0])
    assert samples[0].error == pytest.approx(0.1)
    assert isinstance(samples, tuple)


def test_record_before_start_raises() -> None:
    rec = SampleRecorder(clock=FakeClock())
    with pytest.raises(RuntimeError):
        rec.record(target_position=0.0, cursor_position=0.0, input_value=0.0)
    with pytest.raises(RuntimeError):
        rec.finalize()


def test_start_twice_raises() -> None:
    rec = SampleRecorder(clock=FakeClock())
    rec.start()
    with pytest.raises(RuntimeError):
        rec.start()


def test_finalize_exactly_once_and_no_appends_after() -> None:
    rec = SampleRecorder(clock=FakeClock())
    rec.start()
    rec.record_at(0.0, target_position=0.0, cursor_position=0.0, input_value=0.0)
    assert len(rec.finalize()) == 1
    assert rec.finalized

    with pytest.raises(RuntimeError):
        rec.finalize()
    with pytest.raises(RuntimeError):
        rec.record_at(10.0, target_position=0.0, cursor_position=0.0, input_value=0.0)


def test_timestamps_must_be_non_decreasing_and_non_negative() -> None:
    rec = SampleRecorder(clock=FakeClock())
    rec.start()
    rec.record_at(20.0, target_position=0.0, cursor_position=0.0, input_value=0.0)
    rec.record_at(20.0, target_position=0.0, cursor_position=0.0, input_value=0.0)
    with pytest.raises(ValueError):
        rec.record_at(10.0, target_position=0.0, cursor_position=0.0, input_value=0.0)

    other = SampleRecorder(clock=FakeClock())
    other.start()
    with pytest.raises(ValueError):
        other.record_at(-1.0, target_position=0.0, cursor_position=0.0, input_value=0.0)


def test_2d_recorder_keeps_vectors() -> None:
    clock = FakeClock()
    rec = SampleRecorder2D(clock=clock)
    rec.start()
    rec.record(target_position=Vec2(0.3, 0.4), cursor_position=Vec2(), input_value=Vec2(1.0, 0.0))
    clock.advance(0.25)
    rec.record(target_position=Vec2(), cursor_position=Vec2(), input_value=Vec2())

    samples = rec.finalize()
    assert samples[0].error == pytest.approx(0.5)
    assert samples[1].timestamp_ms == pytest.approx(250.0)
    assert samples[0].input_value == Vec2(1.0, 0.0)
