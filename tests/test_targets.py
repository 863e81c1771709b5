from __future__ import annotations

import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from adaptive_trainer.targets import (
    PiecewiseParams,
    SinusoidParams,
    TargetConfig,
    TargetGenerator,
    TargetKind,
    create_target_generator,
    initial_piecewise_state,
    initial_sinusoid_state,
    random_target_kind,
    sinusoid_position,
    step_piecewise,
    step_sinusoid,
)
from adaptive_trainer.targets_2d import (
    CurvilinearState,
    TargetConfig2D,
    TargetKind2D,
    create_target_generator_2d,
    random_target_kind_2d,
)
from adaptive_trainer.training_core import Bounds1D, Bounds2D, SeededRng


def _run_1d(kind: TargetKind, seed: int, difficulty: float, ticks: int = 300) -> list[float]:
    gen = create_target_generator(TargetConfig(kind=kind, difficulty=difficulty), SeededRng(seed))
    return [gen.update(1.0 / 60.0) for _ in range(ticks)]


@pytest.mark.parametrize("kind", list(TargetKind))
def test_same_seed_same_trajectory(kind: TargetKind) -> None:
    assert _run_1d(kind, 1234, 0.6) == _run_1d(kind, 1234, 0.6)


def test_different_seed_changes_ou_trajectory() -> None:
    assert _run_1d(TargetKind.ORNSTEIN_UHLENBECK, 1, 0.6) != _run_1d(TargetKind.ORNSTEIN_UHLENBECK, 2, 0.6)


def test_string_kind_is_coerced_and_unknown_kind_rejected() -> None:
    assert TargetConfig(kind="sinusoid").kind is TargetKind.SINUSOID  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        TargetConfig(kind="zigzag")  # type: ignore[arg-type]


def test_config_rejects_out_of_range_difficulty() -> None:
    with pytest.raises(ValueError):
        TargetConfig(kind=TargetKind.SINUSOID, difficulty=1.5)


def test_negative_dt_raises_and_zero_dt_is_noop() -> None:
    gen = TargetGenerator(TargetConfig(kind=TargetKind.PIECEWISE), SeededRng(5))
    for _ in range(30):
        gen.update(1.0 / 60.0)
    before = gen.state
    assert gen.update(0.0) == gen.get_position()
    assert gen.state == before
    with pytest.raises(ValueError):
        gen.update(-0.01)


def test_reset_restarts_ou_at_bounds_midpoint() -> None:
    bounds = Bounds1D(lo=0.0, hi=4.0)
    gen = TargetGenerator(TargetConfig(kind=TargetKind.ORNSTEIN_UHLENBECK, bounds=bounds), SeededRng(3))
    assert gen.get_position() == pytest.approx(2.0)
    for _ in range(100):
        gen.update(0.05)
    gen.reset()
    assert gen.get_position() == pytest.approx(2.0)


def test_sinusoid_position_does_not_advance_time() -> None:
    params = SinusoidParams.from_config(TargetConfig(kind=TargetKind.SINUSOID, difficulty=0.4))
    state = initial_sinusoid_state(params, SeededRng(11))
    assert sinusoid_position(state, params) == sinusoid_position(state, params)

    later = step_sinusoid(state, params, 0.25)
    assert later.t == pytest.approx(0.25)
    assert later.phases == state.phases


def test_sinusoid_frequencies_follow_difficulty() -> None:
    params = SinusoidParams.from_config(TargetConfig(kind=TargetKind.SINUSOID, difficulty=1.0))
    assert params.frequencies_hz == pytest.approx((1.0, 1.618, 0.5))
    assert params.weights == pytest.approx((1.0, 0.5, 1.0 / 3.0))


def test_piecewise_acceleration_and_jerk_stay_bounded() -> None:
    params = PiecewiseParams.from_config(TargetConfig(kind=TargetKind.PIECEWISE, difficulty=0.9))
    rng = SeededRng(77)
    dt = 1.0 / 60.0
    state = initial_piecewise_state(params)
    for _ in range(2000):
        nxt = step_piecewise(state, params, dt, rng)
        assert abs(nxt.a) <= params.max_accel + 1e-12
        assert abs(nxt.a - state.a) <= params.max_jerk * dt + 1e-12
        assert params.bounds.contains(nxt.x)
        state = nxt


@settings(max_examples=40, deadline=None)
@given(
    kind=st.sampled_from(list(TargetKind)),
    seed=st.integers(min_value=0, max_value=2**31 - 1),
    difficulty=st.floats(min_value=0.0, max_value=1.0),
    dt=st.floats(min_value=0.001, max_value=0.25),
)
def test_1d_targets_never_leave_bounds(kind: TargetKind, seed: int, difficulty: float, dt: float) -> None:
    bounds = Bounds1D(lo=-0.5, hi=2.0)
    gen = create_target_generator(TargetConfig(kind=kind, bounds=bounds, difficulty=difficulty), SeededRng(seed))
    for _ in range(200):
        x = gen.update(dt)
        assert bounds.lo <= x <= bounds.hi
        assert math.isfinite(x)


@settings(max_examples=40, deadline=None)
@given(
    kind=st.sampled_from(list(TargetKind2D)),
    seed=st.integers(min_value=0, max_value=2**31 - 1),
    difficulty=st.floats(min_value=0.0, max_value=1.0),
    dt=st.floats(min_value=0.001, max_value=0.25),
)
def test_2d_targets_never_leave_bounds(kind: TargetKind2D, seed: int, difficulty: float, dt: float) -> None:
    bounds = Bounds2D(x_min=0.0, x_max=1.0, y_min=-2.0, y_max=0.0)
    gen = create_target_generator_2d(
        TargetConfig2D(kind=kind, bounds=bounds, difficulty=difficulty), SeededRng(seed)
    )
    for _ in range(200):
        assert bounds.contains(gen.update(dt))


@pytest.mark.parametrize("kind", list(TargetKind2D))
def test_2d_same_seed_same_trajectory(kind: TargetKind2D) -> None:
    def run(seed: int) -> list[tuple[float, float]]:
        gen = create_target_generator_2d(TargetConfig2D(kind=kind, difficulty=0.7), SeededRng(seed))
        return [(p.x, p.y) for p in (gen.update(1.0 / 60.0) for _ in range(240))]

    assert run(42) == run(42)


def test_momentum_starts_at_center_and_resets_there() -> None:
    bounds = Bounds2D(x_min=0.0, x_max=2.0, y_min=0.0, y_max=4.0)
    gen = create_target_generator_2d(TargetConfig2D(kind=TargetKind2D.MOMENTUM, bounds=bounds), SeededRng(8))
    assert gen.get_position() == bounds.center
    for _ in range(120):
        gen.update(1.0 / 30.0)
    gen.reset()
    assert gen.get_position() == bounds.center


def test_curvilinear_heading_stays_finite_after_many_bounces() -> None:
    gen = create_target_generator_2d(
        TargetConfig2D(kind=TargetKind2D.CURVILINEAR, difficulty=1.0), SeededRng(99)
    )
    for _ in range(3000):
        gen.update(0.1)
    state = gen.state
    assert isinstance(state, CurvilinearState)
    assert math.isfinite(state.heading)
    assert math.isfinite(state.turn_rate)


def test_random_kind_pickers_cover_every_kind() -> None:
    rng = SeededRng(0)
    assert {random_target_kind(rng) for _ in range(200)} == set(TargetKind)
    assert {random_target_kind_2d(rng) for _ in range(200)} == set(TargetKind2D)
