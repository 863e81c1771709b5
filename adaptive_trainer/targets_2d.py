"""Procedural 2D target motion (momentum walk and curvilinear paths)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum

from .targets import WALL_RESTITUTION
from .training_core import (
    Bounds2D,
    RandomSource,
    Vec2,
    symmetric_unit,
    validate_difficulty,
)

VELOCITY_DAMPING = 0.95
BOUNCE_TURN_DAMPING = -0.7


class TargetKind2D(StrEnum):
    MOMENTUM = "momentum"
    CURVILINEAR = "curvilinear"


@dataclass(frozen=True, slots=True)
class TargetConfig2D:
    kind: TargetKind2D
    bounds: Bounds2D = Bounds2D()
    difficulty: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TargetKind2D(self.kind))
        validate_difficulty(self.difficulty)


def random_target_kind_2d(rng: RandomSource) -> TargetKind2D:
    return rng.choice(tuple(TargetKind2D))


@dataclass(frozen=True, slots=True)
class MomentumParams:
    bounds: Bounds2D
    max_speed: float
    acceleration: float

    @classmethod
    def from_config(cls, config: TargetConfig2D) -> MomentumParams:
        d = config.difficulty
        return cls(bounds=config.bounds, max_speed=0.3 + 0.7 * d, acceleration=0.5 + 1.5 * d)


@dataclass(frozen=True, slots=True)
class MomentumState:
    position: Vec2
    velocity: Vec2 = Vec2()


def initial_momentum_state(params: MomentumParams) -> MomentumState:
    return MomentumState(position=params.bounds.center)


def _bounce_axis(x: float, v: float, lo: float, hi: float) -> tuple[float, float]:
    if x < lo:
        return lo, abs(v) * WALL_RESTITUTION
    if x > hi:
        return hi, -abs(v) * WALL_RESTITUTION
    return x, v


def step_momentum(
    state: MomentumState,
    params: MomentumParams,
    dt: float,
    rng: RandomSource,
) -> MomentumState:
    ax = symmetric_unit(rng) * params.acceleration
    ay = symmetric_unit(rng) * params.acceleration

    vx = (state.velocity.x + ax * dt) * VELOCITY_DAMPING
    vy = (state.velocity.y + ay * dt) * VELOCITY_DAMPING

    speed = math.hypot(vx, vy)
    if speed > params.max_speed:
        vx = vx / speed * params.max_speed
        vy = vy / speed * params.max_speed

    b = params.bounds
    x, vx = _bounce_axis(state.position.x + vx * dt, vx, b.x_min, b.x_max)
    y, vy = _bounce_axis(state.position.y + vy * dt, vy, b.y_min, b.y_max)
    return MomentumState(position=Vec2(x, y), velocity=Vec2(vx, vy))


@dataclass(frozen=True, slots=True)
class CurvilinearParams:
    bounds: Bounds2D
    speed: float
    max_turn_rate: float  # rad/s
    change_period_s: float

    @classmethod
    def from_config(cls, config: TargetConfig2D) -> CurvilinearParams:
        d = config.difficulty
        return cls(
            bounds=config.bounds,
            speed=0.3 + 0.5 * d,
            max_turn_rate=1.0 + 2.0 * d,
            change_period_s=0.5 / (1.0 + d),
        )


@dataclass(frozen=True, slots=True)
class CurvilinearState:
    position: Vec2
    heading: float
    turn_rate: float = 0.0
    since_change_s: float = 0.0


def initial_curvilinear_state(params: CurvilinearParams, rng: RandomSource) -> CurvilinearState:
    return CurvilinearState(position=params.bounds.center, heading=rng.random() * 2.0 * math.pi)


def step_curvilinear(
    state: CurvilinearState,
    params: CurvilinearParams,
    dt: float,
    rng: RandomSource,
) -> CurvilinearState:
    since = state.since_change_s + dt
    turn_rate = state.turn_rate
    if since >= params.change_period_s:
        turn_rate = symmetric_unit(rng) * params.max_turn_rate
        since = 0.0

    heading = state.heading + turn_rate * dt
    x = state.position.x + math.cos(heading) * params.speed * dt
    y = state.position.y + math.sin(heading) * params.speed * dt

    b = params.bounds
    bounced = False
    if x < b.x_min or x > b.x_max:
        x = b.x_min if x < b.x_min else b.x_max
        heading = math.pi - heading
        bounced = True
    if y < b.y_min or y > b.y_max:
        y = b.y_min if y < b.y_min else b.y_max
        heading = -heading
        bounced = True

    if bounced:
        turn_rate *= BOUNCE_TURN_DAMPING

    return CurvilinearState(
        position=Vec2(x, y),
        heading=heading,
        turn_rate=turn_rate,
        since_change_s=since,
    )


TargetParams2D = MomentumParams | CurvilinearParams
TargetState2D = MomentumState | CurvilinearState


class TargetGenerator2D:
    """Stateful 2D target driven one tick at a time by an external loop."""

    def __init__(self, config: TargetConfig2D, rng: RandomSource) -> None:
        self._config = config
        self._rng = rng
        self._params: TargetParams2D
        if config.kind is TargetKind2D.MOMENTUM:
            self._params = MomentumParams.from_config(config)
        else:
            self._params = CurvilinearParams.from_config(config)
        self._state: TargetState2D = self._initial_state()

    @property
    def config(self) -> TargetConfig2D:
        return self._config

    @property
    def kind(self) -> TargetKind2D:
        return self._config.kind

    @property
    def state(self) -> TargetState2D:
        return self._state

    def update(self, dt_s: float) -> Vec2:
        dt = float(dt_s)
        if dt < 0.0:
            raise ValueError("dt_s must be >= 0")
        if dt > 0.0:
            params = self._params
            if isinstance(params, MomentumParams):
                assert isinstance(self._state, MomentumState)
                self._state = step_momentum(self._state, params, dt, self._rng)
            else:
                assert isinstance(self._state, CurvilinearState)
                self._state = step_curvilinear(self._state, params, dt, self._rng)
        return self.get_position()

    def reset(self) -> None:
        self._state = self._initial_state()

    def get_position(self) -> Vec2:
        p = self._state.position
        if not self._config.bounds.contains(p):
            raise AssertionError(f"target position {p!r} escaped bounds {self._config.bounds}")
        return p

    def _initial_state(self) -> TargetState2D:
        params = self._params
        if isinstance(params, MomentumParams):
            return initial_momentum_state(params)
        return initial_curvilinear_state(params, self._rng)


def create_target_generator_2d(config: TargetConfig2D, rng: RandomSource) -> TargetGenerator2D:
    return TargetGenerator2D(config, rng)
