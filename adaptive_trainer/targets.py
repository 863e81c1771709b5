"""Procedural 1D target motion for pursuit tracking trials.

Each motion kind is an immutable state record plus a pure transition
function ``step_*(state, params, dt, rng) -> state``.  The difficulty scalar
is folded into a frozen parameter record once per trial.  ``TargetGenerator``
wraps a state, its parameters and an injected random source behind the
``update`` / ``reset`` / ``get_position`` contract used by a driving loop.

All randomness comes from the injected ``RandomSource`` so a trial can be
replayed exactly from its seed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import StrEnum

from .training_core import (
    Bounds1D,
    RandomSource,
    clamp,
    symmetric_unit,
    validate_difficulty,
)

WALL_RESTITUTION = 0.8
GOLDEN_RATIO = 1.618


class TargetKind(StrEnum):
    ORNSTEIN_UHLENBECK = "ornstein_uhlenbeck"
    SINUSOID = "sinusoid"
    PIECEWISE = "piecewise"


@dataclass(frozen=True, slots=True)
class TargetConfig:
    kind: TargetKind
    bounds: Bounds1D = Bounds1D()
    difficulty: float = 0.5

    def __post_init__(self) -> None:
        # Accept plain strings; unknown kinds raise ValueError here.
        object.__setattr__(self, "kind", TargetKind(self.kind))
        validate_difficulty(self.difficulty)


def random_target_kind(rng: RandomSource) -> TargetKind:
    return rng.choice(tuple(TargetKind))


# -----------------------------
# Ornstein-Uhlenbeck
# -----------------------------

@dataclass(frozen=True, slots=True)
class OrnsteinUhlenbeckParams:
    bounds: Bounds1D
    mu: float
    theta: float  # mean reversion rate
    sigma: float  # volatility

    @classmethod
    def from_config(cls, config: TargetConfig) -> OrnsteinUhlenbeckParams:
        d = config.difficulty
        return cls(
            bounds=config.bounds,
            mu=config.bounds.mid,
            theta=0.5 + 1.5 * d,
            sigma=0.3 + 0.7 * d,
        )


@dataclass(frozen=True, slots=True)
class OrnsteinUhlenbeckState:
    x: float


def initial_ou_state(params: OrnsteinUhlenbeckParams) -> OrnsteinUhlenbeckState:
    return OrnsteinUhlenbeckState(x=params.mu)


def step_ou(
    state: OrnsteinUhlenbeckState,
    params: OrnsteinUhlenbeckParams,
    dt: float,
    rng: RandomSource,
) -> OrnsteinUhlenbeckState:
    noise = symmetric_unit(rng)
    dx = params.theta * (params.mu - state.x) * dt + params.sigma * math.sqrt(dt) * noise
    # Hard clamp, not a reflection.
    return OrnsteinUhlenbeckState(x=params.bounds.clamp(state.x + dx))


# -----------------------------
# Sum of sinusoids
# -----------------------------

@dataclass(frozen=True, slots=True)
class SinusoidParams:
    bounds: Bounds1D
    center: float
    amplitude: float
    frequencies_hz: tuple[float, ...]
    weights: tuple[float, ...]

    @classmethod
    def from_config(cls, config: TargetConfig) -> SinusoidParams:
        base = 0.3 + 0.7 * config.difficulty
        freqs = (base, base * GOLDEN_RATIO, base * 0.5)
        return cls(
            bounds=config.bounds,
            center=config.bounds.mid,
            amplitude=0.4 * config.bounds.span,
            frequencies_hz=freqs,
            weights=tuple(1.0 / (i + 1) for i in range(len(freqs))),
        )


@dataclass(frozen=True, slots=True)
class SinusoidState:
    t: float
    phases: tuple[float, ...]


def initial_sinusoid_state(params: SinusoidParams, rng: RandomSource) -> SinusoidState:
    phases = tuple(rng.random() * 2.0 * math.pi for _ in params.frequencies_hz)
    return SinusoidState(t=0.0, phases=phases)


def sinusoid_position(state: SinusoidState, params: SinusoidParams) -> float:
    """Position at ``state.t``; recomputed from phases, never advances time."""

    total = 0.0
    for f, w, phase in zip(params.frequencies_hz, params.weights, state.phases):
        total += w * math.sin(2.0 * math.pi * f * state.t + phase)
    normalized = total / sum(params.weights)
    return params.bounds.clamp(params.center + params.amplitude * normalized)


def step_sinusoid(state: SinusoidState, params: SinusoidParams, dt: float) -> SinusoidState:
    _ = params
    return replace(state, t=state.t + dt)


# -----------------------------
# Piecewise-constant acceleration, bounded jerk
# -----------------------------

@dataclass(frozen=True, slots=True)
class PiecewiseParams:
    bounds: Bounds1D
    max_accel: float
    max_jerk: float
    change_period_s: float

    @classmethod
    def from_config(cls, config: TargetConfig) -> PiecewiseParams:
        d = config.difficulty
        return cls(
            bounds=config.bounds,
            max_accel=0.5 + 1.5 * d,
            max_jerk=2.0 + 4.0 * d,
            change_period_s=0.5 / (1.0 + d),
        )


@dataclass(frozen=True, slots=True)
class PiecewiseState:
    x: float
    v: float = 0.0
    a: float = 0.0
    target_a: float = 0.0
    since_change_s: float = 0.0


def initial_piecewise_state(params: PiecewiseParams) -> PiecewiseState:
    return PiecewiseState(x=params.bounds.mid)


def step_piecewise(
    state: PiecewiseState,
    params: PiecewiseParams,
    dt: float,
    rng: RandomSource,
) -> PiecewiseState:
    since = state.since_change_s + dt
    target_a = state.target_a
    if since >= params.change_period_s:
        target_a = symmetric_unit(rng) * params.max_accel
        since = 0.0

    max_delta = params.max_jerk * dt
    a = state.a + clamp(target_a - state.a, -max_delta, max_delta)
    a = clamp(a, -params.max_accel, params.max_accel)

    v = state.v + a * dt
    x = state.x + v * dt

    b = params.bounds
    if x < b.lo:
        x = b.lo
        v = abs(v) * WALL_RESTITUTION
    elif x > b.hi:
        x = b.hi
        v = -abs(v) * WALL_RESTITUTION

    return PiecewiseState(x=x, v=v, a=a, target_a=target_a, since_change_s=since)


# -----------------------------
# Contract wrapper
# -----------------------------

TargetParams = OrnsteinUhlenbeckParams | SinusoidParams | PiecewiseParams
TargetState = OrnsteinUhlenbeckState | SinusoidState | PiecewiseState


class TargetGenerator:
    """Stateful 1D target driven one tick at a time by an external loop."""

    def __init__(self, config: TargetConfig, rng: RandomSource) -> None:
        self._config = config
        self._rng = rng
        self._params: TargetParams = self._build_params(config)
        self._state: TargetState = self._initial_state()

    @property
    def config(self) -> TargetConfig:
        return self._config

    @property
    def kind(self) -> TargetKind:
        return self._config.kind

    @property
    def state(self) -> TargetState:
        return self._state

    def update(self, dt_s: float) -> float:
        dt = float(dt_s)
        if dt < 0.0:
            raise ValueError("dt_s must be >= 0")
        if dt > 0.0:
            self._state = self._advance(self._state, dt)
        return self.get_position()

    def reset(self) -> None:
        self._state = self._initial_state()

    def get_position(self) -> float:
        p = self._position(self._state)
        if not self._config.bounds.contains(p):
            raise AssertionError(f"target position {p!r} escaped bounds {self._config.bounds}")
        return p

    @staticmethod
    def _build_params(config: TargetConfig) -> TargetParams:
        if config.kind is TargetKind.ORNSTEIN_UHLENBECK:
            return OrnsteinUhlenbeckParams.from_config(config)
        if config.kind is TargetKind.SINUSOID:
            return SinusoidParams.from_config(config)
        return PiecewiseParams.from_config(config)

    def _initial_state(self) -> TargetState:
        params = self._params
        if isinstance(params, OrnsteinUhlenbeckParams):
            return initial_ou_state(params)
        if isinstance(params, SinusoidParams):
            return initial_sinusoid_state(params, self._rng)
        return initial_piecewise_state(params)

    def _advance(self, state: TargetState, dt: float) -> TargetState:
        params = self._params
        if isinstance(state, OrnsteinUhlenbeckState):
            assert isinstance(params, OrnsteinUhlenbeckParams)
            return step_ou(state, params, dt, self._rng)
        if isinstance(state, SinusoidState):
            assert isinstance(params, SinusoidParams)
            return step_sinusoid(state, params, dt)
        assert isinstance(params, PiecewiseParams)
        return step_piecewise(state, params, dt, self._rng)

    def _position(self, state: TargetState) -> float:
        if isinstance(state, SinusoidState):
            assert isinstance(self._params, SinusoidParams)
            return sinusoid_position(state, self._params)
        return state.x


def create_target_generator(config: TargetConfig, rng: RandomSource) -> TargetGenerator:
    return TargetGenerator(config, rng)
