from __future__ import annotations

import math
import random
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol, TypeVar

T = TypeVar("T")

DIFFICULTY_MIN = 0.1
DIFFICULTY_MAX = 1.0
DIFFICULTY_STEP = 0.05
DEFAULT_DIFFICULTY = 0.3


class MetricsFamily(StrEnum):
    """Module family a trial's metrics record belongs to."""

    TRACKING = "tracking"
    ATTENTION = "attention"
    SPATIAL = "spatial"
    MULTITASK = "multitask"
    TRIPLE_TASK = "triple_task"
    INTERRUPT = "interrupt"


class RandomSource(Protocol):
    """Injectable randomness used by generators and sequencers."""

    def random(self) -> float:
        """Return a float in [0.0, 1.0)."""
        ...

    def uniform(self, a: float, b: float) -> float:
        ...

    def randint(self, a: int, b: int) -> int:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        ...

    def shuffle(self, seq: MutableSequence[T]) -> None:
        ...


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit.

    Each generator or sequencer owns its own instance; streams are never
    shared between trials.
    """

    def __init__(self, seed: int) -> None:
        self._seed = int(seed)
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        return self._rng.random()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        return self._rng.sample(list(seq), k)

    def shuffle(self, seq: MutableSequence[T]) -> None:
        self._rng.shuffle(seq)

    def spawn(self) -> SeededRng:
        """Derive an independent child stream (e.g. one per trial)."""

        return SeededRng(self._rng.randrange(2**31))


def symmetric_unit(rng: RandomSource) -> float:
    """Uniform draw in [-1, 1)."""

    return (rng.random() - 0.5) * 2.0


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x <= lo else hi if x >= hi else float(x)


def clamp01(x: float) -> float:
    return 0.0 if x <= 0.0 else 1.0 if x >= 1.0 else float(x)


def clamp_difficulty(x: float) -> float:
    # NaN compares false everywhere; treat it as the floor.
    if math.isnan(x):
        return DIFFICULTY_MIN
    return clamp(x, DIFFICULTY_MIN, DIFFICULTY_MAX)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def validate_difficulty(difficulty: float) -> float:
    d = float(difficulty)
    if not (0.0 <= d <= 1.0):
        raise ValueError("difficulty must be in [0.0, 1.0]")
    return d


@dataclass(frozen=True, slots=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def scaled(self, k: float) -> Vec2:
        return Vec2(self.x * k, self.y * k)

    def dot(self, other: Vec2) -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)


@dataclass(frozen=True, slots=True)
class Bounds1D:
    lo: float = -1.0
    hi: float = 1.0

    def __post_init__(self) -> None:
        if not (self.lo < self.hi):
            raise ValueError("bounds must satisfy lo < hi")

    @property
    def mid(self) -> float:
        return (self.lo + self.hi) / 2.0

    @property
    def span(self) -> float:
        return self.hi - self.lo

    def contains(self, x: float) -> bool:
        return self.lo <= x <= self.hi

    def clamp(self, x: float) -> float:
        return clamp(x, self.lo, self.hi)


@dataclass(frozen=True, slots=True)
class Bounds2D:
    x_min: float = -1.0
    x_max: float = 1.0
    y_min: float = -1.0
    y_max: float = 1.0

    def __post_init__(self) -> None:
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ValueError("bounds must satisfy x_min < x_max and y_min < y_max")

    @property
    def center(self) -> Vec2:
        return Vec2((self.x_min + self.x_max) / 2.0, (self.y_min + self.y_max) / 2.0)

    def contains(self, p: Vec2) -> bool:
        return self.x_min <= p.x <= self.x_max and self.y_min <= p.y <= self.y_max

    def clamp(self, p: Vec2) -> Vec2:
        return Vec2(clamp(p.x, self.x_min, self.x_max), clamp(p.y, self.y_min, self.y_max))
