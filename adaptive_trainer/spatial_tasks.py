from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .training_core import RandomSource, Vec2, validate_difficulty

OPTION_COUNT = 4

# Asymmetric outlines: a rotation can never be confused with a mirror image.
ASYMMETRIC_SHAPES: tuple[tuple[Vec2, ...], ...] = (
    # F
    (
        Vec2(0, 0), Vec2(0, 4), Vec2(2, 4), Vec2(2, 3), Vec2(1, 3),
        Vec2(1, 2), Vec2(2, 2), Vec2(2, 1), Vec2(1, 1), Vec2(1, 0),
    ),
    # L with notch
    (Vec2(0, 0), Vec2(0, 3), Vec2(1, 3), Vec2(1, 1), Vec2(2, 1), Vec2(2, 0)),
    # arrow with one-sided notch
    (
        Vec2(1.2, 0), Vec2(0, 1.2), Vec2(0.6, 1.2), Vec2(0.6, 2), Vec2(0.3, 2),
        Vec2(0.3, 3), Vec2(1.5, 3), Vec2(1.5, 1.2), Vec2(2, 1.2),
    ),
    # P
    (Vec2(0, 0), Vec2(0, 4), Vec2(2, 4), Vec2(2, 2), Vec2(1, 2), Vec2(1, 0)),
    # 7
    (
        Vec2(0, 3), Vec2(0, 4), Vec2(2, 4), Vec2(2, 3),
        Vec2(1.5, 3), Vec2(0.5, 0), Vec2(0, 0), Vec2(0.5, 2.5),
    ),
)


@dataclass(frozen=True, slots=True)
class RotationOption:
    rotation_deg: int
    is_mirrored: bool


@dataclass(frozen=True, slots=True)
class MentalRotationTask:
    shape_points: tuple[Vec2, ...]
    reference_rotation_deg: int
    options: tuple[RotationOption, ...]
    correct_answer: int
    difficulty: float


def generate_mental_rotation_task(difficulty: float, rng: RandomSource) -> MentalRotationTask:
    """Build one "which option matches the reference" item.

    The correct option has the reference rotation and is not mirrored.  Finer
    rotation steps and mirrored look-alikes make harder items.
    """

    d = validate_difficulty(difficulty)
    shape = rng.choice(ASYMMETRIC_SHAPES)
    reference = rng.randint(0, 3) * 90

    step = 90 if d < 0.5 else 45
    rotations = range(0, 360, step)
    correct = RotationOption(rotation_deg=reference, is_mirrored=False)

    pool = [
        RotationOption(rotation_deg=rot, is_mirrored=mirrored)
        for rot in rotations
        for mirrored in (False, True)
    ]
    pool = [opt for opt in pool if opt != correct]
    rng.shuffle(pool)

    if d > 0.5:
        # Mirror image at the same angle is the hardest distractor.
        pool.sort(key=lambda o: 0 if (o.is_mirrored and o.rotation_deg == reference) else 1)
    else:
        pool.sort(key=lambda o: 1 if o.is_mirrored else 0)

    correct_index = rng.randint(0, OPTION_COUNT - 1)
    distractors = iter(pool)
    options = tuple(
        correct if i == correct_index else next(distractors)
        for i in range(OPTION_COUNT)
    )
    return MentalRotationTask(
        shape_points=shape,
        reference_rotation_deg=reference,
        options=options,
        correct_answer=correct_index,
        difficulty=d,
    )


def rotate_point(point: Vec2, angle_deg: float) -> Vec2:
    rad = math.radians(angle_deg)
    c = math.cos(rad)
    s = math.sin(rad)
    return Vec2(point.x * c - point.y * s, point.x * s + point.y * c)


def mirror_point(point: Vec2) -> Vec2:
    return Vec2(-point.x, point.y)


def transform_shape(points: Sequence[Vec2], rotation_deg: float, mirror: bool) -> tuple[Vec2, ...]:
    """Centre on the centroid, optionally mirror across Y, then rotate."""

    if not points:
        return ()
    cx = sum(p.x for p in points) / len(points)
    cy = sum(p.y for p in points) / len(points)
    out: list[Vec2] = []
    for p in points:
        q = Vec2(p.x - cx, p.y - cy)
        if mirror:
            q = mirror_point(q)
        out.append(rotate_point(q, rotation_deg))
    return tuple(out)
