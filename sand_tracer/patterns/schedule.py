"""Outer run schedule -- which patterns are drawn, and in what order.

One repetition is:

    - ``chords_per_batch`` random chords at the maximum radius
    - one radial sweep at the maximum radius
    - concentric circles growing from ``min_circle_radius_mm`` to the
      maximum radius, then shrinking back, each at a speed drawn from
      ``[min, max]``

The schedule is a lazy generator so a long run never materialises all of
its moves at once.
"""

from __future__ import annotations

import math
from typing import Iterator

import numpy as np

from sand_tracer.configs.loader import MachineConfig, PatternConfig, ScheduleConfig
from sand_tracer.job_ir.operations import PatternRun
from sand_tracer.patterns.shapes import circle, draw_speed, radial_sweep, random_chord


def circle_radii(schedule: ScheduleConfig, patterns: PatternConfig) -> list[float]:
    """Ascending circle radii, ``min_circle_radius_mm`` up to the max radius."""
    span = patterns.max_radius_mm - schedule.min_circle_radius_mm
    count = int(math.floor(span / schedule.circle_radius_step_mm + 1e-9)) + 1
    return [
        schedule.min_circle_radius_mm + k * schedule.circle_radius_step_mm
        for k in range(count)
    ]


def repetition(
    rng: np.random.Generator,
    config: MachineConfig,
) -> Iterator[PatternRun]:
    """Yield the pattern runs making up one repetition."""
    p = config.patterns
    radius = p.max_radius_mm

    for _ in range(config.schedule.chords_per_batch):
        yield random_chord(rng, radius, p)

    yield radial_sweep(rng, radius, p)

    radii = circle_radii(config.schedule, p)
    for r in radii:
        yield circle(r, draw_speed(rng, p, inclusive=True), p)
    for r in reversed(radii):
        yield circle(r, draw_speed(rng, p, inclusive=True), p)


def default_schedule(
    rng: np.random.Generator,
    config: MachineConfig,
    repetitions: int | None = None,
) -> Iterator[PatternRun]:
    """Yield every pattern run of a full session.

    Parameters
    ----------
    repetitions : int | None
        Override ``config.schedule.repetitions``.
    """
    if repetitions is None:
        repetitions = config.schedule.repetitions
    for _ in range(repetitions):
        yield from repetition(rng, config)
