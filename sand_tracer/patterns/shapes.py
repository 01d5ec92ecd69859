"""Sand pattern generators.

Each function returns a ``PatternRun`` ready for encoding and streaming.
All dimensions are in **millimetres** around the table centre; feed rates
are integer **mm/min**.

Every function takes the shared ``PatternConfig`` and, where the pattern
is randomised, an explicit ``numpy.random.Generator``.  Nothing here
touches the serial link, so a seeded generator reproduces a run exactly.

Drawing moves carry ``config.z_level_mm``; travel moves omit Z and leave
the ball at its last commanded height.
"""

from __future__ import annotations

import math

import numpy as np

from sand_tracer.configs.loader import PatternConfig
from sand_tracer.job_ir.operations import ArcMove, LinearMove, Move, PatternRun

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_radius(radius: float, config: PatternConfig) -> None:
    if not 0 < radius <= config.max_radius_mm:
        raise ValueError(
            f"radius must be in (0, {config.max_radius_mm}], got {radius}"
        )


def draw_speed(
    rng: np.random.Generator,
    config: PatternConfig,
    inclusive: bool = False,
) -> int:
    """Draw a feed rate uniformly from the configured bounds.

    Parameters
    ----------
    inclusive : bool
        ``False`` draws from ``[min, max)``, ``True`` from ``[min, max]``.
    """
    return int(
        rng.integers(
            config.min_speed_mm_min,
            config.max_speed_mm_min,
            endpoint=inclusive,
        )
    )


def point_on_circle(radius: float, angle_rad: float) -> tuple[float, float]:
    """Point at *angle_rad* on a circle of *radius* centred on the origin."""
    return radius * math.cos(angle_rad), radius * math.sin(angle_rad)


def sweep_angles(config: PatternConfig) -> list[int]:
    """Swept angles in degrees: ``0 <= a < 180`` every ``sweep_step_deg``."""
    return list(range(0, 180, config.sweep_step_deg))


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


def circle(radius: float, speed: int, config: PatternConfig) -> PatternRun:
    """Full circle entered from its leftmost point.

    Produces two moves: a straight approach to ``(-radius, 0)`` at the
    fixed approach feed, then one full-circle arc whose centre offset is
    ``(radius, 0)``, i.e. a circle about the origin.
    """
    _check_radius(radius, config)
    z = config.z_level_mm
    moves: tuple[Move, ...] = (
        LinearMove(x=-radius, y=0.0, z=z, feed=config.approach_feed_mm_min),
        ArcMove(
            i=radius,
            j=0.0,
            z=z,
            feed=speed,
            clockwise=config.clockwise_circles,
        ),
    )
    return PatternRun(name=f"circle r={radius:g}", moves=moves)


def random_chord(
    rng: np.random.Generator,
    radius: float,
    config: PatternConfig,
) -> PatternRun:
    """Straight line between two random points on the circle boundary.

    The two angles are independent draws from ``[0, 2*pi)``; when they
    coincide the drawn line has zero length.  Travel to the first point,
    then draw to the second at the working depth, each with its own speed
    from ``[min, max)``.
    """
    _check_radius(radius, config)
    angle1 = float(rng.uniform(0.0, 2.0 * math.pi))
    angle2 = float(rng.uniform(0.0, 2.0 * math.pi))
    x1, y1 = point_on_circle(radius, angle1)
    x2, y2 = point_on_circle(radius, angle2)

    moves: tuple[Move, ...] = (
        LinearMove(x=x1, y=y1, feed=draw_speed(rng, config)),
        LinearMove(x=x2, y=y2, z=config.z_level_mm, feed=draw_speed(rng, config)),
    )
    return PatternRun(name=f"chord r={radius:g}", moves=moves)


def radial_sweep(
    rng: np.random.Generator,
    radius: float,
    config: PatternConfig,
) -> PatternRun:
    """Fan of near-diametral lines approximating radial spokes.

    For every swept angle ``a`` the run contains, in order:

    1. draw to the point at ``a``
    2. travel to its antipode ``a + 180``
    3. travel to the point at ``a + offset``
    4. travel to its antipode

    Each move draws its own speed from ``[min, max]``.
    """
    _check_radius(radius, config)
    z = config.z_level_mm
    moves: list[Move] = []

    for angle in sweep_angles(config):
        angle_rad = math.radians(angle)
        offset_rad = math.radians(angle + config.sweep_offset_deg)

        x1, y1 = point_on_circle(radius, angle_rad)
        x2, y2 = point_on_circle(radius, angle_rad + math.pi)
        x3, y3 = point_on_circle(radius, offset_rad)
        x4, y4 = point_on_circle(radius, offset_rad + math.pi)

        moves.append(LinearMove(x=x1, y=y1, z=z, feed=draw_speed(rng, config, True)))
        moves.append(LinearMove(x=x2, y=y2, feed=draw_speed(rng, config, True)))
        moves.append(LinearMove(x=x3, y=y3, feed=draw_speed(rng, config, True)))
        moves.append(LinearMove(x=x4, y=y4, feed=draw_speed(rng, config, True)))

    return PatternRun(name=f"radial sweep r={radius:g}", moves=tuple(moves))
