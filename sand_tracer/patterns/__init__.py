"""
Pattern module.

Procedural sand patterns (circles, random chords, radial sweeps) and the
schedule that strings them into a session.
"""

from sand_tracer.patterns.shapes import (
    circle,
    draw_speed,
    point_on_circle,
    radial_sweep,
    random_chord,
    sweep_angles,
)
from sand_tracer.patterns.schedule import circle_radii, default_schedule, repetition

__all__ = [
    "circle",
    "draw_speed",
    "point_on_circle",
    "radial_sweep",
    "random_chord",
    "sweep_angles",
    "circle_radii",
    "default_schedule",
    "repetition",
]
