"""
Job Intermediate Representation module.

Defines all device operations as immutable dataclasses. This vocabulary
is the contract between the pattern generator and the G-code encoder.

All coordinates are in millimeters, centred on the table origin.
"""

from sand_tracer.job_ir.operations import (
    Operation,
    HomeAxes,
    FanOff,
    DisableMotors,
    LinearMove,
    ArcMove,
    Move,
    PatternRun,
)

__all__ = [
    "Operation",
    "HomeAxes",
    "FanOff",
    "DisableMotors",
    "LinearMove",
    "ArcMove",
    "Move",
    "PatternRun",
]
