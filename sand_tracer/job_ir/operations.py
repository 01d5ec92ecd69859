"""Job IR operations -- the vocabulary between pattern generation and G-code.

Every device action is an immutable, slotted dataclass.  Operations use
**semantic** names (``HomeAxes``, not ``G28``), **millimetre** coordinates
centred on the table origin, and integer feed rates in **mm/min**.

Moves
-----
A ``LinearMove`` without ``z`` is a *travel* move: the device keeps its
last commanded height.  With ``z`` set it is a *plunge/draw* move at that
working depth.  ``ArcMove`` is a circular interpolation around the centre
offset ``(i, j)``; without an end point it closes a full circle.

Grouping
--------
A ``PatternRun`` is the ordered list of moves forming one logical shape
(one circle, one chord, one radial sweep).  Runs share no state.
"""

from __future__ import annotations

import math
from abc import ABC
from dataclasses import dataclass
from typing import Iterator, Union

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_finite(op: str, **values: float | None) -> None:
    for name, value in values.items():
        if value is not None and not math.isfinite(value):
            raise ValueError(f"{op} {name} must be finite, got {value}")


def _check_feed(op: str, feed: int) -> None:
    if isinstance(feed, bool) or not isinstance(feed, int):
        raise ValueError(f"{op} feed must be an int, got {feed!r}")
    if feed <= 0:
        raise ValueError(f"{op} feed must be > 0, got {feed}")


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Operation(ABC):
    """Base class for all job operations."""

    pass


# ---------------------------------------------------------------------------
# Setup / shutdown operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HomeAxes(Operation):
    """Home all axes against their endstops."""

    pass


@dataclass(frozen=True, slots=True)
class FanOff(Operation):
    """Switch off the secondary actuator (fan output)."""

    pass


@dataclass(frozen=True, slots=True)
class DisableMotors(Operation):
    """Release the stepper motors."""

    pass


# ---------------------------------------------------------------------------
# Motion operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LinearMove(Operation):
    """Straight move to ``(x, y)``.

    Parameters
    ----------
    x, y : float
        Target position in mm.
    feed : int
        Feed rate in mm/min.
    z : float | None
        Working depth for a draw move; ``None`` for a travel move.
    """

    x: float
    y: float
    feed: int
    z: float | None = None

    def __post_init__(self) -> None:
        _check_finite("LinearMove", x=self.x, y=self.y, z=self.z)
        _check_feed("LinearMove", self.feed)

    @property
    def is_draw(self) -> bool:
        """``True`` when the move carries the working depth."""
        return self.z is not None


@dataclass(frozen=True, slots=True)
class ArcMove(Operation):
    """Circular interpolation (G2/G3) in centre-offset form.

    The centre of curvature is at ``current + (i, j)``.  When ``x`` and
    ``y`` are ``None`` the arc ends where it started, i.e. a full circle.

    Parameters
    ----------
    i, j : float
        Offset from the current position to the arc centre, in mm.
    feed : int
        Feed rate in mm/min.
    z : float | None
        Working depth, or ``None`` to keep the current height.
    clockwise : bool
        ``True`` for G2, ``False`` for G3.
    x, y : float | None
        Optional end point; both or neither.
    """

    i: float
    j: float
    feed: int
    z: float | None = None
    clockwise: bool = True
    x: float | None = None
    y: float | None = None

    def __post_init__(self) -> None:
        _check_finite(
            "ArcMove", i=self.i, j=self.j, z=self.z, x=self.x, y=self.y,
        )
        _check_feed("ArcMove", self.feed)
        if (self.x is None) != (self.y is None):
            raise ValueError("ArcMove end point needs both x and y, or neither")

    @property
    def radius(self) -> float:
        """Magnitude of the centre offset."""
        return math.hypot(self.i, self.j)

    @property
    def is_full_circle(self) -> bool:
        return self.x is None


Move = Union[LinearMove, ArcMove]
"""A motion command produced by the pattern generator."""


# ---------------------------------------------------------------------------
# Pattern runs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PatternRun:
    """One logical shape: a named, ordered sequence of moves."""

    name: str
    moves: tuple[Move, ...]

    def __iter__(self) -> Iterator[Move]:
        return iter(self.moves)

    def __len__(self) -> int:
        return len(self.moves)
