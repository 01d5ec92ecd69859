"""Tests for Job IR operations module.

Validates dataclass creation, immutability, validation, and pattern runs.
"""

from __future__ import annotations

import dataclasses
import math

import pytest

from sand_tracer.job_ir.operations import (
    ArcMove,
    DisableMotors,
    FanOff,
    HomeAxes,
    LinearMove,
    Operation,
    PatternRun,
)


# ---------------------------------------------------------------------------
# Dataclass creation and immutability
# ---------------------------------------------------------------------------


class TestOperationDataclasses:
    def test_setup_ops(self) -> None:
        for op in (HomeAxes(), FanOff(), DisableMotors()):
            assert isinstance(op, Operation)

    def test_travel_move(self) -> None:
        op = LinearMove(x=10.5, y=-20.25, feed=3000)
        assert op.x == 10.5
        assert op.y == -20.25
        assert op.z is None
        assert not op.is_draw

    def test_draw_move(self) -> None:
        op = LinearMove(x=1.0, y=2.0, feed=4000, z=42.0)
        assert op.is_draw

    def test_frozen(self) -> None:
        op = LinearMove(x=1.0, y=2.0, feed=3000)
        with pytest.raises(dataclasses.FrozenInstanceError):
            op.x = 5.0  # type: ignore[misc]

    def test_equality_is_by_value(self) -> None:
        assert LinearMove(1.0, 2.0, 3000) == LinearMove(1.0, 2.0, 3000)
        assert HomeAxes() == HomeAxes()

    def test_arc_defaults_to_full_clockwise_circle(self) -> None:
        op = ArcMove(i=30.0, j=40.0, feed=3500)
        assert op.clockwise
        assert op.is_full_circle
        assert op.radius == pytest.approx(50.0)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_linear_rejects_non_finite(self, bad: float) -> None:
        with pytest.raises(ValueError, match="must be finite"):
            LinearMove(x=bad, y=0.0, feed=3000)

    def test_linear_rejects_non_finite_z(self) -> None:
        with pytest.raises(ValueError, match="z must be finite"):
            LinearMove(x=0.0, y=0.0, feed=3000, z=math.nan)

    def test_feed_must_be_positive_int(self) -> None:
        with pytest.raises(ValueError, match="feed must be > 0"):
            LinearMove(x=0.0, y=0.0, feed=0)
        with pytest.raises(ValueError, match="feed must be an int"):
            LinearMove(x=0.0, y=0.0, feed=3000.5)  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="feed must be an int"):
            ArcMove(i=1.0, j=0.0, feed=True)  # type: ignore[arg-type]

    def test_arc_end_point_needs_both_coordinates(self) -> None:
        with pytest.raises(ValueError, match="both x and y"):
            ArcMove(i=1.0, j=0.0, feed=3000, x=1.0)

    def test_arc_with_end_point(self) -> None:
        op = ArcMove(i=5.0, j=0.0, feed=3000, x=10.0, y=0.0, clockwise=False)
        assert not op.is_full_circle


# ---------------------------------------------------------------------------
# Pattern runs
# ---------------------------------------------------------------------------


class TestPatternRun:
    def test_iterates_moves_in_order(self) -> None:
        moves = (
            LinearMove(1.0, 0.0, 3000),
            LinearMove(2.0, 0.0, 3000, z=42.0),
        )
        run = PatternRun(name="line", moves=moves)
        assert len(run) == 2
        assert list(run) == list(moves)

    def test_empty_run(self) -> None:
        run = PatternRun(name="empty", moves=())
        assert len(run) == 0
        assert list(run) == []
