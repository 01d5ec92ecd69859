"""G-code generator -- Job IR operations to wire command lines.

Each operation becomes exactly one line of text, without a terminator;
the transport appends the newline when it sends it.

Number formatting:
    No fixed precision is imposed.  Values are written in their shortest
    round-trip positional form (never ``1e-15`` notation, which G-code
    cannot parse), and integral values drop the fractional part
    (``75.0 -> "75"``, ``-52.5 -> "-52.5"``).  Encoding is deterministic:
    the same operation always yields the same text.

Word order::

    G1 X<x> Y<y> [Z<z>] F<feed>
    G2|G3 [X<x> Y<y>] I<i> J<j> [Z<z>] F<feed>
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Iterable

import numpy as np

from sand_tracer.job_ir.operations import (
    ArcMove,
    DisableMotors,
    FanOff,
    HomeAxes,
    LinearMove,
    Operation,
    PatternRun,
)

logger = logging.getLogger(__name__)


class GCodeError(Exception):
    """Raised when an operation cannot be encoded."""

    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_number(value: float) -> str:
    """Shortest round-trip positional decimal for *value*, never exponent form.

    Integral values drop the fractional part and ``-0`` prints as ``0``.
    """
    value = float(value)
    if value == 0.0:
        return "0"
    return np.format_float_positional(value, trim="-")


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class GCodeGenerator:
    """Convert Job IR operations to G-code lines.

    The generator is stateless: it holds no channel and no position, so the
    same instance may encode any number of runs.
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, op: Operation) -> str:
        """Encode a single operation as one command line.

        Raises
        ------
        GCodeError
            If *op* has no G-code mapping.
        """
        if isinstance(op, LinearMove):
            return self._gen_linear(op)
        if isinstance(op, ArcMove):
            return self._gen_arc(op)
        if isinstance(op, HomeAxes):
            return "G28"
        if isinstance(op, FanOff):
            return "M107"
        if isinstance(op, DisableMotors):
            return "M84"
        raise GCodeError(f"Unsupported operation: {type(op).__name__}")

    def encode_all(self, operations: Iterable[Operation]) -> list[str]:
        """Encode a sequence of operations, preserving order."""
        return [self.encode(op) for op in operations]

    def generate(self, runs: Iterable[PatternRun]) -> str:
        """Render pattern runs as a complete program (dry-run output).

        Each run is preceded by a comment naming it.  The text is what
        would be streamed to the device, one command per line.
        """
        buf = StringIO()
        buf.write("; Generated by sand_tracer G-code generator\n")
        count = 0
        for run in runs:
            buf.write(f"; --- {run.name} ---\n")
            for move in run:
                buf.write(self.encode(move))
                buf.write("\n")
            count += 1
        buf.write(f"; --- End of {count} runs ---\n")
        logger.debug("Rendered %d pattern runs", count)
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Individual generators
    # ------------------------------------------------------------------

    def _gen_linear(self, op: LinearMove) -> str:
        words = ["G1", f"X{format_number(op.x)}", f"Y{format_number(op.y)}"]
        if op.z is not None:
            words.append(f"Z{format_number(op.z)}")
        words.append(f"F{op.feed}")
        return " ".join(words)

    def _gen_arc(self, op: ArcMove) -> str:
        words = ["G2" if op.clockwise else "G3"]
        if op.x is not None and op.y is not None:
            words.append(f"X{format_number(op.x)}")
            words.append(f"Y{format_number(op.y)}")
        words.append(f"I{format_number(op.i)}")
        words.append(f"J{format_number(op.j)}")
        if op.z is not None:
            words.append(f"Z{format_number(op.z)}")
        words.append(f"F{op.feed}")
        return " ".join(words)
