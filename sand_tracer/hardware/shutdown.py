"""Shutdown sequencer -- bring the machine to a safe idle state.

Sends, in order: home all axes, fan off, motors off.  Used for the
graceful end of a session and from the transport when a command times
out.

Best effort:
    - A step that times out is recorded and the next step still runs.
    - A write failure means the channel is gone; the remaining steps are
      skipped.
    - Steps are sent with ``shutdown_on_timeout=False``, so a timeout in
      here never starts another shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Sequence

from sand_tracer.gcode.generator import GCodeGenerator
from sand_tracer.hardware.errors import AckTimeout, WriteError
from sand_tracer.job_ir.operations import DisableMotors, FanOff, HomeAxes, Operation

if TYPE_CHECKING:
    from sand_tracer.hardware.serial_transport import SerialTransport

logger = logging.getLogger(__name__)

SHUTDOWN_OPERATIONS: tuple[Operation, ...] = (
    HomeAxes(),
    FanOff(),
    DisableMotors(),
)


class StepOutcome(Enum):
    """Result of one shutdown step."""

    ACKED = auto()
    TIMED_OUT = auto()
    WRITE_FAILED = auto()
    SKIPPED = auto()


@dataclass(frozen=True)
class ShutdownStep:
    command: str
    outcome: StepOutcome


@dataclass(frozen=True)
class ShutdownReport:
    """Per-command outcome of one shutdown attempt."""

    steps: tuple[ShutdownStep, ...]

    @property
    def completed(self) -> bool:
        """``True`` when every step was acknowledged."""
        return all(s.outcome is StepOutcome.ACKED for s in self.steps)

    @property
    def attempted(self) -> list[str]:
        """Commands actually written to the channel, in order."""
        return [s.command for s in self.steps if s.outcome is not StepOutcome.SKIPPED]


class ShutdownSequencer:
    """Fixed, ordered list of safety commands.

    Parameters
    ----------
    commands : Sequence[str] | None
        Command lines to send.  ``None`` encodes ``SHUTDOWN_OPERATIONS``
        (``G28``, ``M107``, ``M84``).
    """

    def __init__(self, commands: Sequence[str] | None = None) -> None:
        if commands is None:
            commands = GCodeGenerator().encode_all(SHUTDOWN_OPERATIONS)
        self.commands: tuple[str, ...] = tuple(commands)

    def run(
        self,
        transport: SerialTransport,
        timeout: float | None = None,
    ) -> ShutdownReport:
        """Send every shutdown command through *transport*.

        Parameters
        ----------
        timeout : float | None
            Per-command deadline; ``None`` uses the transport default.
        """
        logger.warning("Running shutdown sequence: %s", " | ".join(self.commands))
        steps: list[ShutdownStep] = []
        channel_lost = False

        for command in self.commands:
            if channel_lost:
                steps.append(ShutdownStep(command, StepOutcome.SKIPPED))
                continue
            try:
                transport.send_and_await(
                    command, timeout, shutdown_on_timeout=False,
                )
                steps.append(ShutdownStep(command, StepOutcome.ACKED))
            except AckTimeout:
                logger.error("Shutdown step %r was not acknowledged", command)
                steps.append(ShutdownStep(command, StepOutcome.TIMED_OUT))
            except WriteError as exc:
                logger.error("Shutdown aborted, channel unusable: %s", exc)
                steps.append(ShutdownStep(command, StepOutcome.WRITE_FAILED))
                channel_lost = True

        report = ShutdownReport(tuple(steps))
        if report.completed:
            logger.info("Shutdown sequence complete")
        return report
