"""Job executor -- streams pattern runs to the machine.

A session is:

    initialize  ->  stream every PatternRun  ->  shutdown sequence

Commands go out strictly one at a time: each is encoded, written, and
acknowledged before the next is generated.  Pattern runs are consumed
lazily, so an endless schedule never builds up in memory.

Failure handling:
    - ``WriteError``: the executor stops immediately and re-raises.  No
      shutdown is attempted over a channel that just failed.
    - ``AckTimeout``: the transport has already run the shutdown
      sequence; the executor stops and re-raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable

from sand_tracer.configs.loader import MachineConfig
from sand_tracer.gcode.generator import GCodeGenerator
from sand_tracer.hardware.errors import SerialTransportError
from sand_tracer.hardware.serial_transport import SerialTransport
from sand_tracer.hardware.shutdown import ShutdownReport, StepOutcome
from sand_tracer.job_ir.operations import (
    FanOff,
    HomeAxes,
    LinearMove,
    Operation,
    PatternRun,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class ExecutorState(Enum):
    """Current job-executor state."""

    IDLE = auto()
    RUNNING = auto()
    COMPLETE = auto()
    ERROR = auto()


@dataclass
class ExecutorProgress:
    """Execution progress snapshot."""

    state: ExecutorState
    completed_runs: int = 0
    sent_commands: int = 0
    message: str = ""
    shutdown_report: ShutdownReport | None = None


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class JobExecutor:
    """Single-threaded session driver.

    Parameters
    ----------
    transport : SerialTransport
        Open transport; the executor never touches the channel directly.
    config : MachineConfig
        Machine configuration (startup park position).
    """

    def __init__(
        self,
        transport: SerialTransport,
        config: MachineConfig,
    ) -> None:
        self._transport = transport
        self._cfg = config
        self._gen = GCodeGenerator()

        self._state = ExecutorState.IDLE
        self._progress_cb: Callable[[ExecutorProgress], None] | None = None
        self._progress = ExecutorProgress(state=ExecutorState.IDLE)

    # ------------------------------------------------------------------
    # Common
    # ------------------------------------------------------------------

    def get_state(self) -> ExecutorState:
        """Return current executor state."""
        return self._state

    @property
    def progress(self) -> ExecutorProgress:
        return self._progress

    def set_progress_callback(
        self, fn: Callable[[ExecutorProgress], None],
    ) -> None:
        """Register a callback invoked after each completed run."""
        self._progress_cb = fn

    def _notify(self, **kwargs: object) -> None:
        """Update internal progress and fire callback."""
        for k, v in kwargs.items():
            if hasattr(self._progress, k):
                setattr(self._progress, k, v)
        self._progress.state = self._state
        if self._progress_cb is not None:
            try:
                self._progress_cb(self._progress)
            except Exception as exc:  # noqa: BLE001
                logger.error("Progress callback error: %s", exc)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def startup_operations(self) -> list[Operation]:
        """Fan off, home, then park above the table centre."""
        st = self._cfg.startup
        return [
            FanOff(),
            HomeAxes(),
            LinearMove(x=0.0, y=0.0, z=st.park_z_mm, feed=st.park_feed_mm_min),
        ]

    def execute(self, operations: Iterable[Operation]) -> int:
        """Encode and send *operations* in order.

        Returns
        -------
        int
            Number of acknowledged commands.
        """
        sent = 0
        for op in operations:
            command = self._gen.encode(op)
            self._transport.send_and_await(command)
            sent += 1
            self._progress.sent_commands += 1
        return sent

    def initialize(self) -> None:
        """Bring the machine to its start position."""
        logger.info("Initializing machine")
        self.execute(self.startup_operations())

    def shutdown(self) -> ShutdownReport:
        """Graceful end of session: home, fan off, motors off."""
        logger.info("Shutting down machine")
        report = self._transport.shutdown()
        if not report.completed:
            unacked = [
                s.command for s in report.steps
                if s.outcome is not StepOutcome.ACKED
            ]
            logger.warning(
                "Shutdown incomplete, not acknowledged: %s", ", ".join(unacked),
            )
        return report

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def run(
        self,
        runs: Iterable[PatternRun],
        *,
        initialize: bool = True,
        shutdown: bool = True,
    ) -> ExecutorProgress:
        """Stream a whole session.

        Parameters
        ----------
        runs : Iterable[PatternRun]
            Pattern runs, typically ``default_schedule(...)``.
        initialize : bool
            Send the startup sequence first.
        shutdown : bool
            Send the shutdown sequence after the last run.

        Raises
        ------
        WriteError, AckTimeout
            Propagated unchanged; nothing else is sent afterwards.
        """
        self._state = ExecutorState.RUNNING
        self._progress = ExecutorProgress(state=self._state)

        try:
            if initialize:
                self.initialize()

            for run in runs:
                logger.info("Drawing %s (%d moves)", run.name, len(run))
                self.execute(run)
                self._notify(
                    completed_runs=self._progress.completed_runs + 1,
                    message=run.name,
                )

            if shutdown:
                self._progress.shutdown_report = self.shutdown()
        except SerialTransportError as exc:
            self._state = ExecutorState.ERROR
            self._notify(message=str(exc))
            logger.error(
                "Session aborted after %d runs: %s",
                self._progress.completed_runs,
                exc,
            )
            raise

        self._state = ExecutorState.COMPLETE
        self._notify(message="Complete")
        logger.info(
            "Session complete: %d runs, %d commands",
            self._progress.completed_runs,
            self._progress.sent_commands,
        )
        return self._progress
