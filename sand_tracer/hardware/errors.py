"""Exceptions raised by the serial transport.

A transient read-poll timeout is never raised: the transport retries it
until the per-command deadline.  Everything below aborts the command in
progress and reaches the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sand_tracer.hardware.shutdown import ShutdownReport


class SerialTransportError(Exception):
    """Base exception for all transport errors."""

    pass


class ChannelOpenError(SerialTransportError):
    """The serial port could not be opened.  Fatal, nothing was sent."""

    pass


class WriteError(SerialTransportError):
    """The channel rejected a write.  Fatal for the run, never retried."""

    def __init__(self, command: str, message: str) -> None:
        super().__init__(message)
        self.command = command


class AckTimeout(SerialTransportError, TimeoutError):
    """No acknowledgement before the deadline.

    When raised from a normal send, the shutdown sequence has already been
    attempted and its outcome is attached as ``shutdown_report``.
    """

    def __init__(
        self,
        command: str,
        timeout_s: float,
        shutdown_report: ShutdownReport | None = None,
    ) -> None:
        super().__init__(
            f"No acknowledgement for {command!r} within {timeout_s}s"
        )
        self.command = command
        self.timeout_s = timeout_s
        self.shutdown_report = shutdown_report
