"""Serial transport for a G-code motion controller.

Handles:
    - One command in flight at a time (strict half-duplex send / ack)
    - Acknowledgement detection by substring match on the ack token
    - Silent retry of empty / timed-out read polls until the deadline
    - Safety shutdown (home, fan off, motors off) when the deadline passes
    - Fatal, unretried write failures

The transport only needs a minimal byte channel (``SerialChannel``):
``pyserial``'s ``serial.Serial`` satisfies it, and so does any test double
that simulates latency, partial reads or failures.

Acknowledgement matching is a loose substring check: any response containing
the token (``"ok"`` by default) counts, including ``"okok"`` or a token
buried in echoed telemetry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

import serial

from sand_tracer.configs.loader import ConnectionConfig
from sand_tracer.hardware.errors import (
    AckTimeout,
    ChannelOpenError,
    WriteError,
)
from sand_tracer.hardware.shutdown import ShutdownReport, ShutdownSequencer

logger = logging.getLogger(__name__)

LINE_TERMINATOR = "\n"


# ---------------------------------------------------------------------------
# Channel interface
# ---------------------------------------------------------------------------


class SerialChannel(Protocol):
    """Blocking byte channel with a settable read timeout.

    ``read`` returns ``b""`` (or raises a timeout) when nothing arrived
    within ``timeout`` seconds.  The transport lowers ``timeout`` before
    each poll so no read outlives the acknowledgement deadline.
    """

    timeout: float | None

    def write(self, data: bytes) -> int | None: ...

    def read(self, size: int = 1) -> bytes: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Acknowledgement:
    """Successful send: the command, what the device said, how long it took."""

    command: str
    response: str
    elapsed_s: float


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class SerialTransport:
    """Send-and-await-ack transport over an exclusively owned channel.

    Parameters
    ----------
    channel : SerialChannel
        Open byte channel.  The transport owns it from here on.
    ack_timeout : float
        Default per-command deadline in seconds.
    ack_token : str
        Substring that marks an acknowledgement.
    read_size : int
        Maximum bytes requested per read poll.
    read_timeout : float | None
        Longest single read poll.  ``None`` takes the channel's current
        ``timeout``; if that is also ``None`` each poll waits out the
        remaining deadline.
    shutdown : ShutdownSequencer | None
        Sequence run when a command times out.  ``None`` uses the
        standard home / fan off / motors off sequence.
    poll_interval : float
        Back-off after a failed read before polling again.

    Examples
    --------
    >>> with SerialTransport.open("/dev/ttyUSB0", 115200) as transport:
    ...     transport.send_and_await("G28")
    """

    def __init__(
        self,
        channel: SerialChannel,
        ack_timeout: float = 10.0,
        *,
        ack_token: str = "ok",
        read_size: int = 64,
        read_timeout: float | None = None,
        shutdown: ShutdownSequencer | None = None,
        poll_interval: float = 0.01,
    ) -> None:
        if not ack_token:
            raise ValueError("ack_token must not be empty")
        self.ack_timeout = ack_timeout
        self.ack_token = ack_token
        self.read_size = read_size
        self.read_timeout = channel.timeout if read_timeout is None else read_timeout
        self.poll_interval = poll_interval

        self._channel: SerialChannel | None = channel
        self._shutdown = shutdown if shutdown is not None else ShutdownSequencer()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        port: str,
        baudrate: int,
        *,
        read_timeout: float = 8.0,
        write_timeout: float | None = None,
        **kwargs: Any,
    ) -> SerialTransport:
        """Open *port* with pyserial and wrap it.

        Raises
        ------
        ChannelOpenError
            If the port cannot be opened.  No command has been sent.
        """
        logger.info("Opening %s at %d baud", port, baudrate)
        try:
            channel = serial.Serial(
                port,
                baudrate=baudrate,
                timeout=read_timeout,
                write_timeout=write_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise ChannelOpenError(
                f"Failed to open port {port} at {baudrate} baud: {exc}"
            ) from exc
        logger.info("Connected to %s", port)
        return cls(channel, read_timeout=read_timeout, **kwargs)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        port: str | None = None,
    ) -> SerialTransport:
        """Open the port described by *config* (``port`` overrides it)."""
        return cls.open(
            port or config.port,
            config.baudrate,
            read_timeout=config.read_timeout_s,
            write_timeout=config.write_timeout_s,
            ack_timeout=config.ack_timeout_s,
            ack_token=config.ack_token,
            read_size=config.read_size,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        """``True`` until ``close()`` is called."""
        return self._channel is not None

    @property
    def shutdown_sequencer(self) -> ShutdownSequencer:
        return self._shutdown

    # ------------------------------------------------------------------
    # Send / acknowledge
    # ------------------------------------------------------------------

    def send_and_await(
        self,
        command: str,
        timeout: float | None = None,
        *,
        shutdown_on_timeout: bool = True,
    ) -> Acknowledgement:
        """Write one command and block until it is acknowledged.

        Parameters
        ----------
        command : str
            A single G-code line, without terminator.
        timeout : float | None
            Deadline override in seconds; ``None`` uses ``ack_timeout``.
        shutdown_on_timeout : bool
            Run the shutdown sequence before raising ``AckTimeout``.  The
            sequencer passes ``False`` so it never recurses.

        Raises
        ------
        WriteError
            The channel rejected the write.  No shutdown is attempted.
        AckTimeout
            No acknowledgement before the deadline.
        ValueError
            If *command* spans more than one line.
        """
        if "\n" in command or "\r" in command:
            raise ValueError(f"Command must be a single line: {command!r}")
        channel = self._require_channel(command)
        timeout = self.ack_timeout if timeout is None else timeout

        logger.debug("Sending G-code: %s", command)
        payload = (command + LINE_TERMINATOR).encode("utf-8")
        try:
            channel.write(payload)
        except (serial.SerialException, OSError) as exc:
            logger.error("Failed to write %r: %s", command, exc)
            raise WriteError(
                command, f"Failed to write {command!r}: {exc}"
            ) from exc

        ack = self._await_ack(channel, command, timeout)
        if ack is not None:
            return ack

        logger.error(
            "Timeout after %.1fs waiting for %r, stopping the machine",
            timeout,
            command,
        )
        report = None
        if shutdown_on_timeout:
            report = self._shutdown.run(self, timeout=timeout)
        raise AckTimeout(command, timeout, report)

    def shutdown(self, timeout: float | None = None) -> ShutdownReport:
        """Run the shutdown sequence (graceful end of a session)."""
        return self._shutdown.run(self, timeout=timeout)

    def _await_ack(
        self, channel: SerialChannel, command: str, timeout: float,
    ) -> Acknowledgement | None:
        """Poll the channel until the ack token shows up or time runs out."""
        start = time.monotonic()
        deadline = start + timeout
        received = ""

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None

            poll = remaining
            if self.read_timeout is not None:
                poll = min(self.read_timeout, remaining)
            channel.timeout = poll

            try:
                chunk = channel.read(self.read_size)
            except (serial.SerialTimeoutException, TimeoutError):
                continue
            except (serial.SerialException, OSError) as exc:
                logger.warning("Failed to read from port: %s", exc)
                time.sleep(self.poll_interval)
                continue

            if not chunk:
                # Read poll timed out with nothing buffered
                continue

            text = chunk.decode("utf-8", errors="replace")
            logger.debug("Received response: %r", text)
            received += text
            if self.ack_token in received:
                return Acknowledgement(
                    command, received, time.monotonic() - start,
                )

    def _require_channel(self, command: str) -> SerialChannel:
        if self._channel is None:
            raise WriteError(command, "Transport is closed")
        return self._channel

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the channel.  Further sends raise ``WriteError``."""
        if self._channel is None:
            return
        try:
            self._channel.close()
        except (serial.SerialException, OSError) as exc:
            logger.warning("Error closing channel: %s", exc)
        self._channel = None
        logger.info("Serial channel closed")

    def __enter__(self) -> SerialTransport:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
