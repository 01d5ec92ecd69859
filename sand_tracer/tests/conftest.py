"""Shared fixtures: a recording fake serial channel and the default config."""

from __future__ import annotations

import time
from typing import Callable

import pytest
import serial

from sand_tracer.configs.loader import MachineConfig, load_config


class RecordingChannel:
    """In-memory stand-in for ``serial.Serial``.

    Every ``write`` is recorded as a decoded line.  Each read returns the
    next queued chunk for the current command; an exhausted queue behaves
    like a read-poll timeout: ``b""`` after ``read_delay`` or ``timeout``
    seconds, whichever is shorter.

    Parameters
    ----------
    reply : Callable[[str], list[bytes]] | None
        Maps each written command to the chunks the device sends back.
        ``None`` acknowledges everything with ``b"ok\\n"``.
    fail_on_write : int | None
        1-based index of the write call that raises ``SerialException``.
    read_delay : float
        Seconds an empty read blocks when no shorter ``timeout`` is set.
    timeout : float | None
        Read timeout, settable like ``serial.Serial.timeout``.  Every
        value assigned is kept in ``timeouts``.
    """

    def __init__(
        self,
        reply: Callable[[str], list[bytes]] | None = None,
        fail_on_write: int | None = None,
        read_delay: float = 0.001,
        timeout: float | None = None,
    ) -> None:
        self.reply = reply if reply is not None else (lambda cmd: [b"ok\n"])
        self.fail_on_write = fail_on_write
        self.read_delay = read_delay
        self.written: list[str] = []
        self.write_calls = 0
        self.read_calls = 0
        self.closed = False
        self._pending: list[bytes] = []
        self.timeouts: list[float | None] = []
        self._timeout = timeout

    def write(self, data: bytes) -> int:
        self.write_calls += 1
        if self.fail_on_write is not None and self.write_calls >= self.fail_on_write:
            raise serial.SerialException("device disconnected")
        line = data.decode("utf-8")
        assert line.endswith("\n") and line.count("\n") == 1
        command = line.rstrip("\n")
        self.written.append(command)
        self._pending = list(self.reply(command))
        return len(data)

    def read(self, size: int = 1) -> bytes:
        self.read_calls += 1
        if self._pending:
            chunk = self._pending.pop(0)
            if len(chunk) > size:
                self._pending.insert(0, chunk[size:])
            return chunk[:size]
        delay = self.read_delay
        if self._timeout is not None:
            delay = min(delay, self._timeout)
        time.sleep(delay)
        return b""

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float | None) -> None:
        self.timeouts.append(value)
        self._timeout = value

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def config() -> MachineConfig:
    """Load the default machine.yaml shipped with the package."""
    return load_config()


@pytest.fixture()
def channel() -> RecordingChannel:
    """A channel that acknowledges every command."""
    return RecordingChannel()


@pytest.fixture()
def make_channel() -> type[RecordingChannel]:
    """The channel class, for tests that need custom replies or failures."""
    return RecordingChannel
