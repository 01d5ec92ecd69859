"""
Hardware communication module.

Provides the serial send/acknowledge transport, the safety shutdown
sequence, and the session executor.
"""

from sand_tracer.hardware.errors import (
    AckTimeout,
    ChannelOpenError,
    SerialTransportError,
    WriteError,
)
from sand_tracer.hardware.job_executor import JobExecutor
from sand_tracer.hardware.serial_transport import Acknowledgement, SerialTransport
from sand_tracer.hardware.shutdown import ShutdownReport, ShutdownSequencer

__all__ = [
    "AckTimeout",
    "Acknowledgement",
    "ChannelOpenError",
    "JobExecutor",
    "SerialTransport",
    "SerialTransportError",
    "ShutdownReport",
    "ShutdownSequencer",
    "WriteError",
]
