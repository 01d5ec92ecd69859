#!/usr/bin/env python3
"""Verify serial connectivity to the controller.

Opens the configured port, sends a harmless firmware-info request and
waits for the acknowledgement.  A timeout here does not trigger the
shutdown sequence.

Usage::

    python -m sand_tracer.scripts.test_connection
    python -m sand_tracer.scripts.test_connection --port /dev/ttyUSB0
"""

from __future__ import annotations

import argparse
import logging
import sys

from sand_tracer.configs.loader import load_config
from sand_tracer.hardware.errors import SerialTransportError
from sand_tracer.hardware.serial_transport import SerialTransport

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def test_connection(
    port: str | None = None,
    config_path: str | None = None,
) -> bool:
    """Open the port and round-trip one command.  Returns ``True`` on success."""
    print("=" * 60)
    print("  SERIAL CONNECTION TEST")
    print("=" * 60)

    config = load_config(config_path)
    port = port or config.connection.port
    print(f"\n[OK] Configuration loaded")
    print(f"     Port: {port} @ {config.connection.baudrate} baud")

    try:
        transport = SerialTransport.from_config(config.connection, port=port)
    except SerialTransportError as exc:
        print(f"[FAIL] Open port: {exc}")
        return False
    print("[PASS] Port opened")

    with transport:
        try:
            ack = transport.send_and_await("M115", shutdown_on_timeout=False)
        except SerialTransportError as exc:
            print(f"[FAIL] M115: {exc}")
            return False
        print(f"[PASS] M115 acknowledged in {ack.elapsed_s:.2f}s")
        print(f"     Response: {ack.response.strip()[:120]}")

    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Test serial connection")
    parser.add_argument("--port", "-p", type=str, help="Serial port override")
    parser.add_argument("--config", "-c", type=str, help="Config file path")
    args = parser.parse_args()

    success = test_connection(args.port, args.config)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
