"""Tests for the run_patterns command-line entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import serial
import yaml

from sand_tracer.configs.loader import DEFAULT_CONFIG_PATH
from sand_tracer.scripts.run_patterns import (
    EXIT_OK,
    EXIT_SETUP,
    EXIT_TIMEOUT,
    EXIT_WRITE,
    main,
)


class TestDryRun:
    def test_writes_program(self, tmp_path: Path) -> None:
        out = tmp_path / "session.gcode"
        code = main(["--dry-run", "--seed", "7", "-n", "1", "-o", str(out)])
        assert code == EXIT_OK

        lines = out.read_text(encoding="utf-8").splitlines()
        assert "; --- radial sweep r=75 ---" in lines
        assert "G1 X-75 Y0 Z42 F3000" in lines
        assert sum(line.startswith("G2 ") for line in lines) == 30

    def test_seed_reproduces_program(self, tmp_path: Path) -> None:
        a, b = tmp_path / "a.gcode", tmp_path / "b.gcode"
        main(["--dry-run", "--seed", "3", "-n", "1", "-o", str(a)])
        main(["--dry-run", "--seed", "3", "-n", "1", "-o", str(b)])
        assert a.read_text() == b.read_text()

    def test_stdout(self, capsys) -> None:
        assert main(["--dry-run", "-n", "0"]) == EXIT_OK
        assert "End of 0 runs" in capsys.readouterr().out


class TestSetupErrors:
    def test_missing_config(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "none.yaml"), "--dry-run"]) == EXIT_SETUP

    def test_negative_repetitions(self) -> None:
        assert main(["--dry-run", "-n", "-1"]) == EXIT_SETUP

    def test_port_open_failure(self) -> None:
        with patch("serial.Serial", side_effect=serial.SerialException("busy")):
            assert main(["--port", "/dev/ttyNOPE", "-n", "0"]) == EXIT_SETUP


class TestSessionErrors:
    def test_write_failure_exit_code(self, make_channel) -> None:
        channel = make_channel(fail_on_write=1)
        with patch("serial.Serial", return_value=channel):
            assert main(["-n", "0"]) == EXIT_WRITE
        assert channel.closed

    def test_success_exit_code(self, channel) -> None:
        with patch("serial.Serial", return_value=channel):
            assert main(["-n", "0"]) == EXIT_OK
        assert channel.written == [
            "M107", "G28", "G1 X0 Y0 Z50 F8000", "G28", "M107", "M84",
        ]

    def test_timeout_exit_code(self, make_channel, tmp_path: Path) -> None:
        data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))
        data["connection"]["ack_timeout_s"] = 0.02
        data["connection"]["read_timeout_s"] = 0.01
        cfg = tmp_path / "machine.yaml"
        cfg.write_text(yaml.safe_dump(data), encoding="utf-8")

        channel = make_channel(reply=lambda cmd: [])
        with patch("serial.Serial", return_value=channel):
            assert main(["--config", str(cfg), "-n", "0"]) == EXIT_TIMEOUT
        assert channel.written == ["M107", "G28", "M107", "M84"]

    def test_unacknowledged_final_shutdown_exit_code(
        self, make_channel, tmp_path: Path,
    ) -> None:
        data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))
        data["connection"]["ack_timeout_s"] = 0.02
        data["connection"]["read_timeout_s"] = 0.01
        cfg = tmp_path / "machine.yaml"
        cfg.write_text(yaml.safe_dump(data), encoding="utf-8")

        sent: list[str] = []

        def startup_only(cmd: str) -> list[bytes]:
            sent.append(cmd)
            return [b"ok\n"] if len(sent) <= 3 else []

        channel = make_channel(reply=startup_only)
        with patch("serial.Serial", return_value=channel):
            assert main(["--config", str(cfg), "-n", "0"]) == EXIT_TIMEOUT
        assert channel.written[3:] == ["G28", "M107", "M84"]
