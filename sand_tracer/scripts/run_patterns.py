#!/usr/bin/env python3
"""
Run Patterns Script.

Draw the sand pattern schedule: random chords, a radial sweep and
concentric circles, repeated.

Usage:
    python -m sand_tracer.scripts.run_patterns
    python -m sand_tracer.scripts.run_patterns --port /dev/ttyUSB0 --seed 7
    python -m sand_tracer.scripts.run_patterns --repetitions 1 --dry-run
    python -m sand_tracer.scripts.run_patterns --dry-run --output session.gcode

Exit codes:
    0 success, 1 config / port error, 2 acknowledgement timeout (including
    an unacknowledged final shutdown),
    3 write failure, 130 interrupted
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from sand_tracer.configs.loader import ConfigError, load_config
from sand_tracer.gcode.generator import GCodeGenerator
from sand_tracer.hardware.errors import AckTimeout, ChannelOpenError, WriteError
from sand_tracer.hardware.job_executor import ExecutorProgress, JobExecutor
from sand_tracer.hardware.serial_transport import SerialTransport
from sand_tracer.patterns.schedule import default_schedule

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SETUP = 1
EXIT_TIMEOUT = 2
EXIT_WRITE = 3
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stream sand patterns to a G-code controller",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=str,
        help="Serial port override",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed (overrides schedule.seed)",
    )
    parser.add_argument(
        "--repetitions",
        "-n",
        type=int,
        help="Number of pattern batches (overrides schedule.repetitions)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate G-code but don't open the port",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write dry-run G-code to this file instead of stdout",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every command and response",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    # Load config
    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Error loading config: %s", e)
        return EXIT_SETUP

    if args.repetitions is not None and args.repetitions < 0:
        logger.error("--repetitions must be >= 0")
        return EXIT_SETUP

    seed = args.seed if args.seed is not None else config.schedule.seed
    rng = np.random.default_rng(seed)
    runs = default_schedule(rng, config, repetitions=args.repetitions)

    # Dry run - just generate G-code
    if args.dry_run:
        gcode = GCodeGenerator().generate(runs)
        if args.output:
            path = Path(args.output)
            path.write_text(gcode, encoding="utf-8")
            logger.info("Wrote G-code to %s (%d bytes)", path, len(gcode))
        else:
            sys.stdout.write(gcode)
        return EXIT_OK

    # Execute
    try:
        transport = SerialTransport.from_config(config.connection, port=args.port)
    except ChannelOpenError as e:
        logger.error("%s", e)
        return EXIT_SETUP

    with transport:
        executor = JobExecutor(transport, config)

        def progress_callback(progress: ExecutorProgress) -> None:
            logger.debug(
                "Progress: %d runs, %d commands (%s)",
                progress.completed_runs,
                progress.sent_commands,
                progress.message,
            )

        executor.set_progress_callback(progress_callback)

        try:
            progress = executor.run(runs)
        except AckTimeout as e:
            logger.error("Session stopped: %s", e)
            return EXIT_TIMEOUT
        except WriteError as e:
            logger.error("Session aborted: %s", e)
            return EXIT_WRITE
        except KeyboardInterrupt:
            logger.warning("Interrupted")
            return EXIT_INTERRUPTED

        report = progress.shutdown_report
        if report is not None and not report.completed:
            logger.error("Final shutdown was not acknowledged")
            return EXIT_TIMEOUT

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
