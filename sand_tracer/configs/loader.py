"""Configuration loader for the sand table.

Loads and validates ``machine.yaml`` into typed, frozen dataclasses.  The
serial link, pattern constants (working depth, speed bounds, radius,
sweep angles), startup park position and the outer run schedule all come
from the config and are passed explicitly to the generator, transport and
executor.

Feed rates are stored as integer G-code ``F`` values (**mm/min**).  The
encoder writes them unchanged.

Usage::

    from sand_tracer.configs.loader import load_config
    cfg = load_config()                        # default path
    cfg = load_config("/custom/machine.yaml")  # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "machine.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectionConfig:
    """Serial link settings.

    ``read_timeout_s`` bounds a single read poll; ``ack_timeout_s`` is the
    overall per-command deadline, applied to motion and shutdown commands
    alike.
    """

    port: str
    baudrate: int
    read_timeout_s: float
    ack_timeout_s: float
    write_timeout_s: float | None = None
    ack_token: str = "ok"
    read_size: int = 64


@dataclass(frozen=True)
class PatternConfig:
    """Geometry and feed-rate constants shared by every pattern."""

    z_level_mm: float
    min_speed_mm_min: int
    max_speed_mm_min: int
    max_radius_mm: float
    approach_feed_mm_min: int
    sweep_step_deg: int
    sweep_offset_deg: int
    clockwise_circles: bool = True


@dataclass(frozen=True)
class StartupConfig:
    """Park position commanded after homing."""

    park_z_mm: float
    park_feed_mm_min: int


@dataclass(frozen=True)
class ScheduleConfig:
    """Outer run schedule (how many batches, which circle radii)."""

    repetitions: int
    chords_per_batch: int
    min_circle_radius_mm: float
    circle_radius_step_mm: float
    seed: int | None = None


@dataclass(frozen=True)
class MachineConfig:
    """Top-level validated configuration."""

    connection: ConnectionConfig
    patterns: PatternConfig
    startup: StartupConfig
    schedule: ScheduleConfig


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> dict[str, Any] | None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML file {path}: {exc}") from exc


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _parse_connection(data: dict[str, Any]) -> ConnectionConfig:
    return ConnectionConfig(
        port=str(data["port"]),
        baudrate=int(data["baudrate"]),
        read_timeout_s=float(data["read_timeout_s"]),
        ack_timeout_s=float(data["ack_timeout_s"]),
        write_timeout_s=_optional_float(data.get("write_timeout_s")),
        ack_token=str(data.get("ack_token", "ok")),
        read_size=int(data.get("read_size", 64)),
    )


def _parse_patterns(data: dict[str, Any]) -> PatternConfig:
    return PatternConfig(
        z_level_mm=float(data["z_level_mm"]),
        min_speed_mm_min=int(data["min_speed_mm_min"]),
        max_speed_mm_min=int(data["max_speed_mm_min"]),
        max_radius_mm=float(data["max_radius_mm"]),
        approach_feed_mm_min=int(data["approach_feed_mm_min"]),
        sweep_step_deg=int(data["sweep_step_deg"]),
        sweep_offset_deg=int(data["sweep_offset_deg"]),
        clockwise_circles=bool(data.get("clockwise_circles", True)),
    )


def _parse_startup(data: dict[str, Any]) -> StartupConfig:
    return StartupConfig(
        park_z_mm=float(data["park_z_mm"]),
        park_feed_mm_min=int(data["park_feed_mm_min"]),
    )


def _parse_schedule(data: dict[str, Any]) -> ScheduleConfig:
    seed = data.get("seed")
    return ScheduleConfig(
        repetitions=int(data["repetitions"]),
        chords_per_batch=int(data["chords_per_batch"]),
        min_circle_radius_mm=float(data["min_circle_radius_mm"]),
        circle_radius_step_mm=float(data["circle_radius_step_mm"]),
        seed=None if seed is None else int(seed),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: MachineConfig) -> None:
    """Validate value ranges and cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    # -- Connection ---------------------------------------------------------
    c = cfg.connection
    if not c.port:
        raise ConfigError("connection.port must not be empty")
    if c.baudrate <= 0:
        raise ConfigError(f"baudrate must be > 0, got {c.baudrate}")
    if c.read_timeout_s <= 0:
        raise ConfigError(
            f"read_timeout_s must be > 0, got {c.read_timeout_s}"
        )
    if c.ack_timeout_s <= 0:
        raise ConfigError(f"ack_timeout_s must be > 0, got {c.ack_timeout_s}")
    if c.write_timeout_s is not None and c.write_timeout_s <= 0:
        raise ConfigError(
            f"write_timeout_s must be > 0 or null, got {c.write_timeout_s}"
        )
    if not c.ack_token:
        raise ConfigError("ack_token must not be empty")
    if c.read_size <= 0:
        raise ConfigError(f"read_size must be > 0, got {c.read_size}")
    if c.read_timeout_s > c.ack_timeout_s:
        logger.warning(
            "read_timeout_s (%.1f) exceeds ack_timeout_s (%.1f); a single "
            "read poll may overrun the acknowledgement deadline",
            c.read_timeout_s,
            c.ack_timeout_s,
        )

    # -- Patterns -----------------------------------------------------------
    p = cfg.patterns
    if not math.isfinite(p.z_level_mm):
        raise ConfigError(f"z_level_mm must be finite, got {p.z_level_mm}")
    if p.min_speed_mm_min <= 0:
        raise ConfigError(
            f"min_speed_mm_min must be > 0, got {p.min_speed_mm_min}"
        )
    if p.min_speed_mm_min >= p.max_speed_mm_min:
        raise ConfigError(
            f"min_speed_mm_min ({p.min_speed_mm_min}) must be below "
            f"max_speed_mm_min ({p.max_speed_mm_min})"
        )
    if not (p.max_radius_mm > 0 and math.isfinite(p.max_radius_mm)):
        raise ConfigError(f"max_radius_mm must be > 0, got {p.max_radius_mm}")
    if p.approach_feed_mm_min <= 0:
        raise ConfigError(
            f"approach_feed_mm_min must be > 0, got {p.approach_feed_mm_min}"
        )
    if not 0 < p.sweep_step_deg <= 180:
        raise ConfigError(
            f"sweep_step_deg must be in (0, 180], got {p.sweep_step_deg}"
        )
    if p.sweep_offset_deg < 0:
        raise ConfigError(
            f"sweep_offset_deg must be >= 0, got {p.sweep_offset_deg}"
        )

    # -- Startup ------------------------------------------------------------
    if cfg.startup.park_feed_mm_min <= 0:
        raise ConfigError(
            f"park_feed_mm_min must be > 0, got {cfg.startup.park_feed_mm_min}"
        )

    # -- Schedule -----------------------------------------------------------
    s = cfg.schedule
    if s.repetitions < 0:
        raise ConfigError(f"repetitions must be >= 0, got {s.repetitions}")
    if s.chords_per_batch < 0:
        raise ConfigError(
            f"chords_per_batch must be >= 0, got {s.chords_per_batch}"
        )
    if s.circle_radius_step_mm <= 0:
        raise ConfigError(
            f"circle_radius_step_mm must be > 0, got {s.circle_radius_step_mm}"
        )
    if not 0 < s.min_circle_radius_mm <= p.max_radius_mm:
        raise ConfigError(
            f"min_circle_radius_mm must be in (0, {p.max_radius_mm}], "
            f"got {s.min_circle_radius_mm}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> MachineConfig:
    """Load and validate machine configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``machine.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    MachineConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = _load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    try:
        config = MachineConfig(
            connection=_parse_connection(data["connection"]),
            patterns=_parse_patterns(data["patterns"]),
            startup=_parse_startup(data["startup"]),
            schedule=_parse_schedule(data["schedule"]),
        )
    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

    _validate_config(config)
    logger.info("Configuration loaded successfully")
    return config
