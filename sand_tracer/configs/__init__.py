"""Machine configuration loading and validation."""

from sand_tracer.configs.loader import (
    ConfigError,
    ConnectionConfig,
    MachineConfig,
    PatternConfig,
    ScheduleConfig,
    StartupConfig,
    load_config,
)

__all__ = [
    "ConfigError",
    "ConnectionConfig",
    "MachineConfig",
    "PatternConfig",
    "ScheduleConfig",
    "StartupConfig",
    "load_config",
]
