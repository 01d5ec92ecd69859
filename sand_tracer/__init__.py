"""
Sand Tracer Package.

Streams procedurally generated sand patterns to a G-code motion controller
over a serial link, pacing every command on the device's ``ok``
acknowledgement.

Subpackages:
    hardware: Serial transport, shutdown sequence, session executor
    job_ir: Intermediate representation for moves and setup commands
    patterns: Circle / chord / radial-sweep generators and run schedule
    gcode: G-code encoding from Job IR
    configs: Machine configuration loading and validation
"""

__all__ = ["hardware", "job_ir", "patterns", "gcode", "configs"]

__version__ = "0.1.0"
