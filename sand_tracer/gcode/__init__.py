"""
G-code generation module.

Encodes Job IR operations as single-line G-code commands.
"""

from sand_tracer.gcode.generator import GCodeError, GCodeGenerator

__all__ = ["GCodeError", "GCodeGenerator"]
