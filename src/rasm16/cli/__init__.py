"""
rasm16 Command-Line Interface
=============================

This package provides the command-line tool for the rasm16 assembler:

- **rasm16**: RELIC-16 assembler

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["rasm"]
