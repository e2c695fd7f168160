"""
scoopi package initializer.
Defines package version and exposes the CLI entry point.
"""
__version__ = "0.1.0"

from scoopi.cli import cli as main_cli  # noqa: E402

__all__ = ["__version__", "main_cli"]
