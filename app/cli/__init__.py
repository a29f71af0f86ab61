"""CLI module for Page Relay.

This package provides the ``relay`` command line: page rendering,
screenshots, login attempts and the HTTP API server.
"""

from .main import ExitCode, app, cli_main

__all__ = [
    "ExitCode",
    "app",
    "cli_main",
]
