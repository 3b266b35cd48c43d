"""CLI package for cleanbin.

This package contains the Typer application and all subcommands.
"""

from cleanbin.cli.main import app

__all__ = ["app"]
