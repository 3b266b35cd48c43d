"""CLI commands for cleanbin.

This package contains all subcommand implementations.
"""

from cleanbin.cli.commands import backup, folder, profile

__all__ = ["backup", "folder", "profile"]
