"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from cleanbin.core.theme import get_theme

if TYPE_CHECKING:
    from cleanbin.models.candidate import CandidateFile

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

_PRIORITY_STYLES = {1: "priority_high", 2: "priority_medium", 3: "priority_low"}


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int) -> str:
    """Format a byte count as a human-readable string.

    Args:
        size_bytes: Size in bytes.

    Returns:
        String like "0 B", "512 B", "1.5 KB" or "2.3 GB".
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in _SIZE_UNITS[1:]:
        size /= 1024
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{size:.1f} {unit}"
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def create_candidate_table(title: str = "Cleanup Preview") -> Table:
    """Create a pre-configured table for displaying candidate files.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for candidate display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("", width=2, justify="center")
    table.add_column("Path", style="text", overflow="fold")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Priority", justify="center")
    table.add_column("Warnings", style="warning")
    return table


def format_candidate_row(candidate: CandidateFile) -> tuple[str, str, str, str, str]:
    """Format a candidate as a table row with styling.

    Args:
        candidate: Classified candidate file.

    Returns:
        Tuple of (icon, path, size, priority, warnings) with Rich markup.
    """
    icon = "[safe]✓[/]" if candidate.safe_to_delete else "[unsafe]✗[/]"
    style = _PRIORITY_STYLES.get(candidate.priority, "muted")
    priority = f"[{style}]{candidate.priority}[/]"
    warnings = ", ".join(candidate.warnings) or "[muted]-[/]"
    return (icon, candidate.path, format_size(candidate.size), priority, warnings)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
