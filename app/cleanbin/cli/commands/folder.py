"""Folder listing, preview and cleanup commands.

Provides commands to list the subdirectories of a root, preview the
files a cleanup would delete, and run the cleanup itself.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cleanbin.core.errors import OperationCancelledError
from cleanbin.core.orchestrator import CleanupOrchestrator
from cleanbin.core.preview import PreviewService
from cleanbin.core.profile import require_profile
from cleanbin.core.progress import LoggingSink
from cleanbin.core.validator import PathValidationError, is_critical_system_path, validate_path
from cleanbin.models.candidate import CandidateFile
from cleanbin.models.profile import ConfigurationProfile
from cleanbin.models.report import CleanupReport
from cleanbin.utils.formatting import (
    console,
    create_candidate_table,
    format_candidate_row,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Preview and clean build artifacts below a directory.",
    no_args_is_help=True,
)

PathArgument = Annotated[Path, typer.Argument(help="Root directory.")]
ProfileOption = Annotated[
    Path | None,
    typer.Option("--profile", "-p", help="Profile TOML file (default: user profile)."),
]


@app.command()
def dirs(path: PathArgument) -> None:
    """List the subdirectories of PATH."""
    with CleanupOrchestrator() as orchestrator:
        result = orchestrator.get_directories(path)

    if result.failed:
        print_error(result.error or "Cannot list directories")
        raise typer.Exit(code=1)

    directories = result.value or []
    if not directories:
        print_info(f"No subdirectories in {path}")
        return
    for directory in directories:
        console.print(directory)


@app.command()
def preview(
    path: PathArgument,
    profile_path: ProfileOption = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Limit number of listed files."),
    ] = None,
) -> None:
    """Show every file a cleanup of PATH would delete."""
    profile = require_profile(profile_path)
    _require_cleanable(path)

    candidates = _load_preview(path.absolute(), profile)
    if not candidates:
        print_success("Nothing to clean.")
        return
    _print_preview(candidates, limit)


@app.command()
def clean(
    path: PathArgument,
    profile_path: ProfileOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    sequential: Annotated[
        bool,
        typer.Option("--sequential", help="Delete files one at a time."),
    ] = False,
    no_backup: Annotated[
        bool,
        typer.Option("--no-backup", help="Skip the backup even if the profile enables it."),
    ] = False,
    sweep: Annotated[
        bool,
        typer.Option("--sweep", help="Delete matching directories wholesale, without preview."),
    ] = False,
) -> None:
    """Delete build artifacts below PATH."""
    profile = _apply_overrides(require_profile(profile_path), sequential, no_backup)
    _require_cleanable(path)
    root = path.absolute()

    if not sweep and profile.show_preview:
        candidates = _load_preview(root, profile)
        if not candidates:
            print_success("Nothing to clean.")
            return
        _print_preview(candidates, limit=50)

    if not yes and profile.confirm_deletion:
        action = "sweep all matching directories" if sweep else "delete these files"
        if not typer.confirm(f"\nProceed to {action} in {root}?", default=False):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    with CleanupOrchestrator(profile=profile, sink=LoggingSink()) as orchestrator:
        result = orchestrator.sweep_folder(root) if sweep else orchestrator.clean_folder(root)

    if result.failed or result.value is None:
        print_error(result.error or "Cleanup failed")
        raise typer.Exit(code=1)

    _print_report(result.value)
    if result.value.has_errors:
        raise typer.Exit(code=1)


# === Private helper functions ===


def _require_cleanable(path: Path) -> None:
    """Exit unless PATH is an existing, non-critical directory."""
    try:
        validate_path(str(path))
    except PathValidationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    if is_critical_system_path(str(path)):
        print_error(f"Refusing to operate on critical system path: {path}")
        raise typer.Exit(code=1)


def _load_preview(root: Path, profile: ConfigurationProfile) -> list[CandidateFile]:
    """Collect preview candidates, exiting with an error if the scan fails."""
    try:
        return PreviewService().get_preview(root, profile)
    except OperationCancelledError as e:
        print_error("Preview cancelled.")
        raise typer.Exit(code=1) from e
    except OSError as e:
        print_error(f"Cannot scan {root}: {e}")
        raise typer.Exit(code=1) from e


def _apply_overrides(
    profile: ConfigurationProfile, sequential: bool, no_backup: bool
) -> ConfigurationProfile:
    """Return a copy of the profile with command-line overrides applied."""
    updates: dict[str, bool] = {}
    if sequential:
        updates["enable_parallel_processing"] = False
    if no_backup:
        updates["create_backups"] = False
    return profile.model_copy(update=updates) if updates else profile


def _print_preview(candidates: list[CandidateFile], limit: int | None) -> None:
    """Display candidates as a table followed by a summary."""
    shown = candidates[:limit] if limit else candidates
    table = create_candidate_table()
    for candidate in shown:
        table.add_row(*format_candidate_row(candidate))
    console.print(table)

    stats = PreviewService.get_statistics(candidates)
    console.print(
        f"\n[muted]{stats.total_files} files ({stats.formatted_size}), "
        f"{stats.safe_files} safe to delete ({stats.safe_percentage:.0f}%)[/]"
    )
    if limit and len(shown) < len(candidates):
        console.print(f"[muted](showing {len(shown)} of {len(candidates)})[/]")


def _print_report(report: CleanupReport) -> None:
    """Display the outcome of a cleanup run."""
    stats = report.statistics
    table = Table(title="Cleanup Report", show_header=False, border_style="border")
    table.add_column("Metric", style="bold_header")
    table.add_column("Value", justify="right")
    table.add_row("Folders processed", str(stats.processed_folders))
    table.add_row("Folders deleted", str(stats.deleted_folders))
    table.add_row("Folders skipped", str(stats.skipped_folders))
    table.add_row("Files deleted", str(stats.deleted_files))
    table.add_row("Files skipped", str(stats.skipped_files))
    table.add_row("Errors", str(stats.errors))
    table.add_row("Elapsed", f"{stats.elapsed_ms} ms")
    console.print(table)

    if report.backup is not None:
        print_info(
            f"Backup {report.backup.id}: {report.backup.file_count} files "
            f"({format_size(report.backup.size)})"
        )
    for warning in report.warnings:
        print_warning(warning)
    for path in report.failed_files:
        print_error(f"Failed to delete {path}")

    if report.has_errors:
        print_warning(f"Cleanup finished with {stats.errors} error(s).")
    else:
        print_success("Cleanup finished.")
