"""Backup management commands.

Provides commands to list, verify, restore and prune the backup sets
created before cleanups.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cleanbin.backup import BackupError, BackupNotFoundError, FilesystemBackupService
from cleanbin.core.paths import get_backup_dir
from cleanbin.core.profile import require_profile
from cleanbin.models.backup import BackupRecord
from cleanbin.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Manage backups created before cleanups.",
    no_args_is_help=True,
)

RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Backup root (default: profile backup_path)."),
]


def _backup_root(root: Path | None) -> Path:
    """Resolve the backup root from the option, the profile or the XDG default."""
    if root is not None:
        return root
    profile = require_profile()
    return Path(profile.backup_path).expanduser() if profile.backup_path else get_backup_dir()


def _find(service: FilesystemBackupService, root: Path, backup_id: str) -> BackupRecord:
    try:
        return service.find_backup(root, backup_id)
    except BackupNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.command("list")
def list_backups(root: RootOption = None) -> None:
    """List backups, newest first."""
    backup_root = _backup_root(root)
    records = FilesystemBackupService().list_backups(backup_root)
    if not records:
        print_info(f"No backups found in {backup_root}")
        return

    table = Table(title="Backups", show_lines=False, border_style="border")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Created", style="muted", no_wrap=True)
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right", style="info")
    table.add_column("Source", style="text", overflow="fold")
    for record in records:
        table.add_row(
            record.id,
            record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(record.file_count),
            format_size(record.size),
            record.source_path,
        )
    console.print(table)


@app.command()
def verify(
    backup_id: Annotated[str, typer.Argument(help="Backup ID or unique prefix.")],
    root: RootOption = None,
) -> None:
    """Verify the integrity of a backup."""
    service = FilesystemBackupService()
    record = _find(service, _backup_root(root), backup_id)
    if service.validate_backup(record):
        print_success(f"Backup {record.id} is intact ({record.file_count} files).")
        return
    print_error(f"Backup {record.id} failed verification.")
    raise typer.Exit(code=1)


@app.command()
def restore(
    backup_id: Annotated[str, typer.Argument(help="Backup ID or unique prefix.")],
    target: Annotated[Path, typer.Argument(help="Directory to restore into.")],
    root: RootOption = None,
) -> None:
    """Restore a backup into TARGET."""
    service = FilesystemBackupService()
    record = _find(service, _backup_root(root), backup_id)
    try:
        restored = service.restore_backup(record, target)
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if restored < record.file_count:
        print_warning(f"Restored {restored} of {record.file_count} files to {target}")
        raise typer.Exit(code=1)
    print_success(f"Restored {restored} files to {target}")


@app.command()
def prune(
    days: Annotated[int, typer.Option("--days", "-d", min=0, help="Delete backups older than this.")],
    root: RootOption = None,
) -> None:
    """Delete backups older than the given number of days."""
    removed = FilesystemBackupService().cleanup_old_backups(_backup_root(root), days)
    if removed:
        print_success(f"Removed {removed} backup(s).")
    else:
        print_info("No backups to remove.")
