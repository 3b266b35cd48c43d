"""Abstract base class for backup backends.

This module defines the BackupBackend interface used by the cleanup
orchestrator, so tests and alternative storage can substitute their own
implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from cleanbin.core.cancellation import CancellationToken
from cleanbin.core.errors import CleanbinError
from cleanbin.models.backup import BackupRecord


class BackupError(CleanbinError):
    """Base exception for backup failures."""


class BackupNotFoundError(BackupError):
    """Raised when a backup directory or manifest no longer exists."""


class BackupManifestError(BackupError):
    """Raised when a backup manifest cannot be read or written."""


class BackupBackend(ABC):
    """Capability interface for creating, restoring and verifying backups.

    Example:
        >>> service = FilesystemBackupService()
        >>> record = service.create_backup([Path("/src/bin/app.dll")], Path("/backups"))
        >>> service.validate_backup(record)
        True
    """

    @abstractmethod
    def create_backup(
        self,
        files: Sequence[Path],
        backup_root: Path,
        token: CancellationToken | None = None,
        source_root: Path | None = None,
    ) -> BackupRecord:
        """Copy files into a new backup set.

        Args:
            files: Files to back up.
            backup_root: Directory holding backup sets.
            token: Optional cancellation token, checked per file.
            source_root: Root the stored relative paths are based on.

        Returns:
            BackupRecord for the new backup set.

        Raises:
            BackupError: If no files are given or the root is blank.
            OperationCancelledError: If cancellation was requested.
        """

    @abstractmethod
    def restore_backup(self, record: BackupRecord, target_path: Path) -> int:
        """Restore a backup set below ``target_path``.

        Returns:
            Number of restored files.

        Raises:
            BackupNotFoundError: If the backup directory is gone.
        """

    @abstractmethod
    def validate_backup(self, record: BackupRecord) -> bool:
        """Recompute hashes and compare them with the record."""

    @abstractmethod
    def delete_backup(self, record: BackupRecord) -> None:
        """Remove a backup set from storage."""

    @abstractmethod
    def cleanup_old_backups(self, backup_root: Path, max_age_days: int) -> int:
        """Delete backup sets older than ``max_age_days``.

        Returns:
            Number of deleted backup sets.
        """
