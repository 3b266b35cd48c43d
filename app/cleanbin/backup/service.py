"""Filesystem backup service.

Creates content-addressed backup sets before deletion: each file is
copied under its path relative to a source root, the SHA-256 of the
copied bytes is recorded, and an aggregate checksum over all entries is
stored in the backup manifest. Verification recomputes every hash from
the stored bytes instead of trusting file metadata.

Layout of a backup set::

    <backup_root>/backup_<id>_<YYYYmmdd_HHMMSS>/
        backup_metadata.json
        files/<relative path of each file>
"""

import hashlib
import logging
import os
import shutil
import stat
import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

from cleanbin.backup.base import BackupBackend, BackupError, BackupNotFoundError
from cleanbin.backup.manifest import load_manifest, manifest_path, save_manifest
from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.errors import OperationCancelledError
from cleanbin.models.backup import BackupFileEntry, BackupRecord, compute_checksum
from cleanbin.models.candidate import FileAttributes

logger = logging.getLogger(__name__)

FILES_DIRNAME = "files"
_CHUNK_SIZE = 1024 * 1024


def hash_file(path: Path) -> str:
    """Compute the upper-case SHA-256 hex digest of a file's bytes.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest().upper()


def _common_root(files: Sequence[Path]) -> Path:
    parents = [str(path.parent) for path in files]
    return Path(os.path.commonpath(parents))


def _relative_to(path: Path, root: Path) -> Path:
    """Return ``path`` relative to ``root``, or its anchor-stripped form."""
    try:
        return path.relative_to(root)
    except ValueError:
        return Path(*path.parts[1:]) if path.is_absolute() else path


class FilesystemBackupService(BackupBackend):
    """Backup backend storing backup sets as plain directories.

    Args:
        clock: Returns the current time; used for backup naming and
            retention cutoffs.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))

    def create_backup(
        self,
        files: Sequence[Path],
        backup_root: Path,
        token: CancellationToken | None = None,
        source_root: Path | None = None,
    ) -> BackupRecord:
        """Copy files into a new backup set.

        Per-file copy failures are logged and the file is left out of the
        manifest. If no file could be copied at all, the partial backup
        directory is removed and BackupError is raised.

        Args:
            files: Files to back up.
            backup_root: Directory holding backup sets.
            token: Optional cancellation token, checked per file.
            source_root: Root for stored relative paths. Defaults to the
                common parent directory of ``files``.

        Returns:
            BackupRecord for the new backup set.

        Raises:
            BackupError: If no files are given, the root is blank or the
                backup directory cannot be created.
            OperationCancelledError: If cancellation was requested.
        """
        if not files:
            msg = "No files to back up"
            raise BackupError(msg)
        if not str(backup_root).strip():
            msg = "Backup root cannot be empty"
            raise BackupError(msg)

        sources = [Path(path).absolute() for path in files]
        root = Path(source_root).absolute() if source_root else _common_root(sources)
        created_at = self._clock()
        backup_id = uuid.uuid4().hex[:8]
        backup_dir = Path(backup_root).absolute() / (
            f"backup_{backup_id}_{created_at.strftime('%Y%m%d_%H%M%S')}"
        )
        files_dir = backup_dir / FILES_DIRNAME

        try:
            files_dir.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            msg = f"Cannot create backup directory {backup_dir}: {e}"
            raise BackupError(msg) from e

        entries: list[BackupFileEntry] = []
        try:
            for source in sources:
                check_cancelled(token)
                entry = self._copy_file(source, root, files_dir)
                if entry is not None:
                    entries.append(entry)
        except OperationCancelledError:
            logger.info("Backup %s cancelled, removing partial copy", backup_id)
            shutil.rmtree(backup_dir, ignore_errors=True)
            raise

        if not entries:
            shutil.rmtree(backup_dir, ignore_errors=True)
            msg = "No files could be backed up"
            raise BackupError(msg)

        record = BackupRecord(
            id=backup_id,
            backup_path=str(backup_dir),
            created_at=created_at,
            size=sum(entry.size for entry in entries),
            file_count=len(entries),
            description=f"Backup of {len(entries)} files from {root}",
            source_path=str(root),
            files=tuple(entries),
            checksum=compute_checksum(entries),
        )
        save_manifest(record, backup_dir)
        logger.info("Created backup %s with %d files at %s", backup_id, len(entries), backup_dir)
        return record

    def _copy_file(self, source: Path, root: Path, files_dir: Path) -> BackupFileEntry | None:
        """Copy one file into the backup set.

        Returns:
            BackupFileEntry, or None if the copy failed.
        """
        dest = files_dir / _relative_to(source, root)
        try:
            st = source.stat()
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
            file_hash = hash_file(dest)
        except OSError as e:
            logger.warning("Backup failed for %s: %s", source, e)
            return None

        return BackupFileEntry(
            original_path=str(source),
            stored_path=str(dest),
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            file_hash=file_hash,
            attributes=tuple(FileAttributes.from_stat(source.name, st).names()),
            mode=stat.S_IMODE(st.st_mode),
        )

    def restore_backup(self, record: BackupRecord, target_path: Path) -> int:
        """Restore a backup set below ``target_path``.

        Each file is re-created at its stored relative path with its
        recorded modification time and permission bits. Per-file failures
        are logged and skipped.

        Args:
            record: Backup to restore.
            target_path: Directory receiving the restored files.

        Returns:
            Number of restored files.

        Raises:
            BackupNotFoundError: If the backup directory no longer exists.
        """
        backup_dir = Path(record.backup_path)
        if not backup_dir.is_dir():
            msg = f"Backup directory not found: {backup_dir}"
            raise BackupNotFoundError(msg)

        files_dir = backup_dir / FILES_DIRNAME
        restored = 0
        for entry in record.files:
            try:
                relative = Path(entry.stored_path).relative_to(files_dir)
                dest = Path(target_path) / relative
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(entry.stored_path, dest)
                os.chmod(dest, entry.mode)
                mtime = entry.modified.timestamp()
                os.utime(dest, (mtime, mtime))
            except (OSError, ValueError) as e:
                logger.warning("Restore failed for %s: %s", entry.original_path, e)
                continue
            restored += 1

        logger.info("Restored %d of %d files from backup %s", restored, len(record.files), record.id)
        return restored

    def validate_backup(self, record: BackupRecord) -> bool:
        """Verify a backup set against its record.

        The backup is valid only if its directory and manifest exist, the
        manifest checksum matches the record, every stored file exists
        with the recorded size and hash, and the aggregate checksum
        recomputed over the entries matches.

        Args:
            record: Backup to verify.

        Returns:
            True if every check passes.
        """
        backup_dir = Path(record.backup_path)
        if not backup_dir.is_dir():
            logger.warning("Backup directory missing: %s", backup_dir)
            return False

        try:
            stored = load_manifest(backup_dir)
        except BackupError as e:
            logger.warning("Backup manifest unusable for %s: %s", record.id, e)
            return False
        if stored.checksum != record.checksum:
            logger.warning("Manifest checksum mismatch for backup %s", record.id)
            return False

        for entry in record.files:
            path = Path(entry.stored_path)
            try:
                if path.stat().st_size != entry.size or hash_file(path) != entry.file_hash:
                    logger.warning("Content mismatch for %s in backup %s", path, record.id)
                    return False
            except OSError as e:
                logger.warning("Cannot verify %s in backup %s: %s", path, record.id, e)
                return False

        if compute_checksum(record.files) != record.checksum:
            logger.warning("Aggregate checksum mismatch for backup %s", record.id)
            return False
        return True

    def delete_backup(self, record: BackupRecord) -> None:
        """Remove a backup set's directory tree.

        Raises:
            BackupError: If the directory exists but cannot be removed.
        """
        backup_dir = Path(record.backup_path)
        if not backup_dir.exists():
            logger.debug("Backup %s already removed", record.id)
            return
        try:
            shutil.rmtree(backup_dir)
        except OSError as e:
            msg = f"Failed to delete backup {record.id}: {e}"
            raise BackupError(msg) from e
        logger.info("Deleted backup %s", record.id)

    def load_backup(self, backup_dir: Path) -> BackupRecord:
        """Read the record of one backup set.

        Raises:
            BackupNotFoundError: If the manifest does not exist.
            BackupManifestError: If the manifest is malformed.
        """
        return load_manifest(Path(backup_dir))

    def list_backups(self, backup_root: Path) -> list[BackupRecord]:
        """List every readable backup set below ``backup_root``, newest first."""
        root = Path(backup_root)
        if not root.is_dir():
            return []

        records: list[BackupRecord] = []
        for child in sorted(root.iterdir()):
            if not child.is_dir() or not manifest_path(child).exists():
                continue
            try:
                records.append(load_manifest(child))
            except BackupError as e:
                logger.warning("Skipping unreadable backup %s: %s", child, e)
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def find_backup(self, backup_root: Path, backup_id: str) -> BackupRecord:
        """Find a backup set by its identifier or an identifier prefix.

        Raises:
            BackupNotFoundError: If no backup matches, or the prefix is ambiguous.
        """
        matches = [r for r in self.list_backups(backup_root) if r.id.startswith(backup_id)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            msg = f"Backup not found: {backup_id}"
        else:
            msg = f"Backup ID '{backup_id}' is ambiguous ({len(matches)} matches)"
        raise BackupNotFoundError(msg)

    def cleanup_old_backups(self, backup_root: Path, max_age_days: int) -> int:
        """Delete backup sets created more than ``max_age_days`` ago.

        Malformed or unreadable manifests are skipped.

        Args:
            backup_root: Directory holding backup sets.
            max_age_days: Retention period in days.

        Returns:
            Number of deleted backup sets.
        """
        root = Path(backup_root)
        if not root.is_dir():
            return 0

        cutoff = self._clock() - timedelta(days=max_age_days)
        removed = 0
        for child in sorted(root.iterdir()):
            if not child.is_dir():
                continue
            try:
                record = load_manifest(child)
            except BackupError as e:
                logger.warning("Skipping backup %s during cleanup: %s", child, e)
                continue
            if record.created_at >= cutoff:
                continue
            try:
                shutil.rmtree(child)
            except OSError as e:
                logger.warning("Failed to remove old backup %s: %s", child, e)
                continue
            removed += 1
            logger.info("Removed backup %s older than %d days", record.id, max_age_days)
        return removed
