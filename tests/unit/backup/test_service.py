"""Unit tests for the filesystem backup service."""

import json
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cleanbin.backup import (
    BackupError,
    BackupManifestError,
    BackupNotFoundError,
    FilesystemBackupService,
)
from cleanbin.backup.manifest import MANIFEST_FILENAME, load_manifest, save_manifest
from cleanbin.backup.service import hash_file
from cleanbin.core.cancellation import CancellationToken
from cleanbin.core.errors import OperationCancelledError
from cleanbin.models.backup import compute_checksum

CREATED = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class FixedClock:
    """Clock returning a settable time."""

    def __init__(self, now: datetime = CREATED) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _write_naive_backup(backups: Path) -> Path:
    """Create a backup directory whose manifest has an offset-less timestamp."""
    backup_dir = backups / "backup_naive_20200101_000000"
    backup_dir.mkdir(parents=True)
    manifest = {
        "id": "naive",
        "backup_path": str(backup_dir),
        "created_at": "2020-01-01T00:00:00",
        "files": [],
    }
    (backup_dir / MANIFEST_FILENAME).write_text(json.dumps(manifest))
    return backup_dir


@pytest.fixture
def source(tmp_path: Path) -> Path:
    """Source tree with nested build output."""
    root = tmp_path / "project"
    (root / "bin" / "Debug").mkdir(parents=True)
    (root / "bin" / "app.dll").write_bytes(b"dll-bytes")
    (root / "bin" / "Debug" / "app.pdb").write_bytes(b"pdb-bytes")
    return root


@pytest.fixture
def files(source: Path) -> list[Path]:
    """Files to back up."""
    return [source / "bin" / "app.dll", source / "bin" / "Debug" / "app.pdb"]


class TestHashFile:
    """Tests for hash_file."""

    def test_known_digest(self, tmp_path: Path) -> None:
        """The digest is upper-case SHA-256 of the bytes."""
        path = tmp_path / "abc.txt"
        path.write_bytes(b"abc")

        assert hash_file(path) == (
            "BA7816BF8F01CFEA414140DE5DAE2223B00361A396177A9CB410FF61F20015AD"
        )


class TestCreateBackup:
    """Tests for create_backup."""

    def test_layout_and_record(self, tmp_path: Path, source: Path, files: list[Path]) -> None:
        """Files are copied below files/ with a manifest next to them."""
        service = FilesystemBackupService(clock=FixedClock())

        record = service.create_backup(files, tmp_path / "backups", source_root=source)

        backup_dir = Path(record.backup_path)
        assert backup_dir.name == f"backup_{record.id}_20240601_120000"
        assert len(record.id) == 8
        assert (backup_dir / MANIFEST_FILENAME).exists()
        assert (backup_dir / "files" / "bin" / "app.dll").read_bytes() == b"dll-bytes"
        assert (backup_dir / "files" / "bin" / "Debug" / "app.pdb").read_bytes() == b"pdb-bytes"
        assert record.file_count == 2
        assert record.size == len(b"dll-bytes") + len(b"pdb-bytes")
        assert record.source_path == str(source)
        assert record.checksum == compute_checksum(record.files)
        assert load_manifest(backup_dir) == record

    def test_default_source_root(self, tmp_path: Path, files: list[Path]) -> None:
        """Without a source root, paths are relative to the common parent."""
        record = FilesystemBackupService().create_backup(files, tmp_path / "backups")

        assert (Path(record.backup_path) / "files" / "app.dll").exists()
        assert (Path(record.backup_path) / "files" / "Debug" / "app.pdb").exists()

    def test_no_files(self, tmp_path: Path) -> None:
        """An empty file list is rejected."""
        with pytest.raises(BackupError, match="No files"):
            FilesystemBackupService().create_backup([], tmp_path / "backups")

    def test_all_copies_fail(self, tmp_path: Path) -> None:
        """If nothing could be copied, no backup directory remains."""
        backups = tmp_path / "backups"

        with pytest.raises(BackupError, match="No files could be backed up"):
            FilesystemBackupService().create_backup([tmp_path / "missing.dll"], backups)

        assert list(backups.iterdir()) == []

    def test_missing_file_is_left_out(self, tmp_path: Path, files: list[Path]) -> None:
        """Files that cannot be copied are omitted from the record."""
        record = FilesystemBackupService().create_backup(
            [*files, files[0].parent / "gone.dll"], tmp_path / "backups"
        )

        assert record.file_count == 2

    def test_cancelled_removes_partial_backup(
        self, tmp_path: Path, files: list[Path]
    ) -> None:
        """Cancellation removes the partial backup directory."""
        token = CancellationToken()
        token.cancel()
        backups = tmp_path / "backups"

        with pytest.raises(OperationCancelledError):
            FilesystemBackupService().create_backup(files, backups, token)

        assert list(backups.iterdir()) == []


class TestValidateBackup:
    """Tests for validate_backup."""

    def test_intact(self, tmp_path: Path, files: list[Path]) -> None:
        """A fresh backup validates."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")

        assert service.validate_backup(record) is True

    def test_tampered_file(self, tmp_path: Path, files: list[Path]) -> None:
        """Changing a stored file fails validation."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")
        Path(record.files[0].stored_path).write_bytes(b"dll-bytez")

        assert service.validate_backup(record) is False

    def test_missing_stored_file(self, tmp_path: Path, files: list[Path]) -> None:
        """A deleted stored file fails validation."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")
        os.remove(record.files[1].stored_path)

        assert service.validate_backup(record) is False

    def test_tampered_manifest(self, tmp_path: Path, files: list[Path]) -> None:
        """A manifest whose checksum differs from the record fails validation."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")
        manifest = Path(record.backup_path) / MANIFEST_FILENAME
        data = json.loads(manifest.read_text())
        data["checksum"] = "0" * 64
        manifest.write_text(json.dumps(data))

        assert service.validate_backup(record) is False

    def test_missing_directory(self, tmp_path: Path, files: list[Path]) -> None:
        """A removed backup directory fails validation."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")
        service.delete_backup(record)

        assert service.validate_backup(record) is False


class TestRestoreBackup:
    """Tests for restore_backup."""

    def test_restores_content_and_mtime(
        self, tmp_path: Path, source: Path, files: list[Path]
    ) -> None:
        """Restored files match the originals, including modification time."""
        mtime = (CREATED - timedelta(days=3)).timestamp()
        os.utime(files[0], (mtime, mtime))
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups", source_root=source)

        target = tmp_path / "restored"
        restored = service.restore_backup(record, target)

        assert restored == 2
        assert (target / "bin" / "app.dll").read_bytes() == b"dll-bytes"
        assert (target / "bin" / "Debug" / "app.pdb").read_bytes() == b"pdb-bytes"
        assert (target / "bin" / "app.dll").stat().st_mtime == pytest.approx(mtime, abs=1)

    def test_missing_backup(self, tmp_path: Path, files: list[Path]) -> None:
        """Restoring a deleted backup raises BackupNotFoundError."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")
        service.delete_backup(record)

        with pytest.raises(BackupNotFoundError):
            service.restore_backup(record, tmp_path / "restored")


class TestListAndFind:
    """Tests for list_backups and find_backup."""

    def test_newest_first(self, tmp_path: Path, files: list[Path]) -> None:
        """Backups are listed newest first."""
        clock = FixedClock()
        service = FilesystemBackupService(clock=clock)
        backups = tmp_path / "backups"
        older = service.create_backup(files, backups)
        clock.now = CREATED + timedelta(hours=1)
        newer = service.create_backup(files, backups)

        assert [r.id for r in service.list_backups(backups)] == [newer.id, older.id]

    def test_missing_root(self, tmp_path: Path) -> None:
        """A missing root lists nothing."""
        assert FilesystemBackupService().list_backups(tmp_path / "none") == []

    def test_skips_unreadable_manifest(self, tmp_path: Path, files: list[Path]) -> None:
        """Malformed manifests are skipped."""
        service = FilesystemBackupService()
        backups = tmp_path / "backups"
        record = service.create_backup(files, backups)
        broken = backups / "backup_broken"
        broken.mkdir()
        (broken / MANIFEST_FILENAME).write_text("{not json")

        assert [r.id for r in service.list_backups(backups)] == [record.id]

    def test_skips_naive_timestamp(self, tmp_path: Path, files: list[Path]) -> None:
        """A manifest without a UTC offset is skipped instead of breaking the sort."""
        service = FilesystemBackupService()
        backups = tmp_path / "backups"
        record = service.create_backup(files, backups)
        _write_naive_backup(backups)

        assert [r.id for r in service.list_backups(backups)] == [record.id]

    def test_find_by_prefix(self, tmp_path: Path, files: list[Path]) -> None:
        """A unique ID prefix finds the backup."""
        service = FilesystemBackupService()
        record = service.create_backup(files, tmp_path / "backups")

        assert service.find_backup(tmp_path / "backups", record.id[:4]) == record

    def test_find_unknown(self, tmp_path: Path) -> None:
        """Unknown IDs raise BackupNotFoundError."""
        with pytest.raises(BackupNotFoundError):
            FilesystemBackupService().find_backup(tmp_path, "deadbeef")


class TestCleanupOldBackups:
    """Tests for cleanup_old_backups."""

    def test_removes_only_expired(self, tmp_path: Path, files: list[Path]) -> None:
        """Backups older than the retention period are deleted."""
        clock = FixedClock(CREATED - timedelta(days=10))
        service = FilesystemBackupService(clock=clock)
        backups = tmp_path / "backups"
        old = service.create_backup(files, backups)
        clock.now = CREATED - timedelta(days=1)
        recent = service.create_backup(files, backups)
        clock.now = CREATED

        removed = service.cleanup_old_backups(backups, 7)

        assert removed == 1
        assert not Path(old.backup_path).exists()
        assert Path(recent.backup_path).exists()

    def test_skips_malformed(self, tmp_path: Path) -> None:
        """Directories without a valid manifest are left alone."""
        backups = tmp_path / "backups"
        (backups / "random").mkdir(parents=True)

        assert FilesystemBackupService().cleanup_old_backups(backups, 0) == 0
        assert (backups / "random").exists()

    def test_skips_naive_timestamp(self, tmp_path: Path, files: list[Path]) -> None:
        """A manifest without a UTC offset is left alone and does not stop the sweep."""
        clock = FixedClock(CREATED - timedelta(days=10))
        service = FilesystemBackupService(clock=clock)
        backups = tmp_path / "backups"
        old = service.create_backup(files, backups)
        naive = _write_naive_backup(backups)
        clock.now = CREATED

        removed = service.cleanup_old_backups(backups, 7)

        assert removed == 1
        assert not Path(old.backup_path).exists()
        assert naive.exists()


class TestManifest:
    """Tests for manifest I/O."""

    def test_missing_manifest(self, tmp_path: Path) -> None:
        """A missing manifest raises BackupNotFoundError."""
        with pytest.raises(BackupNotFoundError):
            load_manifest(tmp_path)

    def test_non_object_manifest(self, tmp_path: Path) -> None:
        """A manifest that is not a JSON object is rejected."""
        (tmp_path / MANIFEST_FILENAME).write_text("[]")

        with pytest.raises(BackupManifestError):
            load_manifest(tmp_path)

    def test_incomplete_manifest(self, tmp_path: Path) -> None:
        """A manifest missing required keys is rejected."""
        (tmp_path / MANIFEST_FILENAME).write_text('{"id": "x"}')

        with pytest.raises(BackupManifestError):
            load_manifest(tmp_path)

    def test_naive_timestamp_manifest(self, tmp_path: Path) -> None:
        """A timestamp without a UTC offset is a malformed manifest."""
        backup_dir = _write_naive_backup(tmp_path)

        with pytest.raises(BackupManifestError, match="timezone-aware"):
            load_manifest(backup_dir)

    def test_write_is_atomic(self, tmp_path: Path, files: list[Path]) -> None:
        """Saving a manifest leaves no temporary files."""
        record = FilesystemBackupService().create_backup(files, tmp_path / "backups")
        backup_dir = Path(record.backup_path)

        save_manifest(record, backup_dir)

        assert sorted(p.name for p in backup_dir.iterdir()) == ["backup_metadata.json", "files"]
