"""Backup manifest file I/O.

Each backup directory carries a ``backup_metadata.json`` sidecar holding
the serialized BackupRecord. Writes are atomic: the JSON document is
written to a temporary file in the same directory and moved into place
with os.replace().
"""

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from cleanbin.backup.base import BackupManifestError, BackupNotFoundError
from cleanbin.models.backup import BackupRecord

MANIFEST_FILENAME = "backup_metadata.json"


def manifest_path(backup_dir: Path) -> Path:
    """Return the manifest location for a backup directory."""
    return backup_dir / MANIFEST_FILENAME


def save_manifest(record: BackupRecord, backup_dir: Path) -> Path:
    """Write a backup manifest atomically.

    Args:
        record: Record to persist.
        backup_dir: Backup directory receiving the manifest.

    Returns:
        Path where the manifest was saved.

    Raises:
        BackupManifestError: If the file cannot be written.
    """
    path = manifest_path(backup_dir)
    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=backup_dir,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(record.to_dict(), f, indent=2)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        msg = f"Failed to write backup manifest {path}: {e}"
        raise BackupManifestError(msg) from e
    return path


def load_manifest(backup_dir: Path) -> BackupRecord:
    """Read and validate a backup manifest.

    Args:
        backup_dir: Backup directory containing the manifest.

    Returns:
        Deserialized BackupRecord.

    Raises:
        BackupNotFoundError: If the manifest does not exist.
        BackupManifestError: If the manifest is unreadable or malformed.
    """
    path = manifest_path(backup_dir)
    if not path.exists():
        msg = f"Backup manifest not found: {path}"
        raise BackupNotFoundError(msg)

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Invalid backup manifest {path}: {e}"
        raise BackupManifestError(msg) from e
    except OSError as e:
        msg = f"Failed to read backup manifest {path}: {e}"
        raise BackupManifestError(msg) from e

    if not isinstance(data, dict):
        msg = f"Invalid backup manifest {path}: expected a JSON object"
        raise BackupManifestError(msg)

    try:
        return BackupRecord.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        msg = f"Invalid backup manifest {path}: {e}"
        raise BackupManifestError(msg) from e
