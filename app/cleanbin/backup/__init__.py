"""Backup subsystem for cleanbin.

Provides content-addressed backup sets with restore and integrity
verification, stored as directories with a JSON manifest.
"""

from cleanbin.backup.base import (
    BackupBackend,
    BackupError,
    BackupManifestError,
    BackupNotFoundError,
)
from cleanbin.backup.manifest import MANIFEST_FILENAME, load_manifest, save_manifest
from cleanbin.backup.service import FilesystemBackupService, hash_file

__all__ = [
    "MANIFEST_FILENAME",
    "BackupBackend",
    "BackupError",
    "BackupManifestError",
    "BackupNotFoundError",
    "FilesystemBackupService",
    "hash_file",
    "load_manifest",
    "save_manifest",
]
