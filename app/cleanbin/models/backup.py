"""Backup record models.

This module defines the data structures persisted in a backup manifest:
one BackupFileEntry per copied file and a BackupRecord describing the
whole backup set, including its aggregate checksum.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _parse_timestamp(value: str, field_name: str) -> datetime:
    """Parse an ISO timestamp that must carry a UTC offset."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        msg = f"{field_name} must be timezone-aware, got '{value}'"
        raise ValueError(msg)
    return parsed


def compute_checksum(files: Iterable[BackupFileEntry]) -> str:
    """Compute the aggregate checksum of a backup's file entries.

    The checksum is SHA-256 over ``original_path:file_hash:size`` tuples
    joined with ``|`` in entry order, so reordering entries changes it.

    Args:
        files: File entries in manifest order.

    Returns:
        Upper-case hex digest.
    """
    combined = "|".join(f"{f.original_path}:{f.file_hash}:{f.size}" for f in files)
    return hashlib.sha256(combined.encode("utf-8")).hexdigest().upper()


@dataclass(frozen=True, slots=True)
class BackupFileEntry:
    """Single file stored in a backup.

    Attributes:
        original_path: Absolute path the file was copied from.
        stored_path: Absolute path of the copy inside the backup directory.
        size: Size in bytes.
        modified: Original modification time (timezone-aware).
        file_hash: Upper-case SHA-256 hex digest of the copied bytes.
        attributes: Attribute flag names recorded at backup time.
        mode: Permission bits of the original file.
    """

    original_path: str
    stored_path: str
    size: int
    modified: datetime
    file_hash: str
    attributes: tuple[str, ...] = ()
    mode: int = 0o644

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.original_path:
            msg = "Original path cannot be empty"
            raise ValueError(msg)
        if not self.stored_path:
            msg = "Stored path cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "original_path": self.original_path,
            "stored_path": self.stored_path,
            "size": self.size,
            "modified": self.modified.isoformat(),
            "file_hash": self.file_hash,
            "attributes": list(self.attributes),
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BackupFileEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a timestamp is malformed.
        """
        return cls(
            original_path=data["original_path"],
            stored_path=data["stored_path"],
            size=int(data["size"]),
            modified=_parse_timestamp(data["modified"], "modified"),
            file_hash=data["file_hash"],
            attributes=tuple(data.get("attributes", ())),
            mode=int(data.get("mode", 0o644)),
        )


@dataclass(frozen=True, slots=True)
class BackupRecord:
    """Complete description of one backup set.

    Created once all copies are done and persisted as
    ``backup_metadata.json`` inside ``backup_path``.

    Attributes:
        id: Short unique identifier (8 hex characters).
        backup_path: Absolute path of the backup directory.
        created_at: Creation time (UTC).
        size: Total size of the stored files in bytes.
        file_count: Number of stored files.
        description: Human-readable summary.
        source_path: Root the stored relative paths are based on.
        files: Stored file entries in copy order.
        checksum: Aggregate checksum over ``files``.
    """

    id: str
    backup_path: str
    created_at: datetime
    size: int
    file_count: int
    description: str
    source_path: str
    files: tuple[BackupFileEntry, ...] = field(default_factory=tuple)
    checksum: str = ""

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Backup ID cannot be empty"
            raise ValueError(msg)
        if not self.backup_path:
            msg = "Backup path cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "backup_path": self.backup_path,
            "created_at": self.created_at.isoformat(),
            "size": self.size,
            "file_count": self.file_count,
            "description": self.description,
            "source_path": self.source_path,
            "files": [entry.to_dict() for entry in self.files],
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BackupRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If field data is invalid or a timestamp is naive.
        """
        files = tuple(BackupFileEntry.from_dict(item) for item in data.get("files", []))
        return cls(
            id=data["id"],
            backup_path=data["backup_path"],
            created_at=_parse_timestamp(data["created_at"], "created_at"),
            size=int(data.get("size", 0)),
            file_count=int(data.get("file_count", len(files))),
            description=data.get("description", ""),
            source_path=data.get("source_path", ""),
            files=files,
            checksum=data.get("checksum", ""),
        )
