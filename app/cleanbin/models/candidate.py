"""Candidate file models for cleanup previews.

This module defines the data structures describing a single file found
inside a clean directory: the raw metadata read from the filesystem and
the classified candidate produced by the preview service.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Flag, auto
from pathlib import Path
from typing import Any

# Windows attribute bits (stat.FILE_ATTRIBUTE_* only exists on Windows builds)
_WIN_READONLY = 0x1
_WIN_HIDDEN = 0x2
_WIN_SYSTEM = 0x4


class FileAttributes(Flag):
    """Attribute flags relevant to deletion safety.

    Attributes:
        NONE: No special attributes.
        READ_ONLY: File is not writable by its owner.
        HIDDEN: File is hidden (dot-file or Windows hidden bit).
        SYSTEM: File is owned by the operating system (Windows system bit,
            immutable flag, or a non-regular file such as a socket).
    """

    NONE = 0
    READ_ONLY = auto()
    HIDDEN = auto()
    SYSTEM = auto()

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> FileAttributes:
        """Derive attribute flags from a stat result.

        Args:
            name: File basename.
            st: Result of ``os.stat``/``os.lstat`` for the file.

        Returns:
            Combined FileAttributes flags.
        """
        attrs = cls.NONE
        win_attrs = getattr(st, "st_file_attributes", 0)
        bsd_flags = getattr(st, "st_flags", 0)

        if not st.st_mode & stat.S_IWUSR or win_attrs & _WIN_READONLY:
            attrs |= cls.READ_ONLY
        if name.startswith(".") or win_attrs & _WIN_HIDDEN:
            attrs |= cls.HIDDEN
        immutable = getattr(stat, "UF_IMMUTABLE", 0) | getattr(stat, "SF_IMMUTABLE", 0)
        if win_attrs & _WIN_SYSTEM or bsd_flags & immutable or _is_special(st.st_mode):
            attrs |= cls.SYSTEM
        return attrs

    def names(self) -> list[str]:
        """Return the lower-case names of the set flags."""
        return [str(flag.name).lower() for flag in FileAttributes if flag in self]


def _is_special(mode: int) -> bool:
    return stat.S_ISCHR(mode) or stat.S_ISBLK(mode) or stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode)


def _to_utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=UTC)


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """Raw metadata for a single file, the classifier's only input.

    Attributes:
        path: Absolute file path.
        name: File basename.
        extension: Lower-case extension including the dot ("" if none).
        size: Size in bytes.
        created: Creation (or metadata change) time, UTC.
        modified: Last modification time, UTC.
        accessed: Last access time, UTC.
        attributes: Safety-relevant attribute flags.
    """

    path: str
    name: str
    extension: str
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    attributes: FileAttributes = FileAttributes.NONE

    @classmethod
    def from_path(cls, path: Path) -> FileMetadata:
        """Read metadata for a file without following symlinks.

        Args:
            path: File to inspect.

        Returns:
            FileMetadata for the file.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        st = path.lstat()
        created = getattr(st, "st_birthtime", st.st_ctime)
        return cls(
            path=str(path),
            name=path.name,
            extension=path.suffix.lower(),
            size=st.st_size,
            created=_to_utc(created),
            modified=_to_utc(st.st_mtime),
            accessed=_to_utc(st.st_atime),
            attributes=FileAttributes.from_stat(path.name, st),
        )


@dataclass(frozen=True, slots=True)
class CandidateFile:
    """A file selected for cleanup, annotated by the safety classifier.

    Instances are immutable once classified and live for a single run.

    Attributes:
        path: Absolute file path.
        name: File basename.
        size: Size in bytes.
        created: Creation time, UTC.
        modified: Last modification time, UTC.
        accessed: Last access time, UTC.
        attributes: Safety-relevant attribute flags.
        extension: Lower-case extension including the dot.
        directory: Owning directory path.
        removal_reason: Why the file was selected (e.g. "Clean directory: bin").
        priority: Deletion priority, 1 (high) to 3 (low).
        safe_to_delete: Whether the file may reach the deletion executor.
        warnings: Human-readable warnings for the file.
    """

    path: str
    name: str
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    attributes: FileAttributes
    extension: str
    directory: str
    removal_reason: str
    priority: int
    safe_to_delete: bool
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate candidate data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if self.priority not in (1, 2, 3):
            msg = f"Priority must be 1, 2 or 3, got {self.priority}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Returns:
            Dictionary representation of the candidate.
        """
        return {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "modified": self.modified.isoformat(),
            "extension": self.extension,
            "directory": self.directory,
            "removal_reason": self.removal_reason,
            "priority": self.priority,
            "safe_to_delete": self.safe_to_delete,
            "warnings": list(self.warnings),
            "attributes": self.attributes.names(),
        }
