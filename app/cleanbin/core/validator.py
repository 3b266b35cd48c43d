"""Path validation and critical system path detection.

This module checks that a cleanup root is a usable directory and refuses
operating-system-owned locations. The critical path check is fatal for
the orchestrator: a critical path is never scanned or modified,
regardless of profile settings.
"""

import os
import re
import sys
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from cleanbin.core.errors import CleanbinError

# Maximum path length accepted for a cleanup root
MAX_PATH_LENGTH = 260 if sys.platform == "win32" else 4096

# Path segments owned by the operating system, matched anywhere in a path
CRITICAL_SEGMENTS: frozenset[str] = frozenset(
    {
        "windows",
        "system32",
        "syswow64",
        "program files",
        "program files (x86)",
        "documents and settings",
        "system volume information",
        "$recycle.bin",
        "boot",
        "recovery",
    }
)

# System roots protected together with their whole subtree
CRITICAL_ROOTS: tuple[str, ...] = (
    "/etc",
    "/usr",
    "/boot",
    "/bin",
    "/sbin",
    "/lib",
    "/lib64",
    "/proc",
    "/sys",
    "/dev",
    "/system",
    "/library",
    "c:\\programdata",
)

# Roots that may be cleaned below but never as a whole
CRITICAL_EXACT: tuple[str, ...] = (
    "/",
    "/home",
    "/users",
    "/var",
    "/opt",
    "/root",
    "c:",
    "c:\\users",
)

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:([\\/]|$)")
_WINDOWS_INVALID = frozenset('<>|"')


class ErrorCode(str, Enum):
    """Machine-readable reason for a rejected path."""

    EMPTY_PATH = "empty_path"
    PATH_TOO_LONG = "path_too_long"
    INVALID_CHARACTERS = "invalid_characters"
    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"


class PathValidationError(CleanbinError):
    """Base exception for rejected paths."""

    code: ErrorCode

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class EmptyPathError(PathValidationError):
    """Raised when the path is empty or whitespace only."""

    code = ErrorCode.EMPTY_PATH


class PathTooLongError(PathValidationError):
    """Raised when the path exceeds MAX_PATH_LENGTH."""

    code = ErrorCode.PATH_TOO_LONG


class InvalidCharactersError(PathValidationError):
    """Raised when the path contains characters the platform rejects."""

    code = ErrorCode.INVALID_CHARACTERS


class PathNotFoundError(PathValidationError):
    """Raised when the path does not exist."""

    code = ErrorCode.NOT_FOUND


class NotADirectoryPathError(PathValidationError):
    """Raised when the path exists but is not a directory."""

    code = ErrorCode.NOT_A_DIRECTORY


def _has_invalid_characters(path: str) -> bool:
    if any(ord(char) < 32 for char in path):
        return True
    if sys.platform == "win32":
        return any(char in _WINDOWS_INVALID for char in path)
    return False


def validate_path(path: str | Path | None) -> None:
    """Validate that a path names an existing, accessible directory.

    Args:
        path: Candidate cleanup root.

    Raises:
        EmptyPathError: If the path is empty or whitespace only.
        PathTooLongError: If the path is longer than MAX_PATH_LENGTH.
        InvalidCharactersError: If the path contains invalid characters.
        PathNotFoundError: If the path does not exist.
        NotADirectoryPathError: If the path is not a directory.
    """
    text = "" if path is None else str(path)
    if not text.strip():
        msg = "Path cannot be empty or whitespace"
        raise EmptyPathError(msg, text)

    if len(text) > MAX_PATH_LENGTH:
        msg = f"Path is too long ({len(text)} characters, maximum {MAX_PATH_LENGTH})"
        raise PathTooLongError(msg, text)

    if _has_invalid_characters(text):
        msg = "Path contains invalid characters"
        raise InvalidCharactersError(msg, text)

    try:
        target = Path(text)
        exists = target.exists()
        is_dir = target.is_dir()
    except OSError as e:
        msg = f"Cannot access path {text}: {e}"
        raise PathNotFoundError(msg, text) from e

    if not exists:
        msg = f"Directory does not exist: {text}"
        raise PathNotFoundError(msg, text)
    if not is_dir:
        msg = f"Path is not a directory: {text}"
        raise NotADirectoryPathError(msg, text)


def validate_names(names: Iterable[str] | None) -> None:
    """Validate a list of directory names from a profile.

    Args:
        names: Clean or ignore directory names. None is accepted.

    Raises:
        EmptyPathError: If any entry is blank.
    """
    if names is None:
        return
    for name in names:
        if not name or not name.strip():
            msg = "Directory name list contains blank entries"
            raise EmptyPathError(msg)


def _normalize(path: str) -> str:
    """Normalize a path to a lower-case absolute form without trailing separator."""
    text = path.strip()
    if _DRIVE_PATTERN.match(text):
        normalized = text.replace("/", "\\").rstrip("\\")
    else:
        normalized = os.path.normpath(os.path.abspath(os.path.expanduser(text)))
        if len(normalized) > 1:
            normalized = normalized.rstrip("/\\")
    return normalized.lower()


def _segments(normalized: str) -> list[str]:
    return [part for part in re.split(r"[\\/]", normalized) if part]


def is_critical_system_path(path: str | Path | None) -> bool:
    """Check whether a path is an operating-system-owned location.

    Matching is case-insensitive. A path is critical when any segment is
    an OS-owned folder name, when it lies at or below a system root, or
    when it is exactly a user-profile root (including the current user's
    home directory). Both the path as given and its symlink-resolved
    target are checked.

    Args:
        path: Path to check.

    Returns:
        True if the path must never be cleaned.
    """
    if path is None or not str(path).strip():
        return False

    text = str(path).strip()
    forms = {_normalize(text)}
    if not _DRIVE_PATTERN.match(text):
        forms.add(_normalize(os.path.realpath(os.path.expanduser(text))))
    return any(_is_critical_form(normalized) for normalized in forms)


def _is_critical_form(normalized: str) -> bool:
    if any(segment in CRITICAL_SEGMENTS for segment in _segments(normalized)):
        return True

    for root in CRITICAL_ROOTS:
        if normalized == root or normalized.startswith(root + "/") or normalized.startswith(
            root + "\\"
        ):
            return True

    exact = set(CRITICAL_EXACT)
    home = Path.home()
    exact.add(_normalize(str(home)))
    exact.add(_normalize(os.path.realpath(home)))
    return normalized in exact


def is_hidden_style_path(path: str | Path | None) -> bool:
    """Check whether a path's basename begins with a dot.

    Args:
        path: Path to check.

    Returns:
        True for hidden-style names such as ``.vs`` or ``.cache``.
    """
    if path is None or not str(path).strip():
        return False
    name = os.path.basename(str(path).rstrip("/\\"))
    return name.startswith(".")
