"""Abstract base class for result cache backends."""

import hashlib
import os
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

CACHE_KEY_PREFIX = "cleanup_"


def cache_key_for(path: str | os.PathLike[str]) -> str:
    """Derive the cache key for a cleaned root path.

    The key is stable for equivalent spellings of the same path.

    Args:
        path: Cleaned root directory.

    Returns:
        Key of the form ``cleanup_<16 hex characters>``.
    """
    normalized = os.path.normcase(os.path.normpath(os.path.abspath(os.fspath(path))))
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest[:16]}"


class CacheBackend(ABC):
    """Capability interface for a key-value cache with per-entry expiry.

    All operations must be safe for concurrent callers.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: timedelta | float | None = None) -> None:
        """Store a value, replacing any existing entry.

        Args:
            key: Non-empty cache key.
            value: Value to store.
            ttl: Time-to-live as timedelta or seconds. None uses the
                backend default.
        """

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check for a live (non-expired) entry."""
