"""In-memory result cache with a background expiry sweeper.

Entries carry an absolute expiry time. Expired entries are evicted lazily
by ``get`` (counted as a miss) and periodically by a daemon sweeper
thread that runs independently of any request.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import TracebackType
from typing import Any

from cleanbin.cache.base import CacheBackend

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=60)
DEFAULT_SWEEP_INTERVAL = 300.0
# Size estimate used when a value cannot be serialized
FALLBACK_ENTRY_SIZE = 1024


def estimate_size(value: Any) -> int:
    """Estimate the memory footprint of a cached value in bytes."""
    if isinstance(value, bytes | bytearray):
        return len(value)
    try:
        return len(json.dumps(value)) * 2
    except (TypeError, ValueError):
        return FALLBACK_ENTRY_SIZE


def _to_timedelta(ttl: timedelta | float) -> timedelta:
    return ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)


@dataclass(slots=True)
class CacheEntry:
    """One cached value with its bookkeeping.

    Attributes:
        key: Cache key.
        value: Stored payload.
        created_at: When the entry was stored.
        expires_at: When the entry stops being served.
        size: Estimated size in bytes.
        access_count: Number of hits.
        last_accessed: Time of the last hit, None if never read.
    """

    key: str
    value: Any
    created_at: datetime
    expires_at: datetime
    size: int
    access_count: int = 0
    last_accessed: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class CacheStatistics:
    """Counters reported by ``MemoryCache.get_statistics``.

    Attributes:
        total_entries: Entries currently stored, expired or not.
        expired_entries: Stored entries already past expiry.
        hits: Successful lookups.
        misses: Failed lookups.
        total_size: Estimated size of all entries in bytes.
    """

    total_entries: int = 0
    expired_entries: int = 0
    hits: int = 0
    misses: int = 0
    total_size: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Share of lookups that hit, 0-1."""
        return self.hits / self.lookups if self.lookups else 0.0


class MemoryCache(CacheBackend):
    """Thread-safe in-memory cache.

    Args:
        default_ttl: Time-to-live used when ``set`` is called without one.
        sweep_interval: Seconds between background sweeps. None disables
            the sweeper thread.
        clock: Returns the current time.
    """

    def __init__(
        self,
        default_ttl: timedelta | float = DEFAULT_TTL,
        sweep_interval: float | None = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._default_ttl = _to_timedelta(default_ttl)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if sweep_interval is not None:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(sweep_interval,),
                name="cleanbin-cache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            removed = self.cleanup_expired()
            if removed:
                logger.debug("Cache sweep evicted %d entries", removed)

    @staticmethod
    def _check_key(key: str) -> None:
        if not key or not key.strip():
            msg = "Cache key cannot be empty"
            raise ValueError(msg)

    def get(self, key: str) -> Any | None:
        self._check_key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                logger.debug("Cache entry %s expired", key)
                return None
            entry.access_count += 1
            entry.last_accessed = now
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: timedelta | float | None = None) -> None:
        self._check_key(key)
        lifetime = self._default_ttl if ttl is None else _to_timedelta(ttl)
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + lifetime,
            size=estimate_size(value),
        )
        with self._lock:
            self._entries[key] = entry

    def remove(self, key: str) -> bool:
        self._check_key(key)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def exists(self, key: str) -> bool:
        self._check_key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(now)

    def get_keys(self) -> list[str]:
        """Return keys of all live entries."""
        now = self._clock()
        with self._lock:
            return [key for key, entry in self._entries.items() if not entry.is_expired(now)]

    def cleanup_expired(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of evicted entries.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def get_statistics(self) -> CacheStatistics:
        """Return hit/miss counters and entry totals."""
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
            return CacheStatistics(
                total_entries=len(entries),
                expired_entries=sum(1 for entry in entries if entry.is_expired(now)),
                hits=self._hits,
                misses=self._misses,
                total_size=sum(entry.size for entry in entries),
            )

    def close(self) -> None:
        """Stop the sweeper thread."""
        self._stop.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join(timeout=1.0)

    def __enter__(self) -> MemoryCache:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
