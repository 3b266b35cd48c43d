"""Result cache for completed cleanup runs."""

from cleanbin.cache.base import CACHE_KEY_PREFIX, CacheBackend, cache_key_for
from cleanbin.cache.memory import CacheEntry, CacheStatistics, MemoryCache, estimate_size

__all__ = [
    "CACHE_KEY_PREFIX",
    "CacheBackend",
    "CacheEntry",
    "CacheStatistics",
    "MemoryCache",
    "cache_key_for",
    "estimate_size",
]
