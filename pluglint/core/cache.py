"""
Thread-safe compute-if-absent cache.

Used for every per-project cache (resource roots, archive indexes,
materialized files, type registries). Construction for a key happens at
most once even when several linting tasks ask for it at the same time.
"""

import threading
from typing import Callable, Generic, Hashable, Optional, TypeVar

from .logging import get_logger

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ConcurrentCache(Generic[K, V]):
    """Cache with per-key construction locks and an optional cleanup callback.

    The global guard is only held while deciding between "fetch" and
    "construct"; the creator itself runs under a lock private to its key,
    so slow construction for one project never blocks lookups for another.

    A creator that raises stores nothing (the next caller retries), and a
    creator returning None stores nothing unless ``cache_none`` is set.
    """

    def __init__(
        self,
        cleanup: Optional[Callable[[V], None]] = None,
        cache_none: bool = False,
    ):
        self._values: dict[K, V] = {}
        self._key_locks: dict[K, threading.Lock] = {}
        self._guard = threading.Lock()
        self._cleanup = cleanup
        self._cache_none = cache_none

    def get_or_create(self, key: K, creator: Callable[[K], V]) -> V:
        """Return the cached value for key, constructing it if absent."""
        if key is None:
            raise ValueError("Cache key must not be None")

        with self._guard:
            if key in self._values:
                return self._values[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            with self._guard:
                if key in self._values:
                    return self._values[key]

            value = creator(key)

            if value is None and not self._cache_none:
                return value

            with self._guard:
                self._values[key] = value
                self._key_locks.pop(key, None)
            return value

    def get(self, key: K) -> Optional[V]:
        with self._guard:
            return self._values.get(key)

    def __contains__(self, key: K) -> bool:
        with self._guard:
            return key in self._values

    def __len__(self) -> int:
        with self._guard:
            return len(self._values)

    def values(self) -> list[V]:
        with self._guard:
            return list(self._values.values())

    def remove(self, key: K) -> Optional[V]:
        with self._guard:
            removed = self._values.pop(key, None)
        if removed is not None:
            self._run_cleanup(removed)
        return removed

    def clear(self) -> None:
        """Drop every entry, running the cleanup callback on each value."""
        with self._guard:
            values = list(self._values.values())
            self._values.clear()
            self._key_locks.clear()
        for value in values:
            self._run_cleanup(value)

    def _run_cleanup(self, value: V) -> None:
        if self._cleanup is None:
            return
        try:
            self._cleanup(value)
        except Exception as e:
            logger.debug(f"Cache cleanup failed for {value!r}: {e}")
