"""Cache-aside ("fetch or compute") access over :class:`CacheStore`."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

from .store import TTL, CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class CacheAside:
    """Return a cached value or compute, store and return it.

    Without ``single_flight`` two concurrent misses on the same key both
    run the factory and the last write wins. With it, misses on one key
    are serialised and later callers reuse the first result.
    Factories must be side-effect free; their exceptions propagate and
    nothing is stored.
    """

    def __init__(self, store: CacheStore, single_flight: bool = False) -> None:
        self.store = store
        self.single_flight = single_flight
        self._key_locks: Dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def get_or_set(
        self,
        key: str,
        ttl: Optional[TTL],
        factory: Callable[[], T],
        persistent: bool = False,
    ) -> T:
        cached = self.store.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        if not self.single_flight:
            return self._compute(key, ttl, factory, persistent)

        lock = self._lock_for(key)
        try:
            with lock:
                if self.store.has(key):
                    cached = self.store.get(key, _MISSING)
                    if cached is not _MISSING:
                        return cached
                return self._compute(key, ttl, factory, persistent)
        finally:
            self._release_lock(key, lock)

    def _compute(self, key: str, ttl: Optional[TTL], factory: Callable[[], T], persistent: bool) -> T:
        logger.debug(f"Computing value for cache key {key}")
        value = factory()
        self.store.set(key, value, ttl, persistent=persistent)
        return value

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _release_lock(self, key: str, lock: threading.Lock) -> None:
        with self._key_locks_guard:
            if self._key_locks.get(key) is lock and not lock.locked():
                del self._key_locks[key]
