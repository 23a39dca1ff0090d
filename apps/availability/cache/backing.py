"""Best-effort durable backing for persistent cache entries.

Entries stored with ``persistent=True`` are written through to a Django
cache backend (file based by default) so a restarted process can warm
itself from the last known values. Every failure is reported as
:class:`CacheStoreFailure`; the store logs it and carries on.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Tuple

from django.core.cache import caches  # type: ignore

from .entry import CacheEntry
from .errors import CacheStoreFailure

logger = logging.getLogger(__name__)

INDEX_KEY = "availability:persistent_keys"


class CacheBacking:
    """Write-through side channel over a Django cache alias."""

    def __init__(self, alias: str, prefix: str = "cache_") -> None:
        self.alias = alias
        self.prefix = prefix

    @property
    def _cache(self):
        return caches[self.alias]

    def _storage_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _index(self) -> List[str]:
        return list(self._cache.get(INDEX_KEY) or [])

    def save(self, entry: CacheEntry, now: float) -> None:
        timeout = entry.remaining(now)
        if timeout <= 0:
            return
        try:
            self._cache.set(self._storage_key(entry.key), entry.to_dict(), timeout)
            keys = self._index()
            if entry.key not in keys:
                keys.append(entry.key)
                self._cache.set(INDEX_KEY, keys, None)
        except Exception as exc:
            raise CacheStoreFailure(f"Failed to persist cache entry {entry.key}: {exc}") from exc

    def delete_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            self._cache.delete_many([self._storage_key(key) for key in keys])
            remaining = [key for key in self._index() if key not in keys]
            self._cache.set(INDEX_KEY, remaining, None)
        except Exception as exc:
            raise CacheStoreFailure(f"Failed to remove persisted cache entries: {exc}") from exc

    def clear(self) -> None:
        try:
            keys = self._index()
            if keys:
                self._cache.delete_many([self._storage_key(key) for key in keys])
            self._cache.delete(INDEX_KEY)
        except Exception as exc:
            raise CacheStoreFailure(f"Failed to clear persisted cache entries: {exc}") from exc

    def load(self) -> List[Tuple[str, dict[str, Any]]]:
        """Return ``(key, payload)`` pairs still present in the backend."""
        try:
            keys = self._index()
            if not keys:
                return []
            found = self._cache.get_many([self._storage_key(key) for key in keys])
        except Exception as exc:
            raise CacheStoreFailure(f"Failed to load persisted cache entries: {exc}") from exc

        loaded = []
        for key in keys:
            payload = found.get(self._storage_key(key))
            if isinstance(payload, dict) and "value" in payload:
                loaded.append((key, payload))
        logger.debug(f"Loaded {len(loaded)} persisted cache entries from '{self.alias}'")
        return loaded
