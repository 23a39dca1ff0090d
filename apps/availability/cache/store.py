"""Capacity- and TTL-bounded in-process key/value store.

The store keeps two maps that always change together under one lock:
the entries themselves and an access-order record per key (a strictly
increasing sequence number refreshed on every hit). When an insert
finds the store full, the key with the smallest sequence number is
evicted. Expired entries are dropped lazily on read and proactively by
:meth:`CacheStore.sweep`, which :class:`CacheSweeper` calls on a timer.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .backing import CacheBacking
from .entry import CacheEntry, CacheStats, RemovalReason
from .errors import CacheStoreFailure
from .keys import compile_pattern

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100
DEFAULT_TTL = 300.0

RemovalListener = Callable[[str, RemovalReason], None]
TTL = float | int | timedelta


def _seconds(ttl: TTL) -> float:
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    if seconds <= 0:
        raise ValueError("TTL must be positive.")
    return seconds


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("Key cannot be null or empty.")


def _estimate_size(key: str, value: Any) -> int:
    try:
        return len(json.dumps({"key": key, "value": value}, default=str)) * 2
    except (TypeError, ValueError):
        return 1000


class CacheStore:
    """Thread-safe LRU cache with per-entry expiry and hit/miss counters."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: TTL = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.time,
        backing: Optional[CacheBacking] = None,
        on_remove: Optional[RemovalListener] = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1.")
        self.max_size = max_size
        self.default_ttl = _seconds(default_ttl)
        self._clock = clock
        self._backing = backing
        self._on_remove = on_remove

        self._lock = threading.RLock()
        # Backing I/O; taken before ``_lock``, never while holding it.
        self._backing_lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._access_order: Dict[str, int] = {}
        self._access_counter = 0

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._started_at = clock()

    # ----------------------------------------------------------------- reads

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``."""
        _check_key(key)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss: {key}")
                return default
            if entry.is_expired(self._clock()):
                self._remove(key, RemovalReason.EXPIRED)
                self._misses += 1
                logger.debug(f"Cache miss (expired): {key}")
                expired = entry
            else:
                self._touch(key)
                entry.hit_count += 1
                self._hits += 1
                logger.debug(f"Cache hit: {key}")
                return entry.value
        self._forget_persisted([expired])
        return default

    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Look up several keys; absent or expired keys map to ``None``."""
        return {key: self.get(key) for key in keys}

    def has(self, key: str) -> bool:
        """Whether a live entry exists. Does not touch counters or recency."""
        _check_key(key)
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    __contains__ = has

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left before ``key`` expires, or ``None``."""
        _check_key(key)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            remaining = entry.remaining(self._clock())
            return remaining if remaining > 0 else None

    def keys(self) -> List[str]:
        with self._lock:
            now = self._clock()
            return [key for key, entry in self._entries.items() if not entry.is_expired(now)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ---------------------------------------------------------------- writes

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[TTL] = None,
        max_size: Optional[int] = None,
        persistent: bool = False,
    ) -> None:
        """Insert or replace ``key``, evicting the LRU entry when full."""
        _check_key(key)
        seconds = self.default_ttl if ttl is None else _seconds(ttl)
        limit = self.max_size if max_size is None else min(max_size, self.max_size)
        if limit < 1:
            raise ValueError("max_size must be at least 1.")

        dropped: List[CacheEntry] = []
        with self._lock:
            now = self._clock()
            previous = self._remove(key, RemovalReason.REPLACED)
            if previous is not None and previous.persistent and not persistent:
                dropped.append(previous)

            if len(self._entries) >= limit:
                victim = self._evict_lru()
                if victim is not None:
                    dropped.append(victim)

            entry = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + seconds,
                persistent=persistent,
            )
            self._entries[key] = entry
            self._touch(key)

        self._forget_persisted(dropped)
        if persistent:
            self._persist(entry, now)

    def set_many(self, values: Mapping[str, Any], ttl: Optional[TTL] = None) -> None:
        for key, value in values.items():
            self.set(key, value, ttl)

    def warm(self, entries: Iterable[Tuple[str, Any, Optional[TTL]]]) -> int:
        """Preload ``(key, value, ttl)`` triples; returns how many were stored."""
        count = 0
        for key, value, ttl in entries:
            self.set(key, value, ttl)
            count += 1
        logger.info(f"Cache warmed with {count} entries")
        return count

    def refresh(self, key: str, ttl: TTL) -> bool:
        """Restart the lifetime of a live entry with a new TTL."""
        _check_key(key)
        seconds = _seconds(ttl)
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is None or entry.is_expired(now):
                return False
            entry.expires_at = now + seconds
        if entry.persistent:
            self._persist(entry, now)
        return True

    def invalidate(self, key: str) -> bool:
        """Remove ``key``; returns whether it was present."""
        _check_key(key)
        with self._lock:
            entry = self._remove(key, RemovalReason.INVALIDATED)
        if entry is None:
            return False
        self._forget_persisted([entry])
        logger.debug(f"Cache key invalidated: {key}")
        return True

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove every key matching a ``*`` wildcard pattern."""
        regex = compile_pattern(pattern)
        with self._lock:
            matching = [key for key in self._entries if regex.fullmatch(key)]
            removed = [self._remove(key, RemovalReason.INVALIDATED) for key in matching]
        self._forget_persisted(removed)
        if matching:
            logger.info(f"Invalidated {len(matching)} cache entries matching '{pattern}'")
        return len(matching)

    def clear(self) -> None:
        with self._lock:
            for key in list(self._entries):
                self._remove(key, RemovalReason.CLEARED)
        if self._backing is not None:
            with self._backing_lock:
                try:
                    self._backing.clear()
                except CacheStoreFailure as exc:
                    logger.warning(f"Cache backing clear failed: {exc}")
        logger.info("Cache cleared")

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            removed = [self._remove(key, RemovalReason.EXPIRED) for key in expired]
        self._forget_persisted(removed)
        if expired:
            logger.debug(f"Cache sweep removed {len(expired)} expired entries")
        return len(expired)

    # ------------------------------------------------------ import / export

    def export(self) -> Dict[str, dict]:
        """Snapshot of every live entry."""
        with self._lock:
            now = self._clock()
            return {
                key: entry.to_dict()
                for key, entry in self._entries.items()
                if not entry.is_expired(now)
            }

    def import_entries(self, data: Mapping[str, Any], persistent: bool = False) -> int:
        """Restore entries produced by :meth:`export`; expired ones are skipped."""
        imported = 0
        dropped: List[CacheEntry] = []
        with self._lock:
            now = self._clock()
            for key, payload in data.items():
                if not key or not isinstance(payload, Mapping) or "value" not in payload:
                    continue
                try:
                    expires_at = float(payload["expires_at"])
                except (KeyError, TypeError, ValueError):
                    continue
                if expires_at <= now:
                    continue
                self._remove(key, RemovalReason.REPLACED)
                if len(self._entries) >= self.max_size:
                    victim = self._evict_lru()
                    if victim is not None:
                        dropped.append(victim)
                self._entries[key] = CacheEntry(
                    key=key,
                    value=payload["value"],
                    created_at=float(payload.get("created_at", now)),
                    expires_at=expires_at,
                    hit_count=int(payload.get("hit_count", 0)),
                    persistent=persistent,
                )
                self._touch(key)
                imported += 1
        self._forget_persisted(dropped)
        return imported

    def load_persistent(self) -> int:
        """Warm the store from the durable backing, if one is configured."""
        if self._backing is None:
            return 0
        try:
            loaded = self._backing.load()
        except CacheStoreFailure as exc:
            logger.warning(f"Cache backing load failed: {exc}")
            return 0
        count = self.import_entries(dict(loaded), persistent=True)
        logger.info(f"Restored {count} persisted cache entries")
        return count

    # ----------------------------------------------------------------- stats

    def stats(self) -> CacheStats:
        with self._lock:
            oldest = None
            most_accessed = None
            max_hits = 0
            memory = 0
            for key, entry in self._entries.items():
                if oldest is None or entry.created_at < oldest:
                    oldest = entry.created_at
                if entry.hit_count > max_hits:
                    max_hits = entry.hit_count
                    most_accessed = key
                memory += _estimate_size(key, entry.value)
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._entries),
                max_size=self.max_size,
                uptime_seconds=self._clock() - self._started_at,
                memory_usage=memory,
                oldest_entry_at=oldest,
                most_accessed_key=most_accessed,
                extra={
                    "cache_type": "in_memory",
                    "eviction_policy": "lru",
                    "persistent_backing": self._backing.alias if self._backing else None,
                },
            )

    # -------------------------------------------------------------- internal
    # Everything below expects the caller to hold ``self._lock``.

    def _touch(self, key: str) -> None:
        self._access_counter += 1
        self._access_order[key] = self._access_counter

    def _evict_lru(self) -> Optional[CacheEntry]:
        if not self._access_order:
            return None
        victim = min(self._access_order, key=self._access_order.__getitem__)
        entry = self._remove(victim, RemovalReason.EVICTED)
        logger.info(f"Evicted least recently used cache key: {victim}")
        return entry

    def _remove(self, key: str, reason: RemovalReason) -> Optional[CacheEntry]:
        entry = self._entries.pop(key, None)
        self._access_order.pop(key, None)
        if entry is not None:
            self._after_remove(key, reason)
        return entry

    def _after_remove(self, key: str, reason: RemovalReason) -> None:
        """Post-removal hook, runs inside the same critical section as the removal."""
        if reason is RemovalReason.EVICTED:
            self._evictions += 1
        if self._on_remove is not None:
            try:
                self._on_remove(key, reason)
            except Exception as exc:
                logger.error(f"Error in cache removal listener for {key}: {exc}", exc_info=True)

    # Backing I/O runs outside ``_lock``, serialised by ``_backing_lock``. Writes and
    # deletes re-check the live entry so a stale one never overrides a newer copy.

    def _persist(self, entry: CacheEntry, now: float) -> None:
        if self._backing is None:
            return
        with self._backing_lock:
            with self._lock:
                if self._entries.get(entry.key) is not entry:
                    return
            try:
                self._backing.save(entry, now)
            except CacheStoreFailure as exc:
                logger.warning(f"Cache backing write failed: {exc}")

    def _forget_persisted(self, entries: Iterable[Optional[CacheEntry]]) -> None:
        if self._backing is None:
            return
        candidates = [entry.key for entry in entries if entry is not None and entry.persistent]
        if not candidates:
            return
        with self._backing_lock:
            with self._lock:
                keys = [key for key in candidates if not self._holds_persistent(key)]
            if not keys:
                return
            try:
                self._backing.delete_many(keys)
            except CacheStoreFailure as exc:
                logger.warning(f"Cache backing delete failed: {exc}")

    def _holds_persistent(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.persistent
