"""Value types held and reported by :class:`CacheStore`."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RemovalReason(str, Enum):
    """Why an entry left the store."""

    EXPIRED = "expired"
    INVALIDATED = "invalidated"
    EVICTED = "evicted"
    REPLACED = "replaced"
    CLEARED = "cleared"


@dataclass
class CacheEntry:
    """A cached value with its lifetime bookkeeping.

    Timestamps come from the store clock (seconds).
    """

    key: str
    value: Any
    created_at: float
    expires_at: float
    hit_count: int = 0
    persistent: bool = False

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def remaining(self, now: float) -> float:
        return max(self.expires_at - now, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "hit_count": self.hit_count,
        }


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counters of a cache store."""

    hits: int
    misses: int
    evictions: int
    size: int
    max_size: int
    uptime_seconds: float
    memory_usage: int = 0
    oldest_entry_at: float | None = None
    most_accessed_key: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total) * 100 if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hit_count": self.hits,
            "miss_count": self.misses,
            "eviction_count": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": round(self.hit_rate, 2),
            "uptime_seconds": round(self.uptime_seconds, 3),
            "memory_usage": self.memory_usage,
            "oldest_entry_at": self.oldest_entry_at,
            "most_accessed_key": self.most_accessed_key,
            **self.extra,
        }
