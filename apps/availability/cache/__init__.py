"""In-process cache primitives used by the availability service."""

from .aside import CacheAside
from .errors import CacheStoreFailure
from .store import CacheStore

__all__ = ["CacheAside", "CacheStore", "CacheStoreFailure"]
