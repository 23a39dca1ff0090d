"""Errors raised inside the cache layer."""


class CacheStoreFailure(Exception):
    """Raised by the durable backing when a write-through operation fails.

    The store logs and swallows it; the in-memory view stays authoritative.
    """
