"""Background thread that periodically purges expired cache entries."""

from __future__ import annotations

import logging
import threading

from .store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60.0


class CacheSweeper:
    """Runs :meth:`CacheStore.sweep` every ``interval`` seconds.

    The sweep takes the store lock like any foreground call and holds it
    only while scanning and removing expired keys.
    """

    def __init__(self, store: CacheStore, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("Sweep interval must be positive.")
        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="availability-cache-sweeper",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Cache sweeper started (interval={self.interval}s)")

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Cache sweeper stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.store.sweep()
            except Exception as exc:
                logger.error(f"Cache sweep failed: {exc}", exc_info=True)
