"""
Availability Container

Builds the cache store, orchestrator, resolver, router and service once
per process from ``settings.AVAILABILITY_CACHE`` and owns their
lifecycle (sweeper thread, persisted-entry warm-up, shutdown).
Tests build their own instances or call ``reset_container``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings  # type: ignore

from .cache.aside import CacheAside
from .cache.backing import CacheBacking
from .cache.store import DEFAULT_MAX_SIZE, DEFAULT_TTL, CacheStore
from .cache.sweeper import DEFAULT_SWEEP_INTERVAL, CacheSweeper
from .domain.query import MAX_RENTAL_DAYS
from .invalidation import InvalidationRouter
from .resolver import AvailabilityResolver
from .service import AvailabilityService, CacheTTL
from .sources import AvailabilityDataSource, DjangoAvailabilitySource

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityContainer:
    store: CacheStore
    cache: CacheAside
    resolver: AvailabilityResolver
    router: InvalidationRouter
    service: AvailabilityService
    sweeper: Optional[CacheSweeper] = None

    @classmethod
    def build(
        cls,
        config: Optional[Mapping[str, Any]] = None,
        source: Optional[AvailabilityDataSource] = None,
    ) -> 'AvailabilityContainer':
        config = dict(config or {})
        backing_alias = config.get("BACKING_ALIAS")
        store = CacheStore(
            max_size=int(config.get("MAX_SIZE", DEFAULT_MAX_SIZE)),
            default_ttl=float(config.get("DEFAULT_TTL", DEFAULT_TTL)),
            backing=CacheBacking(backing_alias) if backing_alias else None,
        )
        cache = CacheAside(store, single_flight=bool(config.get("SINGLE_FLIGHT", False)))
        resolver = AvailabilityResolver(
            source or DjangoAvailabilitySource(),
            max_rental_days=int(config.get("MAX_RENTAL_DAYS", MAX_RENTAL_DAYS)),
        )
        router = InvalidationRouter(store)
        service = AvailabilityService(cache, resolver, router, CacheTTL.from_settings(config.get("TTL")))
        sweeper = None
        if config.get("SWEEP_ENABLED", True):
            sweeper = CacheSweeper(store, float(config.get("SWEEP_INTERVAL", DEFAULT_SWEEP_INTERVAL)))
        return cls(store=store, cache=cache, resolver=resolver, router=router, service=service, sweeper=sweeper)

    def start(self) -> None:
        self.store.load_persistent()
        if self.sweeper is not None:
            self.sweeper.start()

    def shutdown(self) -> None:
        if self.sweeper is not None:
            self.sweeper.stop()


_container: Optional[AvailabilityContainer] = None
_container_lock = threading.Lock()


def get_container() -> AvailabilityContainer:
    global _container
    with _container_lock:
        if _container is None:
            _container = AvailabilityContainer.build(getattr(settings, "AVAILABILITY_CACHE", {}))
            logger.info("Availability container initialised")
        return _container


def reset_container(container: Optional[AvailabilityContainer] = None) -> None:
    """Shut the current container down and replace it (``None`` = rebuild lazily)."""
    global _container
    with _container_lock:
        if _container is not None:
            _container.shutdown()
        _container = container


def shutdown_container() -> None:
    with _container_lock:
        if _container is not None:
            _container.shutdown()
