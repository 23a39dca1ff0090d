"""
Availability Service

Entry point used by the HTTP layer and the rental command handlers:
cached availability checks, cached reference/customer lookups, and the
invalidation hook for reservation mutations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar

from .cache.aside import CacheAside
from .domain.models import AvailabilityResult
from .domain.query import AvailabilityQuery
from .invalidation import InvalidationReport, InvalidationRouter, MutationKind
from .resolver import AvailabilityResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheTTL:
    """Seconds each data domain stays cached, tuned to its volatility."""
    availability: float = 120
    locations: float = 1800
    customers: float = 600
    statistics: float = 300

    @classmethod
    def from_settings(cls, values: Optional[Mapping[str, Any]]) -> 'CacheTTL':
        values = {key.lower(): float(value) for key, value in (values or {}).items()}
        return cls(**{name: values[name] for name in cls.__dataclass_fields__ if name in values})


class AvailabilityService:

    def __init__(
        self,
        cache: CacheAside,
        resolver: AvailabilityResolver,
        router: InvalidationRouter,
        ttl: CacheTTL = CacheTTL(),
    ):
        self.cache = cache
        self.resolver = resolver
        self.router = router
        self.ttl = ttl

    def check_availability(self, query: AvailabilityQuery) -> AvailabilityResult:
        """
        Vehicles free at ``query.location_id`` for the requested period

        Invalid queries raise ``ValidationError`` before the cache is
        consulted, so errors are never cached.
        """
        self.resolver.validate(query)
        return self.cache.get_or_set(
            query.cache_key,
            self.ttl.availability,
            lambda: self.resolver.resolve(query),
        )

    def on_reservation_mutated(
        self,
        location_id: int,
        customer_id: Optional[str],
        previous_location_id: Optional[int] = None,
        previous_customer_id: Optional[str] = None,
        mutation: MutationKind = MutationKind.MODIFIED,
    ) -> InvalidationReport:
        return self.router.on_reservation_mutated(
            location_id,
            customer_id,
            previous_location_id=previous_location_id,
            previous_customer_id=previous_customer_id,
            mutation=mutation,
        )

    def cached(self, key: str, ttl: float, factory: Callable[[], T], persistent: bool = False) -> T:
        """Cache-aside lookup for the other read models (locations, customers, statistics)."""
        return self.cache.get_or_set(key, ttl, factory, persistent=persistent)
