"""
Invalidation Router

Decides which cache entries a reservation mutation makes stale and
evicts them synchronously. Availability keys embed date ranges the
router cannot know, so availability is invalidated per location by
pattern (``api_cars_<location>_*``); per-customer entries are exact
keys.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cache import keys
from .cache.store import CacheStore

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    CANCELLED = "cancelled"


class CacheDomain(str, Enum):
    """Groups of cache entries an operator can clear at once"""
    ALL = "all"
    VEHICLES = "vehicles"
    CUSTOMERS = "customers"
    STATISTICS = "statistics"


DOMAIN_PATTERNS: Dict[CacheDomain, List[str]] = {
    CacheDomain.VEHICLES: [
        keys.domain_pattern(keys.AVAILABILITY_PREFIX),
        keys.domain_pattern(keys.VEHICLE_PREFIX),
    ],
    CacheDomain.CUSTOMERS: [
        keys.domain_pattern(keys.CUSTOMER_PREFIX),
        keys.domain_pattern(keys.RENTAL_HISTORY_PREFIX),
    ],
    CacheDomain.STATISTICS: [
        keys.domain_pattern(keys.STATISTICS_PREFIX),
    ],
}


@dataclass
class InvalidationReport:
    mutation: MutationKind | None = None
    patterns: Dict[str, int] = field(default_factory=dict)
    keys: Dict[str, bool] = field(default_factory=dict)

    @property
    def evicted(self) -> int:
        return sum(self.patterns.values()) + sum(1 for removed in self.keys.values() if removed)

    def to_dict(self) -> dict:
        return {
            "mutation": self.mutation.value if self.mutation else None,
            "patterns": dict(self.patterns),
            "keys": dict(self.keys),
            "evicted": self.evicted,
        }


def _distinct(*values):
    seen = []
    for value in values:
        if value is not None and value != "" and value not in seen:
            seen.append(value)
    return seen


class InvalidationRouter:
    """Evicts every cache entry a reservation change can make stale."""

    def __init__(self, store: CacheStore):
        self.store = store

    def on_reservation_mutated(
        self,
        location_id: int,
        customer_id: Optional[str],
        previous_location_id: Optional[int] = None,
        previous_customer_id: Optional[str] = None,
        mutation: MutationKind = MutationKind.MODIFIED,
    ) -> InvalidationReport:
        """
        Evict availability entries for the current and previous location
        plus the detail and rental history of the current and previous
        customer (the detail carries ``has_active_rentals``).

        Runs synchronously; when it returns, any later read recomputes.
        """
        report = InvalidationReport(mutation=mutation)

        for location in _distinct(location_id, previous_location_id):
            pattern = keys.availability_for_location(location)
            report.patterns[pattern] = self.store.invalidate_pattern(pattern)

        for customer in _distinct(customer_id, previous_customer_id):
            for key in (keys.customer(customer), keys.rental_history(customer)):
                report.keys[key] = self.store.invalidate(key)

        logger.info(
            f"Reservation {mutation.value}: evicted {report.evicted} cache entries "
            f"(locations={_distinct(location_id, previous_location_id)}, "
            f"customers={_distinct(customer_id, previous_customer_id)})"
        )
        return report

    def on_vehicle_changed(self, vehicle_id: int, location_id: int, previous_location_id: Optional[int] = None) -> InvalidationReport:
        """A vehicle's flag, rate, type or home location changed."""
        report = InvalidationReport()
        for location in _distinct(location_id, previous_location_id):
            pattern = keys.availability_for_location(location)
            report.patterns[pattern] = self.store.invalidate_pattern(pattern)
        key = keys.vehicle(vehicle_id)
        report.keys[key] = self.store.invalidate(key)
        return report

    def clear_domain(self, domain: CacheDomain | str) -> InvalidationReport:
        domain = CacheDomain(domain)
        report = InvalidationReport()
        if domain is CacheDomain.ALL:
            size = len(self.store)
            self.store.clear()
            report.patterns["*"] = size
        else:
            for pattern in DOMAIN_PATTERNS[domain]:
                report.patterns[pattern] = self.store.invalidate_pattern(pattern)
        logger.info(f"Cleared cache domain '{domain.value}': {report.evicted} entries")
        return report
