"""
Availability Resolver

Computes which vehicles are free for a query by reconciling three
sources: the vehicles at the location, the reservations that still
hold them, and their pending service appointments.

    available = candidates
                - vehicles with an overlapping active reservation
                - vehicles with a pending service inside the period

Overlap is half-open: a rental ending on day N and another starting on
day N do not conflict.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from django.utils import timezone  # type: ignore

from .domain.conflicts import blocking_services, conflicting_reservations, matches_filters
from .domain.models import AvailabilityResult, SearchCriteria
from .domain.query import MAX_RENTAL_DAYS, AvailabilityQuery
from .sources import AvailabilityDataSource

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Authoritative (uncached) availability computation."""

    def __init__(
        self,
        source: AvailabilityDataSource,
        today: Callable[[], date] = timezone.localdate,
        max_rental_days: int = MAX_RENTAL_DAYS,
    ):
        self.source = source
        self.today = today
        self.max_rental_days = max_rental_days

    def validate(self, query: AvailabilityQuery) -> None:
        """Raise ``ValidationError`` listing every violated rule."""
        query.validate(self.today(), self.max_rental_days)

    def resolve(self, query: AvailabilityQuery) -> AvailabilityResult:
        self.validate(query)
        dates = query.date_range

        candidates = [
            vehicle for vehicle in self.source.fetch_vehicles(
                query.location_id,
                query.vehicle_type,
                query.min_daily_rate,
                query.max_daily_rate,
            )
            if matches_filters(
                vehicle,
                query.location_id,
                query.vehicle_type,
                query.min_daily_rate,
                query.max_daily_rate,
            )
        ]
        candidate_ids = {vehicle.id for vehicle in candidates}

        reservations = [
            reservation for reservation in self.source.fetch_active_reservations(sorted(candidate_ids))
            if reservation.vehicle_id in candidate_ids
        ]
        conflicts = conflicting_reservations(reservations, dates)

        services = [
            service for service in self.source.fetch_scheduled_services(sorted(candidate_ids), dates)
            if service.vehicle_id in candidate_ids
        ]
        blocking = blocking_services(services, dates)

        unavailable = {r.vehicle_id for r in conflicts} | {s.vehicle_id for s in blocking}
        available = [vehicle for vehicle in candidates if vehicle.id not in unavailable]

        logger.info(
            f"Resolved availability for location {query.location_id}, {dates}: "
            f"{len(available)}/{len(candidates)} free, "
            f"{len(conflicts)} conflicting rentals, {len(blocking)} blocking services"
        )

        return AvailabilityResult(
            available_vehicles=tuple(available),
            conflicting_reservations=tuple(conflicts),
            blocking_services=tuple(blocking),
            search_criteria=SearchCriteria(
                location_id=query.location_id,
                start_date=query.start_date,
                end_date=query.end_date,
                vehicle_type=query.vehicle_type,
            ),
        )
