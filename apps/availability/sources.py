"""
Availability Data Sources

The resolver reads vehicles, reservations and service windows through
``AvailabilityDataSource``. ``DjangoAvailabilitySource`` answers from
the relational store through the ORM.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, List, Optional

from shared.domain.value_objects import DateRange

from .domain.models import (
    INACTIVE_RESERVATION_STATUSES,
    NON_BLOCKING_SERVICE_STATUSES,
    ReservationInterval,
    ServiceWindow,
    VehicleCandidate,
)


class AvailabilityDataSource(ABC):
    """Port: where the resolver reads its three inputs from."""

    @abstractmethod
    def fetch_vehicles(
        self,
        location_id: int,
        vehicle_type: Optional[str] = None,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
    ) -> List[VehicleCandidate]:
        """Vehicles stationed at a location, optionally filtered."""
        ...

    @abstractmethod
    def fetch_active_reservations(self, vehicle_ids: Iterable[int]) -> List[ReservationInterval]:
        """Reservations of the given vehicles that still hold them."""
        ...

    @abstractmethod
    def fetch_scheduled_services(
        self,
        vehicle_ids: Iterable[int],
        date_range: DateRange,
    ) -> List[ServiceWindow]:
        """Pending service windows of the given vehicles inside the range."""
        ...


class DjangoAvailabilitySource(AvailabilityDataSource):

    def fetch_vehicles(self, location_id, vehicle_type=None, min_rate=None, max_rate=None):
        from apps.fleet.models import Vehicle

        qs = Vehicle.objects.filter(location_id=location_id, is_available=True)
        if vehicle_type:
            qs = qs.filter(vehicle_type__iexact=vehicle_type)
        if min_rate is not None:
            qs = qs.filter(daily_rate__gte=min_rate)
        if max_rate is not None:
            qs = qs.filter(daily_rate__lte=max_rate)
        return [vehicle.to_candidate() for vehicle in qs.order_by("id")]

    def fetch_active_reservations(self, vehicle_ids):
        from apps.rentals.models import Rental

        vehicle_ids = list(vehicle_ids)
        if not vehicle_ids:
            return []
        qs = (
            Rental.objects.filter(vehicle_id__in=vehicle_ids)
            .exclude(status__in=[status.value for status in INACTIVE_RESERVATION_STATUSES])
            .order_by("start_date", "id")
        )
        return [rental.to_interval() for rental in qs]

    def fetch_scheduled_services(self, vehicle_ids, date_range):
        from apps.fleet.models import ScheduledService

        vehicle_ids = list(vehicle_ids)
        if not vehicle_ids:
            return []
        qs = (
            ScheduledService.objects.filter(
                vehicle_id__in=vehicle_ids,
                scheduled_date__date__gte=date_range.start_date,
                scheduled_date__date__lt=date_range.end_date,
            )
            .exclude(status__in=[status.value for status in NON_BLOCKING_SERVICE_STATUSES])
            .order_by("scheduled_date", "id")
        )
        return [service.to_window() for service in qs]
