"""
Conflict Rules

Pure functions shared by the resolver (read side) and the rental
command handlers (write side) so both apply the same half-open
overlap and maintenance rules.
"""

from __future__ import annotations

from typing import Iterable, List

from shared.domain.value_objects import DateRange

from .models import ReservationInterval, ServiceWindow, VehicleCandidate


def conflicting_reservations(
    reservations: Iterable[ReservationInterval],
    dates: DateRange,
    exclude_id: int | None = None,
) -> List[ReservationInterval]:
    """Active reservations overlapping ``dates`` (touching endpoints don't count)."""
    return [
        reservation for reservation in reservations
        if reservation.is_active
        and (exclude_id is None or reservation.id != exclude_id)
        and reservation.overlaps(dates.start_date, dates.end_date)
    ]


def blocking_services(services: Iterable[ServiceWindow], dates: DateRange) -> List[ServiceWindow]:
    """Pending service windows whose date falls inside ``dates``."""
    return [service for service in services if service.blocks(dates)]


def matches_filters(
    vehicle: VehicleCandidate,
    location_id: int,
    vehicle_type: str | None = None,
    min_rate=None,
    max_rate=None,
) -> bool:
    if not vehicle.is_available or vehicle.location_id != location_id:
        return False
    if vehicle_type and vehicle.vehicle_type.lower() != vehicle_type.lower():
        return False
    if min_rate is not None and vehicle.daily_rate < min_rate:
        return False
    if max_rate is not None and vehicle.daily_rate > max_rate:
        return False
    return True
