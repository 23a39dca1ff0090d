"""
Availability Domain Types

Read-only snapshots the resolver works on:
- VehicleCandidate: A vehicle that may be offered for a period
- ReservationInterval: A rental occupying a vehicle for [start, end)
- ServiceWindow: A maintenance appointment on a given date
- AvailabilityResult: What a resolved query returns
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Tuple

from shared.domain.value_objects import DateRange, as_date


class ReservationStatus(str, Enum):
    """Rental lifecycle states"""
    RESERVED = 'reserved'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    MODIFIED = 'modified'


INACTIVE_RESERVATION_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.COMPLETED})


class ServiceStatus(str, Enum):
    """Maintenance appointment states"""
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    ON_HOLD = 'on_hold'


NON_BLOCKING_SERVICE_STATUSES = frozenset({ServiceStatus.COMPLETED, ServiceStatus.CANCELLED})


@dataclass(frozen=True)
class VehicleCandidate:
    id: int
    vehicle_type: str
    is_available: bool
    location_id: int
    brand: str = ''
    model: str = ''
    year: int | None = None
    license_plate: str = ''
    daily_rate: Decimal = Decimal('0')

    @property
    def full_name(self) -> str:
        return f"{self.year} {self.brand} {self.model}".strip()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['daily_rate'] = str(self.daily_rate)
        data['full_name'] = self.full_name
        return data


@dataclass(frozen=True)
class ReservationInterval:
    """
    A rental occupying a vehicle

    Two intervals conflict when both are active and their half-open
    ranges overlap; touching endpoints do not conflict.
    """
    id: int | None
    vehicle_id: int
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.RESERVED
    customer_id: str | None = None
    location_id: int | None = None

    def __post_init__(self):
        object.__setattr__(self, 'start_date', as_date(self.start_date))
        object.__setattr__(self, 'end_date', as_date(self.end_date))
        object.__setattr__(self, 'status', ReservationStatus(self.status))

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_RESERVATION_STATUSES

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date < as_date(end_date) and as_date(start_date) < self.end_date

    def conflicts_with(self, other: 'ReservationInterval') -> bool:
        if not (self.is_active and other.is_active):
            return False
        return self.overlaps(other.start_date, other.end_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'customer_id': self.customer_id,
            'location_id': self.location_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'status': self.status.value,
        }


@dataclass(frozen=True)
class ServiceWindow:
    """A maintenance appointment; the vehicle is out of service that day"""
    id: int | None
    vehicle_id: int
    scheduled_date: date
    status: ServiceStatus = ServiceStatus.SCHEDULED
    location_id: int | None = None
    service_type: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'scheduled_date', as_date(self.scheduled_date))
        object.__setattr__(self, 'status', ServiceStatus(self.status))

    @property
    def is_pending(self) -> bool:
        return self.status not in NON_BLOCKING_SERVICE_STATUSES

    def blocks(self, dates: DateRange) -> bool:
        return self.is_pending and dates.contains(self.scheduled_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'location_id': self.location_id,
            'scheduled_date': self.scheduled_date.isoformat(),
            'status': self.status.value,
            'service_type': self.service_type,
        }


@dataclass(frozen=True)
class SearchCriteria:
    location_id: int
    start_date: date
    end_date: date
    vehicle_type: str | None = None

    @property
    def rental_days(self) -> int:
        return (self.end_date - self.start_date).days

    def to_dict(self) -> dict[str, Any]:
        return {
            'location_id': self.location_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'vehicle_type': self.vehicle_type,
            'rental_days': self.rental_days,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    available_vehicles: Tuple[VehicleCandidate, ...]
    conflicting_reservations: Tuple[ReservationInterval, ...]
    blocking_services: Tuple[ServiceWindow, ...]
    search_criteria: SearchCriteria
    computed_at: datetime = field(default_factory=datetime.now)

    @property
    def total_count(self) -> int:
        return len(self.available_vehicles)

    @property
    def available_vehicle_ids(self) -> list[int]:
        return [vehicle.id for vehicle in self.available_vehicles]

    def to_dict(self) -> dict[str, Any]:
        return {
            'available_vehicles': [vehicle.to_dict() for vehicle in self.available_vehicles],
            'conflicting_reservations': [r.to_dict() for r in self.conflicting_reservations],
            'blocking_services': [s.to_dict() for s in self.blocking_services],
            'total_count': self.total_count,
            'search_criteria': self.search_criteria.to_dict(),
        }
