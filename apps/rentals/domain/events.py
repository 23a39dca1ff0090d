"""
Rental Domain Events

Published on the message bus after the rental transaction commits and
after the affected cache entries have been invalidated.
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class RentalCreated(DomainEvent):
    """A vehicle was reserved for a customer"""
    rental_id: int
    customer_id: str
    vehicle_id: int
    location_id: int
    start_date: date
    end_date: date

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'rental_id': self.rental_id,
            'customer_id': self.customer_id,
            'vehicle_id': self.vehicle_id,
            'location_id': self.location_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        })
        return data


@dataclass(kw_only=True)
class RentalModified(DomainEvent):
    """
    Dates, vehicle or customer of a rental changed

    ``previous_*`` fields hold the values before the change so that
    subscribers can update both sides.
    """
    rental_id: int
    customer_id: str
    vehicle_id: int
    location_id: int
    start_date: date
    end_date: date
    previous_customer_id: str | None = None
    previous_vehicle_id: int | None = None
    previous_location_id: int | None = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'rental_id': self.rental_id,
            'customer_id': self.customer_id,
            'vehicle_id': self.vehicle_id,
            'location_id': self.location_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'previous_customer_id': self.previous_customer_id,
            'previous_vehicle_id': self.previous_vehicle_id,
            'previous_location_id': self.previous_location_id,
        })
        return data


@dataclass(kw_only=True)
class RentalCancelled(DomainEvent):
    rental_id: int
    customer_id: str
    vehicle_id: int
    location_id: int

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'rental_id': self.rental_id,
            'customer_id': self.customer_id,
            'vehicle_id': self.vehicle_id,
            'location_id': self.location_id,
        })
        return data

