"""In-memory doubles for exercising the availability layer without a database."""

from __future__ import annotations

from typing import List

from .domain.models import ReservationInterval, ServiceWindow, VehicleCandidate
from .sources import AvailabilityDataSource


class ManualClock:
    """Store clock that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryAvailabilitySource(AvailabilityDataSource):
    """Answers from plain lists and counts how often each input is read."""

    def __init__(self, vehicles=(), reservations=(), services=()):
        self.vehicles: List[VehicleCandidate] = list(vehicles)
        self.reservations: List[ReservationInterval] = list(reservations)
        self.services: List[ServiceWindow] = list(services)
        self.calls = {"vehicles": 0, "reservations": 0, "services": 0}

    def fetch_vehicles(self, location_id, vehicle_type=None, min_rate=None, max_rate=None):
        self.calls["vehicles"] += 1
        return [vehicle for vehicle in self.vehicles if vehicle.location_id == location_id]

    def fetch_active_reservations(self, vehicle_ids):
        self.calls["reservations"] += 1
        vehicle_ids = set(vehicle_ids)
        return [r for r in self.reservations if r.vehicle_id in vehicle_ids and r.is_active]

    def fetch_scheduled_services(self, vehicle_ids, date_range):
        self.calls["services"] += 1
        vehicle_ids = set(vehicle_ids)
        return [s for s in self.services if s.vehicle_id in vehicle_ids]
