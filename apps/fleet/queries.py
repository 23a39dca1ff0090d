"""Cached fleet reference data."""

from __future__ import annotations

from typing import List

from django.db.models import Count  # type: ignore

from shared.domain.exceptions import NotFoundError
from apps.availability.cache import keys
from apps.availability.service import AvailabilityService

from .models import Location, Vehicle


def location_to_dict(location: Location, vehicle_count: int = 0) -> dict:
    return {
        "id": location.pk,
        "name": location.name,
        "address": location.address,
        "city": location.city,
        "country": location.country,
        "vehicle_count": vehicle_count,
    }


def vehicle_to_dict(vehicle: Vehicle) -> dict:
    return {
        "id": vehicle.pk,
        "full_name": vehicle.full_name,
        "brand": vehicle.brand,
        "model": vehicle.model,
        "year": vehicle.year,
        "vehicle_type": vehicle.vehicle_type,
        "license_plate": vehicle.license_plate,
        "daily_rate": str(vehicle.daily_rate),
        "is_available": vehicle.is_available,
        "location_id": vehicle.location_id,
    }


def list_locations(availability: AvailabilityService) -> List[dict]:
    """
    Every location with its vehicle count

    Changes rarely, so the entry is written through to the durable
    backing and survives restarts.
    """
    def load() -> List[dict]:
        qs = Location.objects.annotate(vehicle_count=Count("vehicles")).order_by("name")
        return [location_to_dict(location, location.vehicle_count) for location in qs]

    return availability.cached(keys.LOCATIONS_ALL, availability.ttl.locations, load, persistent=True)


def get_vehicle(vehicle_id: int, availability: AvailabilityService) -> dict:
    """Vehicle detail under ``api_car_<id>``; evicted by the fleet signals."""
    def load() -> dict:
        try:
            vehicle = Vehicle.objects.get(pk=vehicle_id)
        except Vehicle.DoesNotExist:
            raise NotFoundError(f"Vehicle {vehicle_id} not found.")
        return vehicle_to_dict(vehicle)

    return availability.cached(keys.vehicle(vehicle_id), availability.ttl.availability, load)
