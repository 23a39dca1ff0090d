"""
Fleet Statistics

Rental activity over an analysis period: most rented vehicle type,
utilisation overall and per type/location, and the top vehicles.
``compute_vehicle_statistics`` is a pure function over snapshots;
``get_vehicle_statistics`` loads them through the ORM and caches the
result for ``AVAILABILITY_CACHE["TTL"]["statistics"]`` seconds.

Utilisation is rented vehicle-days inside the period divided by
available vehicle-days (vehicles x days), as a percentage. Cancelled
rentals are ignored.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange

from apps.availability.cache import keys
from apps.availability.domain.models import ReservationInterval, ReservationStatus, VehicleCandidate
from apps.availability.service import AvailabilityService

logger = logging.getLogger(__name__)

TOP_VEHICLES = 3


def _days_inside(reservation: ReservationInterval, period: DateRange) -> int:
    start = max(reservation.start_date, period.start_date)
    end = min(reservation.end_date, period.end_date)
    return max((end - start).days, 0)


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 2)


def compute_vehicle_statistics(
    vehicles: Iterable[VehicleCandidate],
    reservations: Iterable[ReservationInterval],
    period: DateRange,
    locations: Optional[Mapping[int, Mapping[str, str]]] = None,
) -> dict:
    vehicles = list(vehicles)
    locations = locations or {}
    by_id = {vehicle.id: vehicle for vehicle in vehicles}
    days = len(period)

    counted = [
        reservation for reservation in reservations
        if reservation.status is not ReservationStatus.CANCELLED
        and reservation.vehicle_id in by_id
        and reservation.overlaps(period.start_date, period.end_date)
    ]

    rentals_per_vehicle: Counter = Counter()
    days_per_vehicle: Counter = Counter()
    durations_per_type: Dict[str, List[int]] = defaultdict(list)
    for reservation in counted:
        vehicle = by_id[reservation.vehicle_id]
        rentals_per_vehicle[vehicle.id] += 1
        days_per_vehicle[vehicle.id] += _days_inside(reservation, period)
        durations_per_type[vehicle.vehicle_type].append(
            (reservation.end_date - reservation.start_date).days
        )

    by_type: Dict[str, List[VehicleCandidate]] = defaultdict(list)
    by_location: Dict[int, List[VehicleCandidate]] = defaultdict(list)
    for vehicle in vehicles:
        by_type[vehicle.vehicle_type].append(vehicle)
        by_location[vehicle.location_id].append(vehicle)

    type_stats = []
    for vehicle_type, members in sorted(by_type.items()):
        durations = durations_per_type.get(vehicle_type, [])
        type_stats.append({
            'vehicle_type': vehicle_type,
            'total_rentals': sum(rentals_per_vehicle[v.id] for v in members),
            'vehicles': len(members),
            'utilization_percentage': _percentage(
                sum(days_per_vehicle[v.id] for v in members), len(members) * days
            ),
            'average_rental_duration': (
                str((Decimal(sum(durations)) / len(durations)).quantize(Decimal('0.01')))
                if durations else '0.00'
            ),
        })
    type_stats.sort(key=lambda item: (-item['total_rentals'], item['vehicle_type']))

    location_stats = []
    for location_id, members in sorted(by_location.items()):
        type_counts: Counter = Counter()
        for v in members:
            type_counts[v.vehicle_type] += rentals_per_vehicle[v.id]
        popular = [t for t, count in type_counts.most_common(1) if count > 0]
        info = locations.get(location_id, {})
        location_stats.append({
            'location_id': location_id,
            'location_name': info.get('name', ''),
            'city': info.get('city', ''),
            'total_vehicles': len(members),
            'total_rentals': sum(rentals_per_vehicle[v.id] for v in members),
            'utilization_rate': _percentage(
                sum(days_per_vehicle[v.id] for v in members), len(members) * days
            ),
            'most_popular_vehicle_type': popular[0] if popular else None,
        })

    ranked = sorted(
        (v for v in vehicles if rentals_per_vehicle[v.id]),
        key=lambda v: (-rentals_per_vehicle[v.id], -days_per_vehicle[v.id], v.id),
    )
    top_vehicles = [
        {
            'vehicle_id': vehicle.id,
            'brand': vehicle.brand,
            'model': vehicle.model,
            'vehicle_type': vehicle.vehicle_type,
            'license_plate': vehicle.license_plate,
            'total_rentals': rentals_per_vehicle[vehicle.id],
            'total_days_rented': days_per_vehicle[vehicle.id],
            'utilization_percentage': _percentage(days_per_vehicle[vehicle.id], days),
            'location_name': locations.get(vehicle.location_id, {}).get('name', ''),
        }
        for vehicle in ranked[:TOP_VEHICLES]
    ]

    most_rented = type_stats[0] if type_stats and type_stats[0]['total_rentals'] else None

    return {
        'start_date': period.start_date.isoformat(),
        'end_date': period.end_date.isoformat(),
        'days_analyzed': days,
        'total_rentals': len(counted),
        'total_vehicles': len(vehicles),
        'overall_utilization_rate': _percentage(sum(days_per_vehicle.values()), len(vehicles) * days),
        'most_rented_type': most_rented,
        'stats_by_vehicle_type': type_stats,
        'stats_by_location': location_stats,
        'top_vehicles': top_vehicles,
    }


def get_vehicle_statistics(
    start_date: date,
    end_date: date,
    availability: AvailabilityService,
    location_id: Optional[int] = None,
) -> dict:
    if end_date <= start_date:
        raise ValidationError(["End date must be after start date."])
    period = DateRange(start_date, end_date)

    def load() -> dict:
        from apps.rentals.models import Rental

        from .models import Location, Vehicle

        vehicle_qs = Vehicle.objects.all()
        if location_id is not None:
            vehicle_qs = vehicle_qs.filter(location_id=location_id)
        vehicles = [vehicle.to_candidate() for vehicle in vehicle_qs]

        rental_qs = Rental.objects.filter(
            vehicle_id__in=[vehicle.id for vehicle in vehicles],
            start_date__lt=period.end_date,
            end_date__gt=period.start_date,
        ).exclude(status=Rental.Status.CANCELLED)
        reservations = [rental.to_interval() for rental in rental_qs]

        locations = {
            location.pk: {'name': location.name, 'city': location.city}
            for location in Location.objects.all()
        }
        stats = compute_vehicle_statistics(vehicles, reservations, period, locations)
        logger.info(
            f"Computed fleet statistics for {period}: "
            f"{stats['total_rentals']} rentals, {stats['overall_utilization_rate']}% utilisation"
        )
        return stats

    return availability.cached(
        keys.statistics(start_date, end_date, location_id),
        availability.ttl.statistics,
        load,
    )
