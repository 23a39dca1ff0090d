"""Cache key naming convention.

Keys follow ``api_<domain>_<scope>_<params...>`` joined with ``_`` so
that coarse invalidation can address a whole scope with a trailing
``*`` (for example ``api_cars_1_*`` for every availability result of
location 1). Only ``*`` is special in patterns; it matches any
substring, including an empty one, and patterns must match the whole
key.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

AVAILABILITY_PREFIX = "api_cars"
VEHICLE_PREFIX = "api_car"
CUSTOMER_PREFIX = "api_customer"
RENTAL_HISTORY_PREFIX = "api_rental_history"
STATISTICS_PREFIX = "api_stats"
LOCATIONS_ALL = "api_locations_all"


def _join(*parts: object) -> str:
    return "_".join(str(part) for part in parts)


def _rate(value: Decimal | None) -> str:
    if value is None:
        return ""
    return format(Decimal(value).normalize(), "f")


def availability(
    location_id: int,
    start_date: date,
    end_date: date,
    vehicle_type: str | None = None,
    min_rate: Decimal | None = None,
    max_rate: Decimal | None = None,
) -> str:
    key = _join(AVAILABILITY_PREFIX, location_id, start_date.isoformat(), end_date.isoformat())
    if vehicle_type:
        key = _join(key, vehicle_type.strip().lower())
    if min_rate is not None or max_rate is not None:
        key = _join(key, f"rate{_rate(min_rate)}-{_rate(max_rate)}")
    return key


def availability_for_location(location_id: int) -> str:
    return _join(AVAILABILITY_PREFIX, location_id, "*")


def vehicle(vehicle_id: int) -> str:
    return _join(VEHICLE_PREFIX, vehicle_id)


def customer(customer_id: str) -> str:
    return _join(CUSTOMER_PREFIX, customer_id)


def rental_history(customer_id: str) -> str:
    return _join(RENTAL_HISTORY_PREFIX, customer_id)


def statistics(start_date: date, end_date: date, location_id: int | None = None) -> str:
    key = _join(STATISTICS_PREFIX, start_date.isoformat(), end_date.isoformat())
    if location_id is not None:
        key = _join(key, location_id)
    return key


def domain_pattern(prefix: str) -> str:
    return f"{prefix}_*"


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a ``*`` wildcard pattern into a regex for ``fullmatch``."""
    if not pattern:
        raise ValueError("Pattern cannot be empty.")
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))
