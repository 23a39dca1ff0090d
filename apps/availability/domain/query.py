"""Availability query value object and its validation rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List

from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import DateRange, as_date

from ..cache import keys

MAX_RENTAL_DAYS = 365


def _as_rate(value) -> Decimal | None:
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError([f"Invalid daily rate: {value!r}."])


@dataclass(frozen=True)
class AvailabilityQuery:
    """
    Which vehicles are free at a location for [start_date, end_date)

    Construction never fails on policy rules; call ``validate`` (or
    ``validation_errors``) to collect every violated rule at once.
    """
    location_id: int
    start_date: date
    end_date: date
    vehicle_type: str | None = None
    min_daily_rate: Decimal | None = None
    max_daily_rate: Decimal | None = None

    def __post_init__(self):
        object.__setattr__(self, 'start_date', as_date(self.start_date))
        object.__setattr__(self, 'end_date', as_date(self.end_date))
        vehicle_type = (self.vehicle_type or '').strip().lower() or None
        object.__setattr__(self, 'vehicle_type', vehicle_type)
        object.__setattr__(self, 'min_daily_rate', _as_rate(self.min_daily_rate))
        object.__setattr__(self, 'max_daily_rate', _as_rate(self.max_daily_rate))

    @property
    def rental_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def cache_key(self) -> str:
        return keys.availability(
            self.location_id,
            self.start_date,
            self.end_date,
            self.vehicle_type,
            self.min_daily_rate,
            self.max_daily_rate,
        )

    def validation_errors(self, today: date | datetime, max_days: int = MAX_RENTAL_DAYS) -> List[str]:
        today = as_date(today)
        errors: List[str] = []

        if self.location_id is None or self.location_id <= 0:
            errors.append("Location ID must be greater than 0.")

        if self.start_date < today:
            errors.append("Start date cannot be in the past.")

        if self.end_date <= self.start_date:
            errors.append("End date must be after start date.")

        if self.rental_days > max_days:
            errors.append(f"Rental period cannot exceed {max_days} days.")

        if self.min_daily_rate is not None and self.min_daily_rate < 0:
            errors.append("Minimum daily rate cannot be negative.")

        if self.max_daily_rate is not None and self.max_daily_rate < 0:
            errors.append("Maximum daily rate cannot be negative.")

        if (self.min_daily_rate is not None and self.max_daily_rate is not None
                and self.min_daily_rate > self.max_daily_rate):
            errors.append("Minimum daily rate cannot be greater than maximum daily rate.")

        return errors

    def validate(self, today: date | datetime, max_days: int = MAX_RENTAL_DAYS) -> None:
        errors = self.validation_errors(today, max_days)
        if errors:
            raise ValidationError(errors)
