"""
Common Value Objects

Value objects used across the rental domains:
- DateRange: Represents a half-open rental period [start_date, end_date)
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator

from shared.domain.base import ValueObject


def as_date(value: date | datetime) -> date:
    """Truncate a datetime to its calendar date (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for rental periods, availability checks and service windows.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Note: end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(5, 8) overlaps with DateRange(4, 6) -> True
            - DateRange(5, 8) overlaps with DateRange(8, 10) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date < other.end_date and
                other.start_date < self.end_date)

    def contains(self, check_date: date | datetime) -> bool:
        """
        Check if a date is within this range

        Note: start_date is inclusive, end_date is exclusive
        """
        return self.start_date <= as_date(check_date) < self.end_date

    def days(self) -> Iterator[date]:
        """Iterate over every day in the range"""
        current = self.start_date
        while current < self.end_date:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        """Number of rental days in this range"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
