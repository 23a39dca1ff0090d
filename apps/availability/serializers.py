"""Serializers for the availability and cache administration endpoints."""

from __future__ import annotations

from django.utils.dateparse import parse_datetime  # type: ignore
from rest_framework import serializers  # type: ignore

from .domain.query import AvailabilityQuery
from .invalidation import CacheDomain


class CalendarDateField(serializers.DateField):
    """Accepts ``YYYY-MM-DD`` or a full ISO datetime, keeping only the date."""

    def to_internal_value(self, value):  # type: ignore
        if isinstance(value, str) and "T" in value:
            parsed = parse_datetime(value)
            if parsed is not None:
                return parsed.date()
        return super().to_internal_value(value)


class CheckAvailabilitySerializer(serializers.Serializer):
    """
    Input shape only; business rules (past dates, period length, rate
    bounds) are checked by the resolver so every violation is reported
    together.
    """

    location_id = serializers.IntegerField()
    start_date = CalendarDateField()
    end_date = CalendarDateField()
    vehicle_type = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=30)
    min_daily_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    max_daily_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def to_query(self) -> AvailabilityQuery:
        data = self.validated_data
        return AvailabilityQuery(
            location_id=data["location_id"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            vehicle_type=data.get("vehicle_type"),
            min_daily_rate=data.get("min_daily_rate"),
            max_daily_rate=data.get("max_daily_rate"),
        )


class CacheClearSerializer(serializers.Serializer):
    domain = serializers.ChoiceField(
        choices=[domain.value for domain in CacheDomain],
        default=CacheDomain.ALL.value,
    )
