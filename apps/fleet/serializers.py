"""Serializers for fleet endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.availability.serializers import CalendarDateField


class VehicleStatisticsQuerySerializer(serializers.Serializer):
    start_date = CalendarDateField()
    end_date = CalendarDateField()
    location_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate(self, attrs):  # type: ignore
        if attrs["end_date"] <= attrs["start_date"]:
            raise serializers.ValidationError("End date must be after start date.")
        return attrs
