"""Serializers for the rental and customer endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.availability.serializers import CalendarDateField

from .application.command_handlers import (
    CreateRentalCommand,
    ModifyRentalCommand,
    RegisterCustomerCommand,
)


class RegisterCustomerSerializer(serializers.Serializer):
    customer_id = serializers.CharField(max_length=20, allow_blank=True)
    full_name = serializers.CharField(max_length=150, allow_blank=True)
    address = serializers.CharField(max_length=255, allow_blank=True)

    def to_command(self) -> RegisterCustomerCommand:
        return RegisterCustomerCommand(**self.validated_data)


class CreateRentalSerializer(serializers.Serializer):
    customer_id = serializers.CharField(max_length=20)
    vehicle_id = serializers.IntegerField()
    location_id = serializers.IntegerField()
    start_date = CalendarDateField()
    end_date = CalendarDateField()

    def to_command(self) -> CreateRentalCommand:
        return CreateRentalCommand(**self.validated_data)


class ModifyRentalSerializer(serializers.Serializer):
    """Omitted fields keep their current value."""

    new_start_date = CalendarDateField(required=False, allow_null=True)
    new_end_date = CalendarDateField(required=False, allow_null=True)
    new_vehicle_id = serializers.IntegerField(required=False, allow_null=True)
    new_customer_id = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)

    def validate(self, attrs):  # type: ignore
        if not any(attrs.get(field) for field in self.fields):
            raise serializers.ValidationError("Nothing to modify.")
        return attrs

    def to_command(self, rental_id: int) -> ModifyRentalCommand:
        data = self.validated_data
        return ModifyRentalCommand(
            rental_id=rental_id,
            new_start_date=data.get("new_start_date"),
            new_end_date=data.get("new_end_date"),
            new_vehicle_id=data.get("new_vehicle_id"),
            new_customer_id=data.get("new_customer_id") or None,
        )
