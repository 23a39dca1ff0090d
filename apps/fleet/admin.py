"""Admin registrations for the fleet domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Location, ScheduledService, Vehicle


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "country")
    search_fields = ("name", "city")


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("license_plate", "brand", "model", "year", "vehicle_type", "daily_rate", "location", "is_available")
    list_filter = ("vehicle_type", "is_available", "location")
    search_fields = ("license_plate", "brand", "model")


@admin.register(ScheduledService)
class ScheduledServiceAdmin(admin.ModelAdmin):
    list_display = ("vehicle", "service_type", "scheduled_date", "status", "priority", "location")
    list_filter = ("status", "priority", "location")
    search_fields = ("vehicle__license_plate", "service_type")
