"""Admin registrations for the rentals domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Customer, Rental


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "full_name", "address", "created_at")
    search_fields = ("id", "full_name")


@admin.register(Rental)
class RentalAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "vehicle", "location", "start_date", "end_date", "status", "created_at")
    list_filter = ("status", "location", "start_date")
    search_fields = ("customer__id", "customer__full_name", "vehicle__license_plate")
    readonly_fields = ("created_at", "updated_at", "cancelled_at")
