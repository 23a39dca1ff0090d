"""URL routing for fleet endpoints."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import LocationListView, VehicleDetailView, VehicleStatisticsView

urlpatterns = [
    path("locations/", LocationListView.as_view(), name="location-list"),
    path("vehicles/<int:vehicle_id>/", VehicleDetailView.as_view(), name="vehicle-detail"),
    path("statistics/vehicles/", VehicleStatisticsView.as_view(), name="vehicle-statistics"),
]
