"""URL routing for availability checks and cache administration."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CacheClearView, CacheStatsView, CheckAvailabilityView

urlpatterns = [
    path("rentals/check-availability/", CheckAvailabilityView.as_view(), name="check-availability"),
    path("cache/stats/", CacheStatsView.as_view(), name="cache-stats"),
    path("cache/clear/", CacheClearView.as_view(), name="cache-clear"),
]
