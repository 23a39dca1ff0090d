"""URL routing for rentals and customers."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    CustomerDetailView,
    CustomerRegisterView,
    CustomerRentalHistoryView,
    RentalCreateView,
    RentalDetailView,
)

urlpatterns = [
    path("rentals/", RentalCreateView.as_view(), name="rental-create"),
    path("rentals/<int:pk>/", RentalDetailView.as_view(), name="rental-detail"),
    path(
        "rentals/customer/<str:customer_id>/",
        CustomerRentalHistoryView.as_view(),
        name="customer-rental-history",
    ),
    path("customers/register/", CustomerRegisterView.as_view(), name="customer-register"),
    path("customers/<str:customer_id>/", CustomerDetailView.as_view(), name="customer-detail"),
]
