"""Rental domain models: customers and reservations."""

from __future__ import annotations

from datetime import date

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.availability.domain.models import (
    INACTIVE_RESERVATION_STATUSES,
    ReservationInterval,
    ReservationStatus,
)
from shared.domain.exceptions import ConflictError, ValidationError
from shared.domain.value_objects import DateRange

MIN_CUSTOMER_ID_LENGTH = 7


class Customer(models.Model):
    """A person renting vehicles, identified by a national document number."""

    id = models.CharField(primary_key=True, max_length=20)
    full_name = models.CharField(max_length=150)
    address = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ["full_name"]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.id})"

    @staticmethod
    def validation_errors(customer_id: str, full_name: str, address: str) -> list[str]:
        errors = []
        customer_id = (customer_id or "").strip()
        full_name = (full_name or "").strip()
        if len(customer_id) < MIN_CUSTOMER_ID_LENGTH:
            errors.append(f"Customer ID must be at least {MIN_CUSTOMER_ID_LENGTH} characters long.")
        if len(full_name.split()) < 2:
            errors.append("Full name must include first and last name.")
        if not (address or "").strip():
            errors.append("Address is required.")
        return errors

    def has_active_rentals(self) -> bool:
        return self.rentals.exclude(status__in=[s.value for s in INACTIVE_RESERVATION_STATUSES]).exists()


class Rental(models.Model):
    """Reservation of a vehicle for the half-open period [start_date, end_date)."""

    class Status(models.TextChoices):
        RESERVED = ReservationStatus.RESERVED.value, _("Reserved")
        ACTIVE = ReservationStatus.ACTIVE.value, _("Active")
        COMPLETED = ReservationStatus.COMPLETED.value, _("Completed")
        CANCELLED = ReservationStatus.CANCELLED.value, _("Cancelled")
        MODIFIED = ReservationStatus.MODIFIED.value, _("Modified")

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="rentals",
    )
    vehicle = models.ForeignKey(
        "fleet.Vehicle",
        on_delete=models.PROTECT,
        related_name="rentals",
    )
    location = models.ForeignKey(
        "fleet.Location",
        on_delete=models.PROTECT,
        related_name="rentals",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.RESERVED,
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Rental")
        verbose_name_plural = _("Rentals")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="rental_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle", "start_date", "end_date"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return f"Rental {self.pk}: {self.vehicle_id} {self.start_date} - {self.end_date}"

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    def is_active(self) -> bool:
        return ReservationStatus(self.status) not in INACTIVE_RESERVATION_STATUSES

    def to_interval(self) -> ReservationInterval:
        return ReservationInterval(
            id=self.pk,
            vehicle_id=self.vehicle_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            customer_id=self.customer_id,
            location_id=self.location_id,
        )

    def cancel(self, today: date | None = None) -> None:
        today = today or timezone.localdate()
        if self.status == self.Status.CANCELLED:
            raise ConflictError("Rental is already cancelled.")
        if self.status == self.Status.COMPLETED:
            raise ConflictError("Cannot cancel a completed rental.")
        if self.status == self.Status.ACTIVE and self.start_date <= today:
            raise ConflictError("Cannot cancel an active rental that has already started.")
        self.status = self.Status.CANCELLED
        self.cancelled_at = timezone.now()

    def ensure_modifiable(self) -> None:
        if self.status == self.Status.COMPLETED:
            raise ConflictError("Cannot modify a completed rental.")
        if self.status == self.Status.CANCELLED:
            raise ConflictError("Cannot modify a cancelled rental.")

    def modify_dates(self, start_date: date, end_date: date, today: date | None = None) -> None:
        self.ensure_modifiable()
        today = today or timezone.localdate()
        errors = []
        if start_date >= end_date:
            errors.append("End date must be after start date.")
        if start_date < today:
            errors.append("Start date cannot be in the past.")
        if errors:
            raise ValidationError(errors)
        self.start_date = start_date
        self.end_date = end_date
        self.status = self.Status.MODIFIED

    def activate(self) -> None:
        if self.status not in (self.Status.RESERVED, self.Status.MODIFIED):
            raise ConflictError(f"Cannot activate a rental in status {self.status}.")
        self.status = self.Status.ACTIVE

    def complete(self) -> None:
        if self.status == self.Status.CANCELLED:
            raise ConflictError("Cannot complete a cancelled rental.")
        self.status = self.Status.COMPLETED
