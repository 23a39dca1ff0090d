"""Fleet domain models: locations, vehicles and scheduled services."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.availability.domain.models import ServiceStatus, ServiceWindow, VehicleCandidate


class Location(models.Model):
    """Branch where vehicles are picked up and returned."""

    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    country = models.CharField(max_length=100, blank=True)

    class Meta:
        verbose_name = _("Location")
        verbose_name_plural = _("Locations")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.city})"


class Vehicle(models.Model):
    """A rentable car stationed at a home location."""

    brand = models.CharField(max_length=50)
    model = models.CharField(max_length=50)
    year = models.PositiveSmallIntegerField()
    vehicle_type = models.CharField(
        max_length=30,
        help_text=_("Category such as compact, sedan or suv."),
    )
    license_plate = models.CharField(max_length=20, unique=True)
    daily_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unset to take the vehicle out of the rental pool."),
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="vehicles",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vehicle")
        verbose_name_plural = _("Vehicles")
        ordering = ["brand", "model"]
        indexes = [
            models.Index(fields=["location", "vehicle_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} [{self.license_plate}]"

    @property
    def full_name(self) -> str:
        return f"{self.year} {self.brand} {self.model}"

    def to_candidate(self) -> VehicleCandidate:
        return VehicleCandidate(
            id=self.pk,
            vehicle_type=self.vehicle_type,
            is_available=self.is_available,
            location_id=self.location_id,
            brand=self.brand,
            model=self.model,
            year=self.year,
            license_plate=self.license_plate,
            daily_rate=self.daily_rate,
        )


class ScheduledService(models.Model):
    """Maintenance appointment that takes a vehicle out of service."""

    class Status(models.TextChoices):
        SCHEDULED = ServiceStatus.SCHEDULED.value, _("Scheduled")
        IN_PROGRESS = ServiceStatus.IN_PROGRESS.value, _("In progress")
        COMPLETED = ServiceStatus.COMPLETED.value, _("Completed")
        CANCELLED = ServiceStatus.CANCELLED.value, _("Cancelled")
        ON_HOLD = ServiceStatus.ON_HOLD.value, _("On hold")

    class Priority(models.TextChoices):
        LOW = "low", _("Low")
        MEDIUM = "medium", _("Medium")
        HIGH = "high", _("High")
        CRITICAL = "critical", _("Critical")

    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.CASCADE,
        related_name="services",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="services",
    )
    service_type = models.CharField(max_length=50)
    description = models.CharField(max_length=255, blank=True)
    scheduled_date = models.DateTimeField()
    completed_date = models.DateTimeField(null=True, blank=True)
    estimated_duration_minutes = models.PositiveIntegerField(default=60)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
    )
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Scheduled service")
        verbose_name_plural = _("Scheduled services")
        ordering = ["scheduled_date"]
        indexes = [
            models.Index(fields=["vehicle", "status", "scheduled_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.service_type} for {self.vehicle_id} on {self.scheduled_date:%Y-%m-%d}"

    @property
    def is_overdue(self) -> bool:
        return self.status == self.Status.SCHEDULED and self.scheduled_date < timezone.now()

    def to_window(self) -> ServiceWindow:
        scheduled = self.scheduled_date
        if timezone.is_aware(scheduled):
            scheduled = timezone.localtime(scheduled)
        return ServiceWindow(
            id=self.pk,
            vehicle_id=self.vehicle_id,
            scheduled_date=scheduled.date(),
            status=self.status,
            location_id=self.location_id,
            service_type=self.service_type,
        )
