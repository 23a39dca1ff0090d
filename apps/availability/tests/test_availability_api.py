"""Integration tests for the availability and cache administration endpoints."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability.container import get_container, reset_container
from apps.fleet.models import Location, ScheduledService, Vehicle
from apps.rentals.models import Customer, Rental


class AvailabilityAPITests(APITestCase):
    """Cached availability checks stay consistent with reservations and maintenance."""

    def setUp(self) -> None:
        reset_container()
        self.today = timezone.localdate()
        self.location = Location.objects.create(name="Downtown", city="Bogota")
        self.other_location = Location.objects.create(name="Airport", city="Bogota")
        self.sedan = Vehicle.objects.create(
            brand="Toyota",
            model="Corolla",
            year=2023,
            vehicle_type="sedan",
            license_plate="AAA111",
            daily_rate=Decimal("45.00"),
            location=self.location,
        )
        self.suv = Vehicle.objects.create(
            brand="Mazda",
            model="CX-5",
            year=2024,
            vehicle_type="suv",
            license_plate="BBB222",
            daily_rate=Decimal("80.00"),
            location=self.location,
        )
        Vehicle.objects.create(
            brand="Kia",
            model="Rio",
            year=2022,
            vehicle_type="sedan",
            license_plate="CCC333",
            daily_rate=Decimal("30.00"),
            location=self.other_location,
        )
        self.customer = Customer.objects.create(id="1234567890", full_name="Ana Gomez", address="Calle 1")
        self.url = reverse("check-availability")

    def tearDown(self) -> None:
        reset_container()

    def _payload(self, start_offset: int, end_offset: int, **extra) -> dict:
        return {
            "location_id": self.location.pk,
            "start_date": str(self.today + timedelta(days=start_offset)),
            "end_date": str(self.today + timedelta(days=end_offset)),
            **extra,
        }

    def _available_ids(self, response) -> list[int]:
        return [vehicle["id"] for vehicle in response.data["available_vehicles"]]

    def test_lists_vehicles_at_location(self) -> None:
        response = self.client.post(self.url, self._payload(1, 4), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(sorted(self._available_ids(response)), [self.sedan.pk, self.suv.pk])
        self.assertEqual(response.data["total_count"], 2)
        self.assertEqual(response.data["search_criteria"]["rental_days"], 3)

    def test_type_and_rate_filters(self) -> None:
        response = self.client.post(
            self.url,
            self._payload(1, 4, vehicle_type="SUV", min_daily_rate="50.00"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(self._available_ids(response), [self.suv.pk])

    def test_repeated_check_is_a_cache_hit(self) -> None:
        self.client.post(self.url, self._payload(1, 4), format="json")
        self.client.post(self.url, self._payload(1, 4), format="json")

        stats = self.client.get(reverse("cache-stats")).data
        self.assertEqual(stats["hit_count"], 1)
        self.assertEqual(stats["miss_count"], 1)
        self.assertEqual(stats["size"], 1)

    def test_all_validation_errors_are_returned(self) -> None:
        payload = self._payload(-2, -3)
        payload["location_id"] = 0

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data["errors"],
            [
                "Location ID must be greater than 0.",
                "Start date cannot be in the past.",
                "End date must be after start date.",
            ],
        )
        self.assertEqual(len(get_container().store), 0)

    def test_datetime_payload_is_accepted(self) -> None:
        payload = self._payload(1, 3)
        payload["start_date"] += "T10:30:00"
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["search_criteria"]["rental_days"], 2)

    def test_new_rental_is_visible_immediately(self) -> None:
        first = self.client.post(self.url, self._payload(3, 6), format="json")
        self.assertIn(self.sedan.pk, self._available_ids(first))

        created = self.client.post(
            reverse("rental-create"),
            {
                "customer_id": self.customer.pk,
                "vehicle_id": self.sedan.pk,
                "location_id": self.location.pk,
                "start_date": str(self.today + timedelta(days=4)),
                "end_date": str(self.today + timedelta(days=8)),
            },
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)

        second = self.client.post(self.url, self._payload(3, 6), format="json")
        self.assertEqual(self._available_ids(second), [self.suv.pk])
        self.assertEqual(second.data["conflicting_reservations"][0]["id"], created.data["id"])

    def test_back_to_back_period_stays_available(self) -> None:
        Rental.objects.create(
            customer=self.customer,
            vehicle=self.sedan,
            location=self.location,
            start_date=self.today + timedelta(days=1),
            end_date=self.today + timedelta(days=3),
        )

        response = self.client.post(self.url, self._payload(3, 5), format="json")

        self.assertIn(self.sedan.pk, self._available_ids(response))

    def test_scheduled_maintenance_blocks_vehicle(self) -> None:
        service_day = self.today + timedelta(days=2)
        ScheduledService.objects.create(
            vehicle=self.suv,
            location=self.location,
            service_type="oil_change",
            scheduled_date=timezone.make_aware(datetime.combine(service_day, time(9, 0))),
        )

        response = self.client.post(self.url, self._payload(1, 4), format="json")

        self.assertEqual(self._available_ids(response), [self.sedan.pk])
        self.assertEqual(len(response.data["blocking_services"]), 1)

    def test_vehicle_taken_out_of_pool_invalidates_cached_result(self) -> None:
        self.client.post(self.url, self._payload(1, 4), format="json")

        self.suv.is_available = False
        self.suv.save()

        response = self.client.post(self.url, self._payload(1, 4), format="json")
        self.assertEqual(self._available_ids(response), [self.sedan.pk])

    def test_clear_cache_domain(self) -> None:
        self.client.post(self.url, self._payload(1, 4), format="json")

        response = self.client.post(reverse("cache-clear"), {"domain": "vehicles"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["evicted"], 1)
        self.assertEqual(len(get_container().store), 0)

    def test_clear_cache_rejects_unknown_domain(self) -> None:
        response = self.client.post(reverse("cache-clear"), {"domain": "everything"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
