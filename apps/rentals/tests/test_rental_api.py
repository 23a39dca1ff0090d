"""Integration tests for rental and customer endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.availability.cache import keys
from apps.availability.container import get_container, reset_container
from apps.fleet.models import Location, Vehicle
from apps.rentals.models import Customer, Rental


class RentalAPITests(APITestCase):
    """Covers creation, conflicts, modification, cancellation and history."""

    def setUp(self) -> None:
        reset_container()
        self.today = timezone.localdate()
        self.location = Location.objects.create(name="Centro", city="Cali")
        self.vehicle = Vehicle.objects.create(
            brand="Nissan",
            model="Versa",
            year=2023,
            vehicle_type="sedan",
            license_plate="NVS001",
            daily_rate=Decimal("40.00"),
            location=self.location,
        )
        self.customer = Customer.objects.create(id="7654321", full_name="Jorge Diaz", address="Calle 5")

    def tearDown(self) -> None:
        reset_container()

    def _payload(self, start: int, end: int) -> dict:
        return {
            "customer_id": self.customer.pk,
            "vehicle_id": self.vehicle.pk,
            "location_id": self.location.pk,
            "start_date": str(self.today + timedelta(days=start)),
            "end_date": str(self.today + timedelta(days=end)),
        }

    def test_create_rental(self) -> None:
        response = self.client.post(reverse("rental-create"), self._payload(1, 4), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], Rental.Status.RESERVED)
        self.assertEqual(response.data["duration_days"], 3)
        self.assertEqual(response.data["total_cost"], "120.00")

    def test_overlap_answers_conflict(self) -> None:
        self.client.post(reverse("rental-create"), self._payload(1, 4), format="json")

        response = self.client.post(reverse("rental-create"), self._payload(2, 5), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertIn("already reserved", response.data["message"])

    def test_unknown_customer_answers_not_found(self) -> None:
        payload = self._payload(1, 2)
        payload["customer_id"] = "9999999"

        response = self.client.post(reverse("rental-create"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_modify_and_cancel(self) -> None:
        rental_id = self.client.post(reverse("rental-create"), self._payload(1, 4), format="json").data["id"]
        url = reverse("rental-detail", args=[rental_id])

        modified = self.client.put(
            url,
            {"new_end_date": str(self.today + timedelta(days=6))},
            format="json",
        )
        self.assertEqual(modified.status_code, status.HTTP_200_OK, modified.data)
        self.assertEqual(modified.data["status"], Rental.Status.MODIFIED)
        self.assertEqual(modified.data["duration_days"], 5)

        cancelled = self.client.delete(url)
        self.assertEqual(cancelled.status_code, status.HTTP_200_OK, cancelled.data)
        self.assertEqual(cancelled.data["status"], Rental.Status.CANCELLED)

        again = self.client.delete(url)
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

    def test_modify_requires_a_change(self) -> None:
        rental_id = self.client.post(reverse("rental-create"), self._payload(1, 4), format="json").data["id"]
        response = self.client.put(reverse("rental-detail", args=[rental_id]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_rental(self) -> None:
        rental_id = self.client.post(reverse("rental-create"), self._payload(1, 4), format="json").data["id"]
        self.assertEqual(self.client.get(reverse("rental-detail", args=[rental_id])).data["id"], rental_id)
        self.assertEqual(
            self.client.get(reverse("rental-detail", args=[rental_id + 100])).status_code,
            status.HTTP_404_NOT_FOUND,
        )

    def test_history_is_cached_and_refreshed_after_mutation(self) -> None:
        history_url = reverse("customer-rental-history", args=[self.customer.pk])

        empty = self.client.get(history_url)
        self.assertEqual(empty.status_code, status.HTTP_200_OK)
        self.assertEqual(empty.data["total_count"], 0)
        self.assertTrue(get_container().store.has(keys.rental_history(self.customer.pk)))

        self.client.post(reverse("rental-create"), self._payload(1, 4), format="json")

        refreshed = self.client.get(history_url)
        self.assertEqual(refreshed.data["total_count"], 1)
        self.assertEqual(refreshed.data["rentals"][0]["vehicle"], "2023 Nissan Versa")

    def test_history_of_unknown_customer(self) -> None:
        response = self.client.get(reverse("customer-rental-history", args=["0000000"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CustomerAPITests(APITestCase):

    def setUp(self) -> None:
        reset_container()

    def tearDown(self) -> None:
        reset_container()

    def test_register_then_fetch(self) -> None:
        response = self.client.post(
            reverse("customer-register"),
            {"customer_id": "1098765432", "full_name": "Paula Torres", "address": "Calle 10 #5-20"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        detail = self.client.get(reverse("customer-detail", args=["1098765432"]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data["full_name"], "Paula Torres")
        self.assertEqual(detail.data, response.data)
        self.assertFalse(detail.data["has_active_rentals"])

    def test_register_validation_and_duplicates(self) -> None:
        invalid = self.client.post(
            reverse("customer-register"),
            {"customer_id": "12", "full_name": "Paula", "address": ""},
            format="json",
        )
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(len(invalid.data["errors"]), 3)

        payload = {"customer_id": "1098765432", "full_name": "Paula Torres", "address": "Calle 10"}
        self.client.post(reverse("customer-register"), payload, format="json")
        duplicate = self.client.post(reverse("customer-register"), payload, format="json")
        self.assertEqual(duplicate.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_customer(self) -> None:
        response = self.client.get(reverse("customer-detail", args=["0000000"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
