"""Rental command handlers: conflict rules, state transitions and cache invalidation."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.availability.cache import keys
from apps.availability.container import AvailabilityContainer, get_container, reset_container
from apps.availability.domain.query import AvailabilityQuery
from apps.fleet.models import Location, ScheduledService, Vehicle
from apps.rentals.application.command_handlers import (
    CancelRentalCommand,
    CancelRentalHandler,
    CreateRentalCommand,
    CreateRentalHandler,
    ModifyRentalCommand,
    ModifyRentalHandler,
    RegisterCustomerCommand,
    RegisterCustomerHandler,
)
from apps.rentals.application.queries import get_customer
from apps.rentals.domain.events import RentalCancelled, RentalCreated, RentalModified
from apps.rentals.models import Customer, Rental
from shared.application.message_bus import MessageBus
from shared.domain.exceptions import ConflictError, NotFoundError, ValidationError


class RentalCommandTests(TestCase):

    def setUp(self) -> None:
        reset_container()
        self.container = get_container()
        self.service = self.container.service
        self.store = self.container.store
        self.bus = MessageBus()
        self.events = []
        for event_type in (RentalCreated, RentalModified, RentalCancelled):
            self.bus.register_event_handler(event_type, self.events.append)

        self.today = timezone.localdate()
        self.location = Location.objects.create(name="Downtown", city="Medellin")
        self.airport = Location.objects.create(name="Airport", city="Medellin")
        self.vehicle = Vehicle.objects.create(
            brand="Renault",
            model="Logan",
            year=2022,
            vehicle_type="sedan",
            license_plate="LOG123",
            daily_rate=Decimal("35.00"),
            location=self.location,
        )
        self.airport_vehicle = Vehicle.objects.create(
            brand="Chevrolet",
            model="Tracker",
            year=2024,
            vehicle_type="suv",
            license_plate="TRK456",
            daily_rate=Decimal("70.00"),
            location=self.airport,
        )
        self.customer = Customer.objects.create(id="1020304050", full_name="Luis Perez", address="Carrera 7")
        self.other_customer = Customer.objects.create(id="5040302010", full_name="Sara Ruiz", address="Calle 80")

    def tearDown(self) -> None:
        reset_container()

    def _day(self, offset: int):
        return self.today + timedelta(days=offset)

    def _create(self, start: int, end: int, vehicle=None, customer=None) -> Rental:
        vehicle = vehicle or self.vehicle
        command = CreateRentalCommand(
            customer_id=(customer or self.customer).pk,
            vehicle_id=vehicle.pk,
            location_id=vehicle.location_id,
            start_date=self._day(start),
            end_date=self._day(end),
        )
        return CreateRentalHandler(self.service, bus=self.bus).handle(command)

    def _seed_cache(self) -> None:
        self.store.set(keys.availability(self.location.pk, self._day(1), self._day(3)), "downtown")
        self.store.set(keys.availability(self.airport.pk, self._day(1), self._day(3)), "airport")
        self.store.set(keys.rental_history(self.customer.pk), [])
        self.store.set(keys.rental_history(self.other_customer.pk), [])

    def test_create_reserves_vehicle_and_invalidates(self) -> None:
        self._seed_cache()

        rental = self._create(1, 4)

        self.assertEqual(rental.status, Rental.Status.RESERVED)
        self.assertFalse(self.store.has(keys.availability(self.location.pk, self._day(1), self._day(3))))
        self.assertFalse(self.store.has(keys.rental_history(self.customer.pk)))
        self.assertTrue(self.store.has(keys.availability(self.airport.pk, self._day(1), self._day(3))))
        self.assertTrue(self.store.has(keys.rental_history(self.other_customer.pk)))
        self.assertEqual([type(event) for event in self.events], [RentalCreated])
        self.assertEqual(self.events[0].rental_id, rental.pk)

    def test_overlapping_rental_is_rejected(self) -> None:
        self._create(1, 4)

        with self.assertRaises(ConflictError):
            self._create(3, 6, customer=self.other_customer)
        self.assertEqual(Rental.objects.count(), 1)

    def test_back_to_back_rentals_are_allowed(self) -> None:
        self._create(1, 4)
        self._create(4, 6, customer=self.other_customer)
        self.assertEqual(Rental.objects.count(), 2)

    def test_cancelled_rental_frees_the_period(self) -> None:
        first = self._create(1, 4)
        CancelRentalHandler(self.service, bus=self.bus).handle(CancelRentalCommand(first.pk))

        second = self._create(1, 4, customer=self.other_customer)
        self.assertEqual(second.status, Rental.Status.RESERVED)

    def test_vehicle_must_be_at_requested_location(self) -> None:
        command = CreateRentalCommand(
            customer_id=self.customer.pk,
            vehicle_id=self.airport_vehicle.pk,
            location_id=self.location.pk,
            start_date=self._day(1),
            end_date=self._day(2),
        )
        with self.assertRaises(ConflictError):
            CreateRentalHandler(self.service, bus=self.bus).handle(command)

    def test_unavailable_vehicle_is_rejected(self) -> None:
        self.vehicle.is_available = False
        self.vehicle.save()
        with self.assertRaises(ConflictError):
            self._create(1, 2)

    def test_maintenance_blocks_new_rental(self) -> None:
        ScheduledService.objects.create(
            vehicle=self.vehicle,
            location=self.location,
            service_type="inspection",
            scheduled_date=timezone.make_aware(datetime.combine(self._day(2), time(8, 0))),
        )
        with self.assertRaises(ConflictError):
            self._create(1, 4)

    def test_unknown_customer_or_vehicle(self) -> None:
        with self.assertRaises(NotFoundError):
            CreateRentalHandler(self.service, bus=self.bus).handle(
                CreateRentalCommand("0000000", self.vehicle.pk, self.location.pk, self._day(1), self._day(2))
            )
        with self.assertRaises(NotFoundError):
            CreateRentalHandler(self.service, bus=self.bus).handle(
                CreateRentalCommand(self.customer.pk, 999999, self.location.pk, self._day(1), self._day(2))
            )

    def test_invalid_period_reports_every_rule(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._create(-2, -3)
        self.assertEqual(
            ctx.exception.errors,
            ["Start date cannot be in the past.", "End date must be after start date."],
        )

    def test_period_limit_follows_configured_maximum(self) -> None:
        container = AvailabilityContainer.build({"MAX_RENTAL_DAYS": 5, "SWEEP_ENABLED": False})
        command = CreateRentalCommand(
            self.customer.pk, self.vehicle.pk, self.location.pk, self._day(1), self._day(8)
        )

        with self.assertRaises(ValidationError) as ctx:
            CreateRentalHandler(container.service, bus=self.bus).handle(command)
        self.assertEqual(ctx.exception.errors, ["Rental period cannot exceed 5 days."])

        with self.assertRaises(ValidationError):
            container.service.check_availability(AvailabilityQuery(self.location.pk, self._day(1), self._day(8)))

        rental = self._create(1, 3)
        with self.assertRaises(ValidationError):
            ModifyRentalHandler(container.service, bus=self.bus).handle(
                ModifyRentalCommand(rental.pk, new_end_date=self._day(9))
            )

    def test_modify_dates_does_not_conflict_with_itself(self) -> None:
        rental = self._create(1, 4)

        modified = ModifyRentalHandler(self.service, bus=self.bus).handle(
            ModifyRentalCommand(rental.pk, new_start_date=self._day(2), new_end_date=self._day(6))
        )

        self.assertEqual(modified.status, Rental.Status.MODIFIED)
        self.assertEqual((modified.start_date, modified.end_date), (self._day(2), self._day(6)))

    def test_modify_into_another_rental_is_rejected(self) -> None:
        self._create(5, 8)
        rental = self._create(1, 4, customer=self.other_customer)

        with self.assertRaises(ConflictError):
            ModifyRentalHandler(self.service, bus=self.bus).handle(
                ModifyRentalCommand(rental.pk, new_end_date=self._day(6))
            )
        rental.refresh_from_db()
        self.assertEqual(rental.end_date, self._day(4))

    def test_modify_vehicle_and_customer_invalidates_both_sides(self) -> None:
        rental = self._create(1, 3)
        self._seed_cache()

        modified = ModifyRentalHandler(self.service, bus=self.bus).handle(
            ModifyRentalCommand(
                rental.pk,
                new_vehicle_id=self.airport_vehicle.pk,
                new_customer_id=self.other_customer.pk,
            )
        )

        self.assertEqual(modified.location_id, self.airport.pk)
        self.assertEqual(modified.customer_id, self.other_customer.pk)
        self.assertEqual(len(self.store), 0)
        event = self.events[-1]
        self.assertIsInstance(event, RentalModified)
        self.assertEqual(event.previous_location_id, self.location.pk)
        self.assertEqual(event.previous_customer_id, self.customer.pk)

    def test_customer_detail_tracks_created_and_cancelled_rentals(self) -> None:
        self.assertFalse(get_customer(self.customer.pk, self.service)["has_active_rentals"])

        rental = self._create(1, 4)
        self.assertTrue(get_customer(self.customer.pk, self.service)["has_active_rentals"])

        CancelRentalHandler(self.service, bus=self.bus).handle(CancelRentalCommand(rental.pk))
        self.assertFalse(get_customer(self.customer.pk, self.service)["has_active_rentals"])

    def test_customer_detail_follows_reassigned_rental(self) -> None:
        rental = self._create(1, 3)
        self.assertTrue(get_customer(self.customer.pk, self.service)["has_active_rentals"])
        self.assertFalse(get_customer(self.other_customer.pk, self.service)["has_active_rentals"])

        ModifyRentalHandler(self.service, bus=self.bus).handle(
            ModifyRentalCommand(rental.pk, new_customer_id=self.other_customer.pk)
        )

        self.assertFalse(get_customer(self.customer.pk, self.service)["has_active_rentals"])
        self.assertTrue(get_customer(self.other_customer.pk, self.service)["has_active_rentals"])

    def test_cancel_rules(self) -> None:
        rental = self._create(1, 3)
        handler = CancelRentalHandler(self.service, bus=self.bus)

        cancelled = handler.handle(CancelRentalCommand(rental.pk))
        self.assertEqual(cancelled.status, Rental.Status.CANCELLED)
        self.assertIsNotNone(cancelled.cancelled_at)

        with self.assertRaises(ConflictError):
            handler.handle(CancelRentalCommand(rental.pk))
        with self.assertRaises(NotFoundError):
            handler.handle(CancelRentalCommand(999999))

    def test_started_active_rental_cannot_be_cancelled(self) -> None:
        rental = Rental.objects.create(
            customer=self.customer,
            vehicle=self.vehicle,
            location=self.location,
            start_date=self._day(0),
            end_date=self._day(2),
            status=Rental.Status.ACTIVE,
        )
        with self.assertRaises(ConflictError):
            CancelRentalHandler(self.service, bus=self.bus).handle(CancelRentalCommand(rental.pk))

    def test_completed_rental_cannot_be_modified(self) -> None:
        rental = self._create(1, 3)
        Rental.objects.filter(pk=rental.pk).update(status=Rental.Status.COMPLETED)
        with self.assertRaises(ConflictError):
            ModifyRentalHandler(self.service, bus=self.bus).handle(
                ModifyRentalCommand(rental.pk, new_end_date=self._day(5))
            )


class RegisterCustomerTests(TestCase):

    def setUp(self) -> None:
        reset_container()
        self.service = get_container().service

    def tearDown(self) -> None:
        reset_container()

    def test_registers_and_caches_customer(self) -> None:
        customer = RegisterCustomerHandler(self.service).handle(
            RegisterCustomerCommand("1122334455", "  Maria   Lopez ", "Av. 68 #10")
        )

        self.assertEqual(customer.full_name, "Maria Lopez")
        cached = get_container().store.get(keys.customer("1122334455"))
        self.assertEqual(cached["full_name"], "Maria Lopez")

    def test_registered_detail_matches_loaded_detail(self) -> None:
        RegisterCustomerHandler(self.service).handle(
            RegisterCustomerCommand("1122334455", "Maria Lopez", "Av. 68 #10")
        )
        store = get_container().store
        self.assertTrue(store.has(keys.customer("1122334455")))
        primed = get_customer("1122334455", self.service)

        store.invalidate(keys.customer("1122334455"))
        loaded = get_customer("1122334455", self.service)

        self.assertEqual(primed, loaded)
        self.assertIs(primed["has_active_rentals"], False)

    def test_rejects_invalid_input_with_all_errors(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            RegisterCustomerHandler(self.service).handle(RegisterCustomerCommand("123", "Maria", " "))
        self.assertEqual(len(ctx.exception.errors), 3)

    def test_rejects_duplicate_id(self) -> None:
        Customer.objects.create(id="1122334455", full_name="Maria Lopez", address="Av. 68")
        with self.assertRaises(ConflictError):
            RegisterCustomerHandler(self.service).handle(
                RegisterCustomerCommand("1122334455", "Other Person", "Somewhere")
            )
