"""
Rental Command Handlers

Use cases that change reservations. Each handler runs inside a
``DjangoUnitOfWork``; once the transaction commits, the affected cache
entries are invalidated and the domain events are published, both
before ``handle`` returns.

Commands:
- RegisterCustomerCommand: Register a new customer
- CreateRentalCommand: Reserve a vehicle for a period
- ModifyRentalCommand: Change dates, vehicle or customer of a rental
- CancelRentalCommand: Cancel a rental that has not started
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional
import logging

from django.utils import timezone  # type: ignore

from shared.application.message_bus import MessageBus, message_bus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ConflictError, NotFoundError, ValidationError
from shared.domain.value_objects import DateRange
from apps.availability.cache import keys
from apps.availability.domain.conflicts import blocking_services, conflicting_reservations
from apps.availability.domain.query import MAX_RENTAL_DAYS
from apps.availability.invalidation import MutationKind
from apps.availability.service import AvailabilityService
from apps.fleet.models import Location, ScheduledService, Vehicle
from apps.rentals.application.queries import customer_detail
from apps.rentals.domain.events import RentalCancelled, RentalCreated, RentalModified
from apps.rentals.models import Customer, Rental

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class RegisterCustomerCommand:
    customer_id: str
    full_name: str
    address: str


@dataclass
class CreateRentalCommand:
    """Reserve ``vehicle_id`` for ``customer_id`` over [start_date, end_date)"""
    customer_id: str
    vehicle_id: int
    location_id: int
    start_date: date
    end_date: date


@dataclass
class ModifyRentalCommand:
    """Fields left as ``None`` keep their current value"""
    rental_id: int
    new_start_date: Optional[date] = None
    new_end_date: Optional[date] = None
    new_vehicle_id: Optional[int] = None
    new_customer_id: Optional[str] = None


@dataclass
class CancelRentalCommand:
    rental_id: int


# ===== Shared rules =====

def rental_period_errors(start_date: date, end_date: date, today: date, max_days: int = MAX_RENTAL_DAYS) -> List[str]:
    errors = []
    if start_date < today:
        errors.append("Start date cannot be in the past.")
    if end_date <= start_date:
        errors.append("End date must be after start date.")
    elif (end_date - start_date).days > max_days:
        errors.append(f"Rental period cannot exceed {max_days} days.")
    return errors


def ensure_vehicle_free(vehicle: Vehicle, dates: DateRange, exclude_rental_id: Optional[int] = None) -> None:
    """
    Raise ConflictError unless the vehicle can be rented for ``dates``

    Applies the same overlap and maintenance rules as the availability
    resolver, against the locked vehicle row.
    """
    if not vehicle.is_available:
        raise ConflictError(f"Vehicle {vehicle.pk} is not available for rental.")

    reservations = [
        rental.to_interval()
        for rental in Rental.objects.filter(vehicle_id=vehicle.pk).exclude(
            status__in=[Rental.Status.CANCELLED, Rental.Status.COMPLETED]
        )
    ]
    overlapping = conflicting_reservations(reservations, dates, exclude_id=exclude_rental_id)
    if overlapping:
        raise ConflictError(
            f"Vehicle {vehicle.pk} is already reserved for {dates}. "
            f"Found {len(overlapping)} overlapping rental(s)."
        )

    services = [
        service.to_window()
        for service in ScheduledService.objects.filter(
            vehicle_id=vehicle.pk,
            scheduled_date__date__gte=dates.start_date,
            scheduled_date__date__lt=dates.end_date,
        )
    ]
    if blocking_services(services, dates):
        raise ConflictError(f"Vehicle {vehicle.pk} has scheduled maintenance during {dates}.")


def _lock_vehicle(vehicle_id: int) -> Vehicle:
    try:
        return Vehicle.objects.select_for_update().get(pk=vehicle_id)
    except Vehicle.DoesNotExist:
        raise NotFoundError(f"Vehicle {vehicle_id} not found.")


def _get_customer(customer_id: str) -> Customer:
    try:
        return Customer.objects.get(pk=customer_id)
    except Customer.DoesNotExist:
        raise NotFoundError(f"Customer {customer_id} not found.")


# ===== Command Handlers =====

class RegisterCustomerHandler:
    """Registers a customer and primes its cache entry"""

    def __init__(self, availability: AvailabilityService):
        self.availability = availability

    def handle(self, command: RegisterCustomerCommand) -> Customer:
        customer_id = (command.customer_id or '').strip()
        errors = Customer.validation_errors(customer_id, command.full_name, command.address)
        if errors:
            raise ValidationError(errors)

        with DjangoUnitOfWork() as uow:
            if Customer.objects.filter(pk=customer_id).exists():
                raise ConflictError(f"Customer {customer_id} is already registered.")
            customer = Customer.objects.create(
                id=customer_id,
                full_name=' '.join(command.full_name.split()),
                address=command.address.strip(),
            )
            uow.after_commit(lambda: self.availability.cache.store.set(
                keys.customer(customer.pk),
                customer_detail(customer),
                self.availability.ttl.customers,
            ))

        logger.info(f"Customer registered: {customer.pk}")
        return customer


class CreateRentalHandler:
    """
    Handler for CreateRental command

    Double booking prevention:
    1. Validate the period (all violated rules reported together)
    2. Lock the vehicle row (SELECT FOR UPDATE)
    3. Re-check location, availability flag, overlapping rentals and
       pending maintenance against the locked row
    4. Insert the rental and commit
    5. Invalidate the location's availability and the customer's history
    """

    def __init__(
        self,
        availability: AvailabilityService,
        bus: MessageBus = message_bus,
        today: Callable[[], date] = timezone.localdate,
    ):
        self.availability = availability
        self.bus = bus
        self.today = today

    def handle(self, command: CreateRentalCommand) -> Rental:
        logger.info(
            f"Creating rental for vehicle {command.vehicle_id}, "
            f"customer {command.customer_id}, dates {command.start_date} - {command.end_date}"
        )

        errors = rental_period_errors(
            command.start_date, command.end_date, self.today(), self.availability.resolver.max_rental_days
        )
        if errors:
            raise ValidationError(errors)
        dates = DateRange(command.start_date, command.end_date)

        customer = _get_customer(command.customer_id)
        if not Location.objects.filter(pk=command.location_id).exists():
            raise NotFoundError(f"Location {command.location_id} not found.")

        with DjangoUnitOfWork() as uow:
            vehicle = _lock_vehicle(command.vehicle_id)
            if vehicle.location_id != command.location_id:
                raise ConflictError(
                    f"Vehicle {vehicle.pk} is not available at location {command.location_id}."
                )
            ensure_vehicle_free(vehicle, dates)

            rental = Rental.objects.create(
                customer=customer,
                vehicle=vehicle,
                location_id=command.location_id,
                start_date=dates.start_date,
                end_date=dates.end_date,
                status=Rental.Status.RESERVED,
            )

            event = RentalCreated(
                aggregate_id=rental.pk,
                rental_id=rental.pk,
                customer_id=customer.pk,
                vehicle_id=vehicle.pk,
                location_id=rental.location_id,
                start_date=rental.start_date,
                end_date=rental.end_date,
            )
            uow.after_commit(lambda: self.availability.on_reservation_mutated(
                rental.location_id, customer.pk, mutation=MutationKind.CREATED,
            ))
            uow.after_commit(lambda: self.bus.publish_events([event]))

        logger.info(f"Rental created: {rental.pk}")
        return rental


class ModifyRentalHandler:
    """
    Handler for ModifyRental command

    The rental being modified never conflicts with itself. Cache
    entries of both the previous and the new location and customer are
    invalidated.
    """

    def __init__(
        self,
        availability: AvailabilityService,
        bus: MessageBus = message_bus,
        today: Callable[[], date] = timezone.localdate,
    ):
        self.availability = availability
        self.bus = bus
        self.today = today

    def handle(self, command: ModifyRentalCommand) -> Rental:
        logger.info(f"Modifying rental {command.rental_id}")

        with DjangoUnitOfWork() as uow:
            try:
                rental = Rental.objects.select_for_update().get(pk=command.rental_id)
            except Rental.DoesNotExist:
                raise NotFoundError(f"Rental {command.rental_id} not found.")
            rental.ensure_modifiable()

            previous_location_id = rental.location_id
            previous_customer_id = rental.customer_id
            previous_vehicle_id = rental.vehicle_id

            start_date = command.new_start_date or rental.start_date
            end_date = command.new_end_date or rental.end_date
            if (start_date, end_date) != (rental.start_date, rental.end_date):
                errors = rental_period_errors(
                    start_date, end_date, self.today(), self.availability.resolver.max_rental_days
                )
                if errors:
                    raise ValidationError(errors)
                rental.modify_dates(start_date, end_date, today=self.today())

            if command.new_customer_id and command.new_customer_id != rental.customer_id:
                rental.customer = _get_customer(command.new_customer_id)

            vehicle_id = command.new_vehicle_id or rental.vehicle_id
            vehicle = _lock_vehicle(vehicle_id)
            if vehicle.pk != previous_vehicle_id:
                rental.vehicle = vehicle
                rental.location_id = vehicle.location_id
            ensure_vehicle_free(vehicle, rental.dates, exclude_rental_id=rental.pk)

            rental.status = Rental.Status.MODIFIED
            rental.save()

            event = RentalModified(
                aggregate_id=rental.pk,
                rental_id=rental.pk,
                customer_id=rental.customer_id,
                vehicle_id=rental.vehicle_id,
                location_id=rental.location_id,
                start_date=rental.start_date,
                end_date=rental.end_date,
                previous_customer_id=previous_customer_id,
                previous_vehicle_id=previous_vehicle_id,
                previous_location_id=previous_location_id,
            )
            uow.after_commit(lambda: self.availability.on_reservation_mutated(
                rental.location_id,
                rental.customer_id,
                previous_location_id=previous_location_id,
                previous_customer_id=previous_customer_id,
                mutation=MutationKind.MODIFIED,
            ))
            uow.after_commit(lambda: self.bus.publish_events([event]))

        logger.info(f"Rental modified: {rental.pk}")
        return rental


class CancelRentalHandler:

    def __init__(
        self,
        availability: AvailabilityService,
        bus: MessageBus = message_bus,
        today: Callable[[], date] = timezone.localdate,
    ):
        self.availability = availability
        self.bus = bus
        self.today = today

    def handle(self, command: CancelRentalCommand) -> Rental:
        logger.info(f"Cancelling rental {command.rental_id}")

        with DjangoUnitOfWork() as uow:
            try:
                rental = Rental.objects.select_for_update().get(pk=command.rental_id)
            except Rental.DoesNotExist:
                raise NotFoundError(f"Rental {command.rental_id} not found.")

            rental.cancel(today=self.today())
            rental.save(update_fields=["status", "cancelled_at", "updated_at"])

            event = RentalCancelled(
                aggregate_id=rental.pk,
                rental_id=rental.pk,
                customer_id=rental.customer_id,
                vehicle_id=rental.vehicle_id,
                location_id=rental.location_id,
            )
            uow.after_commit(lambda: self.availability.on_reservation_mutated(
                rental.location_id, rental.customer_id, mutation=MutationKind.CANCELLED,
            ))
            uow.after_commit(lambda: self.bus.publish_events([event]))

        logger.info(f"Rental cancelled: {rental.pk}")
        return rental

