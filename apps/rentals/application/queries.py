"""
Rental Queries

Read models for customers and their rental history, served through the
cache-aside layer. Entries are dictionaries so they survive the durable
backing unchanged.
"""

from typing import List
import logging

from shared.domain.exceptions import NotFoundError
from apps.availability.cache import keys
from apps.availability.service import AvailabilityService
from apps.rentals.models import Customer, Rental

logger = logging.getLogger(__name__)


def customer_to_dict(customer: Customer) -> dict:
    return {
        'id': customer.pk,
        'full_name': customer.full_name,
        'address': customer.address,
        'created_at': customer.created_at.isoformat() if customer.created_at else None,
    }


def customer_detail(customer: Customer) -> dict:
    """Shape of the cached ``api_customer_<id>`` entry"""
    data = customer_to_dict(customer)
    data['has_active_rentals'] = customer.has_active_rentals()
    return data


def rental_to_dict(rental: Rental) -> dict:
    vehicle = rental.vehicle
    return {
        'id': rental.pk,
        'customer_id': rental.customer_id,
        'vehicle_id': rental.vehicle_id,
        'vehicle': vehicle.full_name,
        'license_plate': vehicle.license_plate,
        'location_id': rental.location_id,
        'start_date': rental.start_date.isoformat(),
        'end_date': rental.end_date.isoformat(),
        'duration_days': rental.duration_days,
        'status': rental.status,
        'total_cost': str(vehicle.daily_rate * rental.duration_days),
    }


def get_customer(customer_id: str, availability: AvailabilityService) -> dict:
    """
    Customer detail, cached under ``api_customer_<id>``

    Reservation mutations evict the entry since ``has_active_rentals``
    depends on them.
    """

    def load() -> dict:
        try:
            customer = Customer.objects.get(pk=customer_id)
        except Customer.DoesNotExist:
            raise NotFoundError(f"Customer {customer_id} not found.")
        return customer_detail(customer)

    return availability.cached(keys.customer(customer_id), availability.ttl.customers, load)


def get_rental_history(customer_id: str, availability: AvailabilityService) -> List[dict]:
    """
    Every rental of a customer, newest first

    Cached under ``api_rental_history_<id>``; any reservation mutation
    touching the customer evicts it.
    """

    def load() -> List[dict]:
        if not Customer.objects.filter(pk=customer_id).exists():
            raise NotFoundError(f"Customer {customer_id} not found.")
        rentals = (
            Rental.objects.filter(customer_id=customer_id)
            .select_related("vehicle")
            .order_by("-start_date", "-id")
        )
        history = [rental_to_dict(rental) for rental in rentals]
        logger.debug(f"Loaded {len(history)} rentals for customer {customer_id}")
        return history

    return availability.cached(keys.rental_history(customer_id), availability.ttl.customers, load)
