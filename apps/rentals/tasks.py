"""Celery tasks for the rental domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.availability.container import get_container
from apps.availability.invalidation import MutationKind

from .models import Rental

logger = logging.getLogger(__name__)


def _invalidate(rental: Rental) -> None:
    # Only reaches the cache of the process running the task.
    get_container().service.on_reservation_mutated(
        rental.location_id, rental.customer_id, mutation=MutationKind.MODIFIED,
    )


# ============================================================================
# PERIODIC TASKS (Celery Beat)
# ============================================================================

@shared_task(name="rentals.activate_started_rentals")
def activate_started_rentals() -> dict[str, int]:
    """
    Reserved or modified rentals whose start date has arrived become active.

    Returns:
        dict: {"activated": number of rentals switched to active}
    """
    today = timezone.localdate()
    activated = 0

    rentals = Rental.objects.filter(
        status__in=[Rental.Status.RESERVED, Rental.Status.MODIFIED],
        start_date__lte=today,
        end_date__gt=today,
    )

    for rental in rentals:
        with transaction.atomic():
            rental.activate()
            rental.save(update_fields=["status", "updated_at"])
        _invalidate(rental)
        activated += 1

    if activated:
        logger.info(f"Activated {activated} rentals")
    return {"activated": activated}


@shared_task(name="rentals.complete_finished_rentals")
def complete_finished_rentals() -> dict[str, int]:
    """
    Rentals whose end date has passed are completed and release their vehicle.

    Returns:
        dict: {"completed": number of rentals switched to completed}
    """
    today = timezone.localdate()
    completed = 0

    rentals = Rental.objects.filter(
        status__in=[Rental.Status.RESERVED, Rental.Status.ACTIVE, Rental.Status.MODIFIED],
        end_date__lte=today,
    )

    for rental in rentals:
        with transaction.atomic():
            rental.complete()
            rental.save(update_fields=["status", "updated_at"])
        _invalidate(rental)
        completed += 1

    if completed:
        logger.info(f"Completed {completed} rentals")
    return {"completed": completed}
