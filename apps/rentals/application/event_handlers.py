"""Subscribers for rental domain events."""

import logging

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

from apps.rentals.domain.events import RentalCancelled, RentalCreated, RentalModified

audit_logger = logging.getLogger("apps.rentals.audit")

RENTAL_EVENTS = (RentalCreated, RentalModified, RentalCancelled)


def log_rental_event(event: DomainEvent) -> None:
    """Every rental event ends up in the structured audit log."""
    audit_logger.info(event.__class__.__name__, extra={"event": event.to_dict()})


def register_event_handlers(bus: MessageBus) -> None:
    for event_type in RENTAL_EVENTS:
        bus.register_event_handler(event_type, log_rental_event)
