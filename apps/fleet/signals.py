"""Model signal handlers for fleet cache invalidation."""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from apps.availability.cache import keys
from apps.availability.container import get_container

from .models import Location, ScheduledService, Vehicle


@receiver(pre_save, sender=Vehicle)
def store_previous_location(sender, instance, **kwargs):
    """Remember the home location so a move invalidates both locations."""
    if not instance.pk:
        instance._previous_location_id = None
        return

    try:
        instance._previous_location_id = sender.objects.only("location_id").get(pk=instance.pk).location_id
    except sender.DoesNotExist:  # pragma: no cover - deleted concurrently
        instance._previous_location_id = None


@receiver([post_save, post_delete], sender=Vehicle)
def vehicle_cache_invalidator(sender, instance, **kwargs) -> None:
    """Flag, rate, type or location changes alter availability at the location."""
    previous_location_id = getattr(instance, "_previous_location_id", None)
    get_container().router.on_vehicle_changed(instance.pk, instance.location_id, previous_location_id)
    if hasattr(instance, "_previous_location_id"):
        delattr(instance, "_previous_location_id")


@receiver([post_save, post_delete], sender=ScheduledService)
def service_cache_invalidator(sender, instance, **kwargs) -> None:
    """A new, moved or closed maintenance window changes which vehicles are free."""
    vehicle_location_id = (
        Vehicle.objects.filter(pk=instance.vehicle_id).values_list("location_id", flat=True).first()
    )
    get_container().router.on_vehicle_changed(
        instance.vehicle_id,
        vehicle_location_id or instance.location_id,
        previous_location_id=instance.location_id,
    )


@receiver([post_save, post_delete], sender=Location)
def locations_cache_invalidator(**_: object) -> None:
    get_container().store.invalidate(keys.LOCATIONS_ALL)
