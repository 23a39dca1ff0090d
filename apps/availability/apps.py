import atexit

from django.apps import AppConfig
from django.conf import settings


class AvailabilityConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.availability"
    verbose_name = "Availability"

    def ready(self) -> None:
        from .container import get_container, shutdown_container

        if getattr(settings, "AVAILABILITY_CACHE", {}).get("AUTOSTART", True):
            get_container().start()
            atexit.register(shutdown_container)
