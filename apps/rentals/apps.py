from django.apps import AppConfig


class RentalsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.rentals"
    verbose_name = "Rentals"

    def ready(self) -> None:
        from shared.application.message_bus import message_bus

        from .application.event_handlers import register_event_handlers

        register_event_handlers(message_bus)
