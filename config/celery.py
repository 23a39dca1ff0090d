import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("car_rental")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Reserved rentals whose start date has arrived become active - hourly
    "activate-started-rentals": {
        "task": "rentals.activate_started_rentals",
        "schedule": crontab(minute=5),
    },
    # Rentals past their end date are completed - hourly
    "complete-finished-rentals": {
        "task": "rentals.complete_finished_rentals",
        "schedule": crontab(minute=15),
    },
}
