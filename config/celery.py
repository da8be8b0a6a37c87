import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("vehicle_rental")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

@app.on_after_configure.connect
def setup_periodic_tasks(sender, **kwargs):  # type: ignore
    from django.conf import settings  # type: ignore

    interval = float(getattr(settings, "RESERVATIONS", {}).get("SWEEP_INTERVAL_SECONDS", 60))

    # Expire pending reservations whose hold deadline passed
    sender.add_periodic_task(
        interval,
        sender.signature("reservations.expire_pending_reservations"),
        name="expire-pending-reservations",
        expires=max(interval - 10, 1),
    )
