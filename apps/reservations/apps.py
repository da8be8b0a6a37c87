from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.reservations"
    verbose_name = "Reservations"

    def ready(self) -> None:  # pragma: no cover - import side effects
        from shared.application.message_bus import message_bus

        from .domain.events import ReservationTransitioned
        from .tasks import enqueue_transition_notification

        message_bus.register_event_handler(ReservationTransitioned, enqueue_transition_notification)
