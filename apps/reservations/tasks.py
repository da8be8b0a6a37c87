"""Celery tasks for the reservation domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .domain.events import ReservationTransitioned
from .services import get_engine

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="reservations.expire_pending_reservations")
def expire_pending_reservations() -> dict[str, int]:
    """
    Expire pending reservations whose hold deadline has passed.

    Runs every RESERVATIONS["SWEEP_INTERVAL_SECONDS"] through Celery Beat.

    Returns:
        dict: {"expired": ..., "skipped": ..., "failed": ...}
    """
    result = get_engine().expire_overdue()
    return result.to_dict()


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@shared_task(name="reservations.notify_transition", ignore_result=True)
def notify_transition(payload: dict) -> None:
    """
    Hand a transition event to the notification consumer.

    Delivery itself lives outside this service; the payload carries
    everything a consumer needs to address renter and owner.
    """
    logger.info(
        f"Reservation {payload.get('reservation_id')} "
        f"{payload.get('from_state') or 'new'} -> {payload.get('to_state')} "
        f"(vehicle {payload.get('vehicle_id')}, renter {payload.get('renter_id')}, "
        f"{payload.get('start')} to {payload.get('end')})"
    )


def enqueue_transition_notification(event: ReservationTransitioned) -> None:
    """Message bus handler: queue the notification task after commit."""
    notify_transition.delay(event.to_dict())
