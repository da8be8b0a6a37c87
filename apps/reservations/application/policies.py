"""Cancellation policies checked before the cancel transition."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone as dt_timezone

from shared.domain.exceptions import CancellationNotAllowed

from apps.reservations.domain.entities import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


class CancellationPolicy:
    """Base policy: raise CancellationNotAllowed to veto a cancellation."""

    def check(self, reservation: Reservation, now: datetime) -> None:
        raise NotImplementedError


class AllowAllCancellationPolicy(CancellationPolicy):
    def check(self, reservation: Reservation, now: datetime) -> None:
        return None


class CutoffCancellationPolicy(CancellationPolicy):
    """
    Confirmed reservations cannot be cancelled within `hours` of their start.

    Pending reservations are always cancellable. Start is midnight UTC of
    the first rental day.
    """

    def __init__(self, hours: int):
        self.cutoff = timedelta(hours=hours)

    def check(self, reservation: Reservation, now: datetime) -> None:
        if reservation.status != ReservationStatus.CONFIRMED:
            return
        starts_at = datetime.combine(reservation.interval.start, time.min, tzinfo=dt_timezone.utc)
        if now >= starts_at - self.cutoff:
            logger.info(
                f"Cancellation of reservation {reservation.id} refused: "
                f"within {self.cutoff} of start {starts_at}"
            )
            raise CancellationNotAllowed(
                f"Confirmed reservations cannot be cancelled less than "
                f"{int(self.cutoff.total_seconds() // 3600)}h before start",
                reservation_id=str(reservation.id),
                status=reservation.status.value,
            )


def build_cancellation_policy(cutoff_hours: int | None) -> CancellationPolicy:
    if cutoff_hours:
        return CutoffCancellationPolicy(cutoff_hours)
    return AllowAllCancellationPolicy()
