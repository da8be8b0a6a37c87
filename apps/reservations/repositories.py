"""Persistence for the Reservation aggregate."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Tuple
from uuid import UUID

from django.core.exceptions import ValidationError  # type: ignore

from apps.vehicles.repositories import lock_queryset_if_possible
from shared.domain.exceptions import NotFound
from shared.domain.value_objects import Interval, Money

from .domain.entities import Reservation, ReservationStatus
from .domain.ledger import Hold
from .models import Reservation as ReservationModel


def to_domain(row: ReservationModel) -> Reservation:
    currency = row.currency
    return Reservation(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        vehicle_id=row.vehicle_id,
        renter_id=row.renter_id,
        interval=Interval(row.start_date, row.end_date),
        price_per_day=Money(row.price_per_day, currency),
        base_price=Money(row.base_price, currency),
        adjustments_total=Decimal(row.adjustments_total),
        total_price=Money(row.total_price, currency),
        price_breakdown=dict(row.price_breakdown or {}),
        status=ReservationStatus(row.status),
        expires_at=row.expires_at,
        confirmed_at=row.confirmed_at,
        cancelled_at=row.cancelled_at,
        expired_at=row.expired_at,
        cancellation_reason=row.cancellation_reason,
        conflicting_reservation_id=row.conflicting_reservation_id,
    )


def _as_hold(row) -> Hold:
    reservation_id, start_date, end_date = row
    return Hold(Interval(start_date, end_date), reservation_id)


class DjangoReservationRepository:
    """Maps Reservation aggregates to rows; all reads of blocking holds go through here."""

    def _queryset(self, reservation_id: UUID, lock: bool):
        try:
            queryset = ReservationModel.objects.filter(pk=reservation_id)
            if lock:
                queryset = lock_queryset_if_possible(queryset)
            return queryset
        except ValidationError:
            return ReservationModel.objects.none()

    def get_model(self, reservation_id: UUID, *, lock: bool = False) -> ReservationModel:
        row = self._queryset(reservation_id, lock).first()
        if row is None:
            raise NotFound(f"Reservation {reservation_id} not found", reservation_id=str(reservation_id))
        return row

    def get(self, reservation_id: UUID, *, lock: bool = False) -> Reservation:
        return to_domain(self.get_model(reservation_id, lock=lock))

    def vehicle_id_for(self, reservation_id: UUID) -> UUID:
        vehicle_id = self._queryset(reservation_id, False).values_list("vehicle_id", flat=True).first()
        if vehicle_id is None:
            raise NotFound(f"Reservation {reservation_id} not found", reservation_id=str(reservation_id))
        return vehicle_id

    def save(self, reservation: Reservation) -> ReservationModel:
        row, _ = ReservationModel.objects.update_or_create(
            id=reservation.id,
            defaults={
                "vehicle_id": reservation.vehicle_id,
                "renter_id": reservation.renter_id,
                "start_date": reservation.interval.start,
                "end_date": reservation.interval.end,
                "status": reservation.status.value,
                "price_per_day": reservation.price_per_day.amount,
                "base_price": reservation.base_price.amount,
                "adjustments_total": reservation.adjustments_total,
                "total_price": reservation.total_price.amount,
                "currency": reservation.total_price.currency,
                "price_breakdown": reservation.price_breakdown,
                "expires_at": reservation.expires_at,
                "confirmed_at": reservation.confirmed_at,
                "cancelled_at": reservation.cancelled_at,
                "expired_at": reservation.expired_at,
                "cancellation_reason": reservation.cancellation_reason,
                "conflicting_reservation_id": reservation.conflicting_reservation_id,
            },
            create_defaults={"created_at": reservation.created_at},
        )
        return row

    def find_blocking_overlap(self, vehicle_id: UUID, interval: Interval) -> Hold | None:
        """
        Ensure no persisted blocking reservation overlaps `interval`.

        Rows are locked when called inside transaction.atomic().
        """
        queryset = (
            ReservationModel.objects.blocking()
            .filter(vehicle_id=vehicle_id)
            .overlapping(interval.start, interval.end)
            .order_by("start_date")
        )
        queryset = lock_queryset_if_possible(queryset)
        row = queryset.values_list("id", "start_date", "end_date").first()
        return _as_hold(row) if row else None

    def blocking_holds_for(self, vehicle_id: UUID) -> List[Hold]:
        rows = (
            ReservationModel.objects.blocking()
            .filter(vehicle_id=vehicle_id)
            .values_list("id", "start_date", "end_date")
        )
        return [_as_hold(row) for row in rows]

    def blocking_holds(self) -> Iterator[Tuple[UUID, Hold]]:
        """Every (vehicle_id, hold) pair, used to rebuild the ledger at startup"""
        rows = (
            ReservationModel.objects.blocking()
            .order_by("vehicle_id", "start_date")
            .values_list("vehicle_id", "id", "start_date", "end_date")
            .iterator()
        )
        for vehicle_id, reservation_id, start_date, end_date in rows:
            yield vehicle_id, Hold(Interval(start_date, end_date), reservation_id)

    def overdue_pending(self, now: datetime) -> List[UUID]:
        return list(
            ReservationModel.objects.overdue(now)
            .order_by("expires_at")
            .values_list("id", flat=True)
        )
