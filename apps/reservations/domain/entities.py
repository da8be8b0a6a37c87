"""
Reservation Domain Entities

Core business entities for the reservation domain:
- Reservation: Aggregate modelling a single booking request
- ReservationStatus: FSM states for the reservation lifecycle
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from shared.domain.base import Aggregate
from shared.domain.exceptions import InvalidTransition
from shared.domain.value_objects import Interval, Money

from apps.reservations.domain.events import ReservationTransitioned
from apps.reservations.domain.pricing import Quote


class ReservationStatus(Enum):
    """
    Reservation Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (external confirmation signal)
    - PENDING -> EXPIRED (hold timeout reached, applied by the sweep)
    - PENDING -> CANCELLED (renter cancelled before confirmation)
    - CONFIRMED -> CANCELLED (renter cancelled, subject to policy)

    REJECTED is only ever an initial state: the interval was taken.
    """
    PENDING = 'pending'            # Interval held, awaiting confirmation
    CONFIRMED = 'confirmed'        # Interval held, finalized
    CANCELLED = 'cancelled'        # Interval released, terminal
    EXPIRED = 'expired'            # Hold timed out, terminal
    REJECTED = 'rejected'          # Never held an interval, terminal

    @property
    def is_blocking(self) -> bool:
        return self in BLOCKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


BLOCKING_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset({
    ReservationStatus.CANCELLED,
    ReservationStatus.EXPIRED,
    ReservationStatus.REJECTED,
})

TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    }),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CANCELLED}),
}


@dataclass(eq=False, kw_only=True)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    Represents a renter's request to book a vehicle for an interval.

    Key invariants:
    - The interval is a valid half-open day range (enforced by Interval)
    - The price snapshot is captured at creation and never recomputed
    - expires_at only matters while PENDING
    - Only PENDING and CONFIRMED reservations block the vehicle's timeline
    """

    vehicle_id: UUID
    renter_id: UUID
    interval: Interval

    # Price snapshot
    price_per_day: Money
    base_price: Money
    adjustments_total: Decimal = Decimal('0.00')
    total_price: Money
    price_breakdown: dict = field(default_factory=dict)

    status: ReservationStatus = ReservationStatus.PENDING
    expires_at: Optional[datetime] = None

    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    cancellation_reason: str = ''
    conflicting_reservation_id: Optional[UUID] = None

    @classmethod
    def hold(
        cls,
        *,
        vehicle_id: UUID,
        renter_id: UUID,
        quote: Quote,
        now: datetime,
        hold_duration: timedelta,
        reservation_id: UUID | None = None,
    ) -> 'Reservation':
        """Create a PENDING reservation whose interval is already held"""
        reservation = cls._from_quote(
            reservation_id=reservation_id or uuid4(),
            vehicle_id=vehicle_id,
            renter_id=renter_id,
            quote=quote,
            now=now,
            status=ReservationStatus.PENDING,
        )
        reservation.expires_at = now + hold_duration
        reservation._record(None, ReservationStatus.PENDING, now)
        return reservation

    @classmethod
    def rejected(
        cls,
        *,
        vehicle_id: UUID,
        renter_id: UUID,
        quote: Quote,
        now: datetime,
        conflicting_reservation_id: UUID | None = None,
        reservation_id: UUID | None = None,
    ) -> 'Reservation':
        """Create a REJECTED audit record; it never occupies the timeline"""
        reservation = cls._from_quote(
            reservation_id=reservation_id or uuid4(),
            vehicle_id=vehicle_id,
            renter_id=renter_id,
            quote=quote,
            now=now,
            status=ReservationStatus.REJECTED,
        )
        reservation.conflicting_reservation_id = conflicting_reservation_id
        reservation._record(None, ReservationStatus.REJECTED, now)
        return reservation

    @classmethod
    def _from_quote(cls, *, reservation_id, vehicle_id, renter_id, quote, now, status):
        return cls(
            id=reservation_id,
            created_at=now,
            updated_at=now,
            vehicle_id=vehicle_id,
            renter_id=renter_id,
            interval=quote.interval,
            price_per_day=quote.price_per_day,
            base_price=quote.base_price,
            adjustments_total=quote.adjustments_total,
            total_price=quote.total,
            price_breakdown=quote.to_dict(),
            status=status,
        )

    def confirm(self, now: datetime):
        """
        Confirm reservation (PENDING -> CONFIRMED)

        Driven by the external confirmation signal (payment/approval).
        """
        self._transition(ReservationStatus.CONFIRMED, now)
        self.confirmed_at = now
        self.expires_at = None

    def cancel(self, now: datetime, reason: str = ''):
        """
        Cancel reservation (PENDING/CONFIRMED -> CANCELLED)

        The caller releases the held interval.
        """
        self._transition(ReservationStatus.CANCELLED, now)
        self.cancelled_at = now
        self.cancellation_reason = reason

    def expire(self, now: datetime):
        """
        Expire reservation (PENDING -> EXPIRED)

        Only applies once the hold deadline has passed. Never applies
        to CONFIRMED reservations.
        """
        if self.status != ReservationStatus.PENDING:
            raise InvalidTransition(
                f"Cannot expire reservation {self.id} with status {self.status.value}. "
                f"Only pending reservations can expire.",
                reservation_id=str(self.id),
                status=self.status.value,
            )
        if not self.is_overdue(now):
            raise InvalidTransition(
                f"Reservation {self.id} hold is valid until {self.expires_at}",
                reservation_id=str(self.id),
                status=self.status.value,
            )
        self._transition(ReservationStatus.EXPIRED, now)
        self.expired_at = now

    def is_overdue(self, now: datetime) -> bool:
        """Check if the hold deadline has passed"""
        if self.status != ReservationStatus.PENDING or self.expires_at is None:
            return False
        return now >= self.expires_at

    def blocks_interval(self) -> bool:
        return self.status.is_blocking

    def _transition(self, target: ReservationStatus, now: datetime):
        allowed = TRANSITIONS.get(self.status, frozenset())
        if target not in allowed:
            raise InvalidTransition(
                f"Cannot move reservation {self.id} from {self.status.value} to {target.value}",
                reservation_id=str(self.id),
                status=self.status.value,
            )
        previous = self.status
        self.status = target
        self.updated_at = now
        self._record(previous, target, now)

    def _record(self, previous: ReservationStatus | None, target: ReservationStatus, now: datetime):
        self.add_event(ReservationTransitioned(
            aggregate_id=self.id,
            occurred_at=now,
            reservation_id=self.id,
            vehicle_id=self.vehicle_id,
            renter_id=self.renter_id,
            from_state=previous.value if previous else None,
            to_state=target.value,
            interval=self.interval,
        ))

    @property
    def days(self) -> int:
        return self.interval.duration_days

    def __str__(self):
        return f"Reservation {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Reservation(id={self.id}, vehicle_id={self.vehicle_id}, "
            f"status={self.status.value}, interval={self.interval!r})"
        )
