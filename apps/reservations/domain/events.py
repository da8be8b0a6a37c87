"""
Reservation Domain Events

Events that represent things that have happened to reservations.
These are published after successful transaction commits and consumed
by the notification layer (fire-and-forget).
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Interval


@dataclass(kw_only=True)
class ReservationTransitioned(DomainEvent):
    """
    Event: A reservation changed state

    Emitted for every transition, including the initial pending hold
    (from_state is None) and rejected attempts.

    Triggers:
    - Notify renter and vehicle owner
    - Update analytics
    """
    reservation_id: UUID
    vehicle_id: UUID
    renter_id: UUID
    from_state: str | None
    to_state: str
    interval: Interval

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.update({
            'reservation_id': str(self.reservation_id),
            'vehicle_id': str(self.vehicle_id),
            'renter_id': str(self.renter_id),
            'from_state': self.from_state,
            'to_state': self.to_state,
            'timestamp': self.occurred_at.isoformat(),
            'start': self.interval.start.isoformat(),
            'end': self.interval.end.isoformat(),
        })
        return payload
