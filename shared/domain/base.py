"""
Domain building blocks shared by the reservation and vehicle apps.

- ValueObject: immutable, compared by value
- Aggregate: identity plus a buffer of events awaiting publication
- DomainEvent: a fact about an aggregate, serialisable for task payloads
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValueObject(ABC):
    """Marker base; subclasses are frozen dataclasses."""


@dataclass(eq=False)
class Aggregate(ABC):
    """
    Aggregate root with identity equality

    State changes append events; the unit of work drains them and
    publishes them once the surrounding transaction has committed.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def __eq__(self, other):
        return type(other) is type(self) and other.id == self.id

    def __hash__(self):
        return hash((type(self).__name__, self.id))

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Snapshot of events not yet handed to a unit of work"""
        return list(self._events)


@dataclass
class DomainEvent:
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
        }
