"""
Unit of Work

Wraps one database transaction and the domain events raised inside it.
Events reach the message bus only through transaction.on_commit(), so a
rolled back transition never notifies anyone.

Usage:
    with DjangoUnitOfWork() as uow:
        reservation = reservation_repo.get(reservation_id, lock=True)
        reservation.confirm(now)
        uow.collect_events(reservation)
        reservation_repo.save(reservation)
"""

from typing import List, Optional
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from shared.domain.base import Aggregate, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    def __init__(self, bus=None, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self._bus = bus
        self._atomic: Optional[transaction.Atomic] = None
        self._pending: List[DomainEvent] = []

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        events, self._pending = self._pending, []
        try:
            if exc_type is None and events:
                # Fires immediately when no outer atomic block is open
                transaction.on_commit(lambda: self._publish(events), using=self.using)
            elif exc_type is not None and events:
                logger.warning(
                    f"Transaction rolled back ({exc_type.__name__}), "
                    f"dropping {len(events)} unpublished events"
                )
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
            self._atomic = None

    @property
    def pending_events(self) -> List[DomainEvent]:
        return list(self._pending)

    def collect_events(self, aggregate: Aggregate):
        """Move the aggregate's buffered events into this unit of work"""
        events = aggregate.events
        if not events:
            return
        self._pending.extend(events)
        aggregate.clear_events()
        logger.debug(f"Collected {len(events)} events from {type(aggregate).__name__} {aggregate.id}")

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        try:
            bus.publish_events(events)
        except Exception as e:
            # The transaction is already committed; delivery is best effort
            logger.error(f"Error publishing events: {e}", exc_info=True)
