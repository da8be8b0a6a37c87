"""
Availability Ledger

This is the CRITICAL component for preventing double bookings.
All holds on a vehicle's timeline MUST go through this ledger.

Each vehicle has its own timeline: an ordered set of non-overlapping
holds owned by reservations in a blocking status (pending or confirmed).
A timeline is guarded by its own re-entrant lock, so check-and-insert is
a single atomic step per vehicle while different vehicles never contend.

Strategy (Defense in Depth):
1. In-process: per-vehicle critical section around check-and-insert
2. Database: SELECT FOR UPDATE on the vehicle row plus an overlap query
   against persisted blocking reservations (see repositories)
"""

from __future__ import annotations

import logging
import threading
from bisect import bisect_left, insort
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Iterator, List, Tuple
from uuid import UUID

from shared.domain.exceptions import Conflict
from shared.domain.value_objects import Interval, to_calendar_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Hold:
    """An interval held on a vehicle's timeline by one reservation"""
    interval: Interval
    reservation_id: UUID


@dataclass(frozen=True)
class Accepted:
    hold: Hold

    accepted = True


@dataclass(frozen=True)
class Rejected:
    """Typed conflict outcome, names the existing hold that overlaps"""
    requested: Interval
    conflict: Hold

    accepted = False

    def to_error(self) -> Conflict:
        return Conflict(
            f"Interval {self.requested} overlaps existing hold {self.conflict.interval}",
            interval=self.conflict.interval,
            reservation_id=self.conflict.reservation_id,
        )


class _Timeline:
    """
    Holds of a single vehicle, sorted by start date

    Holds never overlap, so sorting by start also sorts by end and only
    the hold immediately before the insertion point can collide.
    Callers must hold `lock`.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._holds: List[Hold] = []
        self._by_reservation: Dict[UUID, Hold] = {}

    def find_overlap(self, interval: Interval) -> Hold | None:
        idx = bisect_left(self._holds, interval.end, key=lambda h: h.interval.start)
        if idx == 0:
            return None
        candidate = self._holds[idx - 1]
        if candidate.interval.overlaps_with(interval):
            return candidate
        return None

    def get(self, reservation_id: UUID) -> Hold | None:
        return self._by_reservation.get(reservation_id)

    def insert(self, hold: Hold):
        insort(self._holds, hold)
        self._by_reservation[hold.reservation_id] = hold

    def remove(self, reservation_id: UUID) -> Hold | None:
        hold = self._by_reservation.pop(reservation_id, None)
        if hold is not None:
            self._holds.remove(hold)
        return hold

    def clear(self):
        self._holds.clear()
        self._by_reservation.clear()

    def snapshot(self) -> Tuple[Hold, ...]:
        return tuple(self._holds)

    def __len__(self) -> int:
        return len(self._holds)


class AvailabilityLedger:
    """
    Per-vehicle authoritative timeline of blocking holds

    Usage:
        ledger = AvailabilityLedger()

        result = ledger.try_reserve(vehicle_id, interval, reservation_id)
        if result.accepted:
            ...  # persist the pending reservation
        else:
            ...  # result.conflict names the overlapping hold

        ledger.release(vehicle_id, reservation_id)  # idempotent
    """

    def __init__(self):
        self._timelines: Dict[UUID, _Timeline] = {}
        self._registry_lock = threading.Lock()

    def _timeline(self, vehicle_id: UUID) -> _Timeline:
        timeline = self._timelines.get(vehicle_id)
        if timeline is None:
            with self._registry_lock:
                timeline = self._timelines.setdefault(vehicle_id, _Timeline())
        return timeline

    @contextmanager
    def locked(self, vehicle_id: UUID) -> Iterator[None]:
        """
        Enter the vehicle's critical section

        Re-entrant: ledger operations called inside the block reuse it.
        Used by the state machine to serialise whole transitions.
        """
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            yield

    def is_free(self, vehicle_id: UUID, interval: Interval) -> bool:
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            return timeline.find_overlap(interval) is None

    def try_reserve(self, vehicle_id: UUID, interval: Interval, reservation_id: UUID) -> Accepted | Rejected:
        """
        Atomically check and insert a hold

        Two concurrent calls for one vehicle with overlapping intervals
        never both succeed: the first insert wins, the other gets
        Rejected naming the hold it collided with.
        """
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            existing = timeline.get(reservation_id)
            if existing is not None:
                if existing.interval == interval:
                    return Accepted(existing)
                return Rejected(interval, existing)

            overlapping = timeline.find_overlap(interval)
            if overlapping is not None:
                logger.info(
                    f"Hold rejected for vehicle {vehicle_id}: {interval} overlaps "
                    f"{overlapping.interval} (reservation {overlapping.reservation_id})"
                )
                return Rejected(interval, overlapping)

            hold = Hold(interval, reservation_id)
            timeline.insert(hold)
            logger.debug(f"Hold placed for vehicle {vehicle_id}: {interval} (reservation {reservation_id})")
            return Accepted(hold)

    def release(self, vehicle_id: UUID, reservation_id: UUID) -> bool:
        """Remove a reservation's hold. Releasing twice is a no-op."""
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            hold = timeline.remove(reservation_id)
        if hold is None:
            logger.debug(f"Release for reservation {reservation_id} on vehicle {vehicle_id} was a no-op")
            return False
        logger.debug(f"Hold released for vehicle {vehicle_id}: {hold.interval} (reservation {reservation_id})")
        return True

    def holds(self, vehicle_id: UUID) -> Tuple[Hold, ...]:
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            return timeline.snapshot()

    def upcoming(self, vehicle_id: UUID, from_date) -> Tuple[Interval, ...]:
        """
        Intervals still in effect on or after `from_date`, by start ascending

        The result is a snapshot taken at call time; iterating it again
        yields the same intervals even if the ledger changed meanwhile.
        """
        from_date: date = to_calendar_date(from_date)
        return tuple(
            hold.interval
            for hold in self.holds(vehicle_id)
            if hold.interval.end > from_date
        )

    def load(self, vehicle_id: UUID, holds: Iterable[Hold]) -> int:
        """
        Replace a vehicle's timeline with persisted holds

        Raises Conflict if the persisted holds overlap each other, which
        means the stored data violates the no-double-booking invariant.
        """
        timeline = self._timeline(vehicle_id)
        with timeline.lock:
            timeline.clear()
            for hold in sorted(holds):
                overlapping = timeline.find_overlap(hold.interval)
                if overlapping is not None:
                    timeline.clear()
                    raise Conflict(
                        f"Persisted reservation {hold.reservation_id} overlaps "
                        f"{overlapping.reservation_id} on vehicle {vehicle_id}",
                        interval=overlapping.interval,
                        reservation_id=overlapping.reservation_id,
                    )
                timeline.insert(hold)
            return len(timeline)

    def rebuild(self, entries: Iterable[Tuple[UUID, Hold]]) -> int:
        """Reconstruct every timeline from (vehicle_id, hold) pairs"""
        grouped: Dict[UUID, List[Hold]] = {}
        for vehicle_id, hold in entries:
            grouped.setdefault(vehicle_id, []).append(hold)

        with self._registry_lock:
            stale = [vid for vid in self._timelines if vid not in grouped]
        for vehicle_id in stale:
            with self.locked(vehicle_id):
                self._timeline(vehicle_id).clear()

        total = 0
        for vehicle_id, holds in grouped.items():
            total += self.load(vehicle_id, holds)
        logger.info(f"Ledger rebuilt: {total} holds across {len(grouped)} vehicles")
        return total

    def summary(self) -> Dict[UUID, int]:
        """Number of holds per vehicle, vehicles with empty timelines omitted"""
        with self._registry_lock:
            vehicle_ids = list(self._timelines)
        counts = {vehicle_id: len(self.holds(vehicle_id)) for vehicle_id in vehicle_ids}
        return {vehicle_id: count for vehicle_id, count in counts.items() if count}

    def __repr__(self):
        return f"AvailabilityLedger(vehicles={len(self._timelines)})"
