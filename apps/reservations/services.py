"""
Reservation engine wiring.

The engine owns the process-wide availability ledger and the command
handlers built on top of it. Views, tasks and management commands go
through `get_engine()`; nothing else mutates the ledger.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Tuple
from uuid import UUID

from django.utils import timezone  # type: ignore

from apps.vehicles.repositories import DjangoVehicleRepository
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import InvalidTransition, NotFound
from shared.domain.value_objects import Interval

from . import conf
from .application.command_handlers import (
    CancelReservationCommand,
    CancelReservationHandler,
    ConfirmReservationCommand,
    ConfirmReservationHandler,
    CreateReservationCommand,
    CreateReservationHandler,
    ExpireReservationCommand,
    ExpireReservationHandler,
    ReservationOutcome,
    sync_timeline,
)
from .application.policies import CancellationPolicy, build_cancellation_policy
from .domain.entities import Reservation
from .domain.ledger import AvailabilityLedger, Hold
from .domain.pricing import PricingCalculator, Quote, build_calculator
from .repositories import DjangoReservationRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired: List[UUID] = field(default_factory=list)
    skipped: List[UUID] = field(default_factory=list)
    failed: List[UUID] = field(default_factory=list)

    def to_dict(self) -> dict[str, int]:
        return {
            "expired": len(self.expired),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


@dataclass(frozen=True)
class Availability:
    """Blocking holds intersecting a window, and whether the window is free"""
    window: Interval
    holds: Tuple[Hold, ...]

    @property
    def is_free(self) -> bool:
        return not self.holds


class ReservationEngine:
    """Facade over the ledger, the pricing calculator and the state machine."""

    def __init__(
        self,
        *,
        ledger: AvailabilityLedger | None = None,
        reservation_repo=None,
        vehicle_repo=None,
        calculator: PricingCalculator | None = None,
        hold_duration: timedelta | None = None,
        cancellation_policy: CancellationPolicy | None = None,
        record_rejected: bool | None = None,
        clock: Callable[[], datetime] = timezone.now,
        uow_factory=DjangoUnitOfWork,
    ):
        self.ledger = ledger or AvailabilityLedger()
        self.reservation_repo = reservation_repo or DjangoReservationRepository()
        self.vehicle_repo = vehicle_repo or DjangoVehicleRepository()
        self.calculator = calculator or build_calculator(conf.pricing_modifiers())
        self.clock = clock

        common = {"clock": clock, "uow_factory": uow_factory}
        self._create = CreateReservationHandler(
            self.ledger,
            self.reservation_repo,
            self.vehicle_repo,
            self.calculator,
            hold_duration=hold_duration or conf.hold_duration(),
            record_rejected=conf.record_rejected_attempts() if record_rejected is None else record_rejected,
            **common,
        )
        self._confirm = ConfirmReservationHandler(self.ledger, self.reservation_repo, **common)
        self._cancel = CancelReservationHandler(
            self.ledger,
            self.reservation_repo,
            policy=cancellation_policy or build_cancellation_policy(conf.cancellation_cutoff_hours()),
            **common,
        )
        self._expire = ExpireReservationHandler(self.ledger, self.reservation_repo, **common)

    # ----- state machine -----

    def create(self, vehicle_id: UUID, renter_id: UUID, start, end) -> ReservationOutcome:
        return self._create.handle(CreateReservationCommand(vehicle_id, renter_id, start, end))

    def confirm(self, reservation_id: UUID) -> Reservation:
        return self._confirm.handle(ConfirmReservationCommand(reservation_id))

    def cancel(self, reservation_id: UUID, reason: str = "") -> Reservation:
        return self._cancel.handle(CancelReservationCommand(reservation_id, reason))

    def expire(self, reservation_id: UUID, now: datetime | None = None) -> Reservation:
        return self._expire.handle(ExpireReservationCommand(reservation_id, now))

    def expire_overdue(self, now: datetime | None = None) -> SweepResult:
        """
        Expire every pending reservation past its hold deadline.

        A reservation confirmed or cancelled between the query and its
        transition is skipped; it is never retried.
        """
        now = now or self.clock()
        result = SweepResult()
        for reservation_id in self.reservation_repo.overdue_pending(now):
            try:
                self.expire(reservation_id, now)
            except (InvalidTransition, NotFound) as exc:
                logger.info(f"Sweep skipped reservation {reservation_id}: {exc}")
                result.skipped.append(reservation_id)
            except Exception as exc:
                logger.error(f"Error expiring reservation {reservation_id}: {exc}", exc_info=True)
                result.failed.append(reservation_id)
            else:
                result.expired.append(reservation_id)

        if result.expired or result.failed:
            logger.info(
                f"Sweep at {now.isoformat()}: expired {len(result.expired)}, "
                f"skipped {len(result.skipped)}, failed {len(result.failed)}"
            )
        return result

    # ----- queries -----
    # Answered from a timeline reloaded from storage, so releases made by
    # other processes are visible.

    def is_free(self, vehicle_id: UUID, start, end) -> bool:
        window = Interval(start, end)
        sync_timeline(self.ledger, self.reservation_repo, vehicle_id)
        return self.ledger.is_free(vehicle_id, window)

    def upcoming(self, vehicle_id: UUID, from_date) -> Tuple[Interval, ...]:
        sync_timeline(self.ledger, self.reservation_repo, vehicle_id)
        return self.ledger.upcoming(vehicle_id, from_date)

    def availability(self, vehicle_id: UUID, start, end) -> Availability:
        window = Interval(start, end)
        sync_timeline(self.ledger, self.reservation_repo, vehicle_id)
        holds = tuple(
            hold for hold in self.ledger.holds(vehicle_id)
            if hold.interval.overlaps_with(window)
        )
        return Availability(window=window, holds=holds)

    def quote(self, vehicle, start, end) -> Quote:
        return self.calculator.quote(vehicle, Interval(start, end))

    def rebuild_ledger(self) -> int:
        return self.ledger.rebuild(self.reservation_repo.blocking_holds())


_engine: ReservationEngine | None = None
_engine_lock = threading.Lock()


def build_engine(**kwargs) -> ReservationEngine:
    """Create an engine whose ledger mirrors the persisted blocking reservations."""
    engine = ReservationEngine(**kwargs)
    engine.rebuild_ledger()
    return engine


def get_engine() -> ReservationEngine:
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = build_engine()
    return _engine


def reset_engine() -> None:
    """Drop the process-wide engine; the next get_engine() rebuilds it."""
    global _engine
    with _engine_lock:
        _engine = None
