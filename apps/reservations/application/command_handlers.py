"""
Reservation Command Handlers

These are the use cases of the reservation engine.
They orchestrate the ledger, the pricing calculator and the
Reservation aggregate within units of work.

Commands:
- CreateReservationCommand: Hold an interval and open a pending reservation
- ConfirmReservationCommand: Apply the external confirmation signal
- CancelReservationCommand: Cancel and release the interval
- ExpireReservationCommand: Expire an overdue pending hold (sweep)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID, uuid4
import logging

from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import Conflict, InvalidVehicle
from shared.domain.value_objects import Interval

from apps.reservations.application.policies import AllowAllCancellationPolicy, CancellationPolicy
from apps.reservations.domain.entities import Reservation
from apps.reservations.domain.ledger import AvailabilityLedger, Hold, Rejected
from apps.reservations.domain.pricing import PricingCalculator

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateReservationCommand:
    """
    Command to create a new reservation

    Bounds may be dates, datetimes or ISO strings; they are normalised
    to calendar days.
    """
    vehicle_id: UUID
    renter_id: UUID
    start: object
    end: object


@dataclass
class ConfirmReservationCommand:
    """Command to confirm a reservation after the external signal"""
    reservation_id: UUID


@dataclass
class CancelReservationCommand:
    """Command to cancel a reservation"""
    reservation_id: UUID
    reason: str = ''


@dataclass
class ExpireReservationCommand:
    """Command to expire an overdue pending reservation"""
    reservation_id: UUID
    now: Optional[datetime] = None


@dataclass
class ReservationOutcome:
    """
    Result of a create request

    Conflict is an expected outcome, so it is returned rather than raised.
    `reservation` is the pending reservation when accepted, or the
    rejected audit record (if recorded) otherwise.
    """
    accepted: bool
    reservation: Optional[Reservation] = None
    rejection: Optional[Rejected] = None
    requested: Optional[Interval] = None

    @property
    def conflict(self) -> Optional[Hold]:
        return self.rejection.conflict if self.rejection else None

    def to_error(self) -> Conflict:
        return self.rejection.to_error()


def sync_timeline(ledger: AvailabilityLedger, reservation_repo, vehicle_id: UUID) -> None:
    """
    Replace a vehicle's timeline with its persisted blocking reservations

    Cancels and expiries applied by other processes (API workers, the
    Celery sweep) only reach this ledger through storage.
    """
    with ledger.locked(vehicle_id):
        ledger.load(vehicle_id, reservation_repo.blocking_holds_for(vehicle_id))


# ===== Command Handlers =====

class _Handler:
    def __init__(
        self,
        ledger: AvailabilityLedger,
        reservation_repo,
        *,
        clock: Callable[[], datetime] = timezone.now,
        uow_factory=DjangoUnitOfWork,
    ):
        self.ledger = ledger
        self.reservation_repo = reservation_repo
        self.clock = clock
        self.uow_factory = uow_factory


class CreateReservationHandler(_Handler):
    """
    Handler for CreateReservation command

    This implements the critical logic for creating reservations
    with double booking prevention.

    Strategy:
    1. Validate interval and vehicle (no ledger mutation on failure)
    2. Quote the price (pure)
    3. Enter the vehicle's critical section
    4. try_reserve on the ledger; on a conflict, reload the timeline from
       storage and try once more, then return a typed outcome
    5. Start database transaction, lock the vehicle row, re-check
       persisted blocking reservations
    6. Save the pending Reservation aggregate
    7. Commit; events are published after commit
    8. Any failure after step 4 releases the in-memory hold
    """

    def __init__(
        self,
        ledger: AvailabilityLedger,
        reservation_repo,
        vehicle_repo,
        calculator: PricingCalculator,
        *,
        hold_duration: timedelta,
        record_rejected: bool = True,
        **kwargs,
    ):
        super().__init__(ledger, reservation_repo, **kwargs)
        self.vehicle_repo = vehicle_repo
        self.calculator = calculator
        self.hold_duration = hold_duration
        self.record_rejected = record_rejected

    def handle(self, command: CreateReservationCommand) -> ReservationOutcome:
        """
        Handle reservation creation

        Raises:
            InvalidInterval: malformed or empty interval
            NotFound: unknown vehicle
            InvalidVehicle: inactive vehicle or bad price per day
        """
        interval = Interval(command.start, command.end)
        vehicle = self.vehicle_repo.get(command.vehicle_id)

        if not vehicle.is_active:
            raise InvalidVehicle(
                f"Vehicle {vehicle.id} is not active",
                vehicle_id=str(vehicle.id),
            )

        quote = self.calculator.quote(vehicle, interval)
        reservation_id = uuid4()

        logger.info(
            f"Creating reservation {reservation_id} for vehicle {vehicle.id}, "
            f"renter {command.renter_id}, interval {interval}"
        )

        with self.ledger.locked(vehicle.id):
            result = self.ledger.try_reserve(vehicle.id, interval, reservation_id)
            if not result.accepted:
                # The colliding hold may have been released by another process
                logger.info(
                    f"Ledger rejected {interval} for vehicle {vehicle.id}, "
                    f"re-checking against storage"
                )
                sync_timeline(self.ledger, self.reservation_repo, vehicle.id)
                result = self.ledger.try_reserve(vehicle.id, interval, reservation_id)
            if not result.accepted:
                return self._reject(command, vehicle.id, quote, result)

            try:
                with self.uow_factory() as uow:
                    # Row lock serialises writers in other processes
                    self.vehicle_repo.get(vehicle.id, lock=True)
                    persisted = self.reservation_repo.find_blocking_overlap(vehicle.id, interval)
                    if persisted is not None:
                        raise Conflict(interval=persisted.interval, reservation_id=persisted.reservation_id)

                    reservation = Reservation.hold(
                        reservation_id=reservation_id,
                        vehicle_id=vehicle.id,
                        renter_id=command.renter_id,
                        quote=quote,
                        now=self.clock(),
                        hold_duration=self.hold_duration,
                    )
                    uow.collect_events(reservation)
                    self.reservation_repo.save(reservation)
            except Conflict as exc:
                self.ledger.release(vehicle.id, reservation_id)
                logger.warning(
                    f"Ledger for vehicle {vehicle.id} was stale, reloading from storage"
                )
                sync_timeline(self.ledger, self.reservation_repo, vehicle.id)
                rejection = Rejected(interval, Hold(exc.interval, exc.reservation_id))
                return self._reject(command, vehicle.id, quote, rejection)
            except Exception:
                self.ledger.release(vehicle.id, reservation_id)
                raise

        logger.info(
            f"Reservation {reservation.id} created: {reservation.status.value}, "
            f"total {reservation.total_price}, expires at {reservation.expires_at}"
        )
        return ReservationOutcome(accepted=True, reservation=reservation, requested=interval)

    def _reject(self, command, vehicle_id: UUID, quote, rejection: Rejected) -> ReservationOutcome:
        conflict = rejection.conflict
        logger.info(
            f"Reservation for vehicle {vehicle_id} rejected: {quote.interval} "
            f"conflicts with {conflict.interval} (reservation {conflict.reservation_id})"
        )
        reservation = None
        if self.record_rejected:
            with self.uow_factory() as uow:
                reservation = Reservation.rejected(
                    vehicle_id=vehicle_id,
                    renter_id=command.renter_id,
                    quote=quote,
                    now=self.clock(),
                    conflicting_reservation_id=conflict.reservation_id,
                )
                uow.collect_events(reservation)
                self.reservation_repo.save(reservation)
        return ReservationOutcome(
            accepted=False,
            reservation=reservation,
            rejection=rejection,
            requested=quote.interval,
        )


class ConfirmReservationHandler(_Handler):
    """Handler for the external confirmation signal"""

    def handle(self, command: ConfirmReservationCommand) -> Reservation:
        """Confirm reservation (PENDING -> CONFIRMED)"""
        logger.info(f"Confirming reservation {command.reservation_id}")
        vehicle_id = self.reservation_repo.vehicle_id_for(command.reservation_id)

        with self.ledger.locked(vehicle_id):
            with self.uow_factory() as uow:
                reservation = self.reservation_repo.get(command.reservation_id, lock=True)
                reservation.confirm(self.clock())
                uow.collect_events(reservation)
                self.reservation_repo.save(reservation)

        logger.info(f"Reservation {reservation.id} confirmed")
        return reservation


class CancelReservationHandler(_Handler):
    """Handler for cancelling a reservation"""

    def __init__(self, ledger, reservation_repo, *, policy: CancellationPolicy | None = None, **kwargs):
        super().__init__(ledger, reservation_repo, **kwargs)
        self.policy = policy or AllowAllCancellationPolicy()

    def handle(self, command: CancelReservationCommand) -> Reservation:
        """Cancel reservation and release its interval"""
        logger.info(f"Cancelling reservation {command.reservation_id}, reason: {command.reason!r}")
        vehicle_id = self.reservation_repo.vehicle_id_for(command.reservation_id)

        with self.ledger.locked(vehicle_id):
            with self.uow_factory() as uow:
                reservation = self.reservation_repo.get(command.reservation_id, lock=True)
                now = self.clock()
                if reservation.status.is_blocking:
                    self.policy.check(reservation, now)
                reservation.cancel(now, command.reason)
                uow.collect_events(reservation)
                self.reservation_repo.save(reservation)

            self.ledger.release(vehicle_id, reservation.id)

        logger.info(f"Reservation {reservation.id} cancelled, {reservation.interval} released")
        return reservation


class ExpireReservationHandler(_Handler):
    """Handler for expiring an overdue pending reservation"""

    def handle(self, command: ExpireReservationCommand) -> Reservation:
        """
        Expire reservation (PENDING -> EXPIRED)

        Raises InvalidTransition if the reservation is no longer pending
        (a concurrent confirm/cancel won) or not yet overdue.
        """
        vehicle_id = self.reservation_repo.vehicle_id_for(command.reservation_id)

        with self.ledger.locked(vehicle_id):
            with self.uow_factory() as uow:
                reservation = self.reservation_repo.get(command.reservation_id, lock=True)
                reservation.expire(command.now or self.clock())
                uow.collect_events(reservation)
                self.reservation_repo.save(reservation)

            self.ledger.release(vehicle_id, reservation.id)

        logger.info(f"Reservation {reservation.id} expired, {reservation.interval} released")
        return reservation
