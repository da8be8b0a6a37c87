"""Tests for the Reservation aggregate and cancellation policies."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from apps.reservations.application.policies import (
    AllowAllCancellationPolicy,
    CutoffCancellationPolicy,
    build_cancellation_policy,
)
from apps.reservations.domain.entities import Reservation, ReservationStatus
from apps.reservations.domain.events import ReservationTransitioned
from apps.reservations.domain.pricing import PricingCalculator
from shared.domain.exceptions import CancellationNotAllowed, InvalidTransition
from shared.domain.value_objects import Interval, Money

NOW = datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
HOLD = timedelta(minutes=15)


@pytest.fixture
def quote():
    vehicle = SimpleNamespace(id=uuid4(), price_per_day=Decimal("50.00"), currency="USD")
    return PricingCalculator().quote(vehicle, Interval(date(2025, 6, 1), date(2025, 6, 4)))


@pytest.fixture
def pending(quote):
    reservation = Reservation.hold(
        vehicle_id=uuid4(),
        renter_id=uuid4(),
        quote=quote,
        now=NOW,
        hold_duration=HOLD,
    )
    reservation.clear_events()
    return reservation


def test_hold_creates_pending_with_price_snapshot(quote):
    reservation = Reservation.hold(
        vehicle_id=uuid4(), renter_id=uuid4(), quote=quote, now=NOW, hold_duration=HOLD,
    )

    assert reservation.status is ReservationStatus.PENDING
    assert reservation.total_price == Money("150.00")
    assert reservation.expires_at == NOW + HOLD
    assert reservation.price_breakdown["days"] == 3
    assert reservation.blocks_interval()

    [event] = reservation.events
    assert isinstance(event, ReservationTransitioned)
    assert event.from_state is None
    assert event.to_state == "pending"
    assert event.occurred_at == NOW


def test_rejected_record_never_blocks(quote):
    conflicting = uuid4()
    reservation = Reservation.rejected(
        vehicle_id=uuid4(), renter_id=uuid4(), quote=quote, now=NOW,
        conflicting_reservation_id=conflicting,
    )

    assert reservation.status is ReservationStatus.REJECTED
    assert reservation.conflicting_reservation_id == conflicting
    assert not reservation.blocks_interval()
    assert reservation.events[0].to_state == "rejected"

    with pytest.raises(InvalidTransition):
        reservation.confirm(NOW)


def test_confirm_then_cancel(pending):
    pending.confirm(NOW + timedelta(minutes=1))

    assert pending.status is ReservationStatus.CONFIRMED
    assert pending.expires_at is None
    assert pending.blocks_interval()

    pending.cancel(NOW + timedelta(days=1), "plans changed")

    assert pending.status is ReservationStatus.CANCELLED
    assert pending.cancellation_reason == "plans changed"
    assert not pending.blocks_interval()
    assert [(e.from_state, e.to_state) for e in pending.events] == [
        ("pending", "confirmed"),
        ("confirmed", "cancelled"),
    ]


@pytest.mark.parametrize("terminal", ["cancel", "expire"])
def test_terminal_states_reject_every_transition(pending, terminal):
    if terminal == "cancel":
        pending.cancel(NOW)
    else:
        pending.expire(NOW + HOLD)

    with pytest.raises(InvalidTransition):
        pending.confirm(NOW + HOLD)
    with pytest.raises(InvalidTransition):
        pending.cancel(NOW + HOLD)
    with pytest.raises(InvalidTransition):
        pending.expire(NOW + HOLD * 2)


def test_expire_only_after_deadline(pending):
    with pytest.raises(InvalidTransition):
        pending.expire(NOW + HOLD - timedelta(seconds=1))

    pending.expire(NOW + HOLD)

    assert pending.status is ReservationStatus.EXPIRED
    assert pending.expired_at == NOW + HOLD


def test_confirmed_never_expires(pending):
    pending.confirm(NOW)

    assert not pending.is_overdue(NOW + timedelta(days=30))
    with pytest.raises(InvalidTransition):
        pending.expire(NOW + timedelta(days=30))


def test_overdue_pending_can_still_be_confirmed(pending):
    pending.confirm(NOW + HOLD + timedelta(minutes=5))

    assert pending.status is ReservationStatus.CONFIRMED


def test_event_payload(pending):
    pending.confirm(NOW)
    payload = pending.events[0].to_dict()

    assert payload["event_type"] == "ReservationTransitioned"
    assert payload["reservation_id"] == str(pending.id)
    assert payload["from_state"] == "pending"
    assert payload["to_state"] == "confirmed"
    assert payload["start"] == "2025-06-01"
    assert payload["end"] == "2025-06-04"


def test_cutoff_policy_only_guards_confirmed(pending):
    policy = CutoffCancellationPolicy(hours=48)
    late = datetime(2025, 5, 31, 12, 0, tzinfo=timezone.utc)

    policy.check(pending, late)

    pending.confirm(NOW)
    policy.check(pending, NOW)
    with pytest.raises(CancellationNotAllowed):
        policy.check(pending, late)


def test_build_cancellation_policy():
    assert isinstance(build_cancellation_policy(0), AllowAllCancellationPolicy)
    assert isinstance(build_cancellation_policy(None), AllowAllCancellationPolicy)
    assert build_cancellation_policy(24).cutoff == timedelta(hours=24)
