"""In-memory collaborators for exercising the command handlers without a database."""

import copy
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from apps.reservations.domain.entities import ReservationStatus
from apps.reservations.domain.ledger import AvailabilityLedger, Hold
from apps.reservations.domain.pricing import PricingCalculator
from apps.reservations.services import ReservationEngine
from shared.domain.exceptions import NotFound


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeVehicleRepository:
    def __init__(self):
        self.vehicles = {}

    def add(self, price_per_day="50.00", currency="USD", is_active=True):
        vehicle = SimpleNamespace(
            id=uuid4(),
            price_per_day=Decimal(price_per_day),
            currency=currency,
            is_active=is_active,
        )
        self.vehicles[vehicle.id] = vehicle
        return vehicle

    def get(self, vehicle_id, *, lock=False):
        try:
            return self.vehicles[vehicle_id]
        except KeyError:
            raise NotFound(f"Vehicle {vehicle_id} not found") from None


class FakeReservationRepository:
    """Stores copies, like rows in a table."""

    def __init__(self):
        self.rows = {}
        self.fail_next_save = False
        self._lock = threading.Lock()

    def get(self, reservation_id, *, lock=False):
        with self._lock:
            try:
                return copy.deepcopy(self.rows[reservation_id])
            except KeyError:
                raise NotFound(f"Reservation {reservation_id} not found") from None

    def vehicle_id_for(self, reservation_id):
        return self.get(reservation_id).vehicle_id

    def save(self, reservation):
        with self._lock:
            if self.fail_next_save:
                self.fail_next_save = False
                raise RuntimeError("database unavailable")
            stored = copy.deepcopy(reservation)
            stored.clear_events()
            self.rows[reservation.id] = stored

    def _blocking(self, vehicle_id):
        return [
            r for r in self.rows.values()
            if r.vehicle_id == vehicle_id and r.status.is_blocking
        ]

    def find_blocking_overlap(self, vehicle_id, interval):
        with self._lock:
            for row in self._blocking(vehicle_id):
                if row.interval.overlaps_with(interval):
                    return Hold(row.interval, row.id)
        return None

    def blocking_holds_for(self, vehicle_id):
        with self._lock:
            return [Hold(r.interval, r.id) for r in self._blocking(vehicle_id)]

    def blocking_holds(self):
        with self._lock:
            rows = [r for r in self.rows.values() if r.status.is_blocking]
        for row in rows:
            yield row.vehicle_id, Hold(row.interval, row.id)

    def overdue_pending(self, now):
        with self._lock:
            return [
                r.id for r in self.rows.values()
                if r.status is ReservationStatus.PENDING and r.expires_at <= now
            ]


class FakeUnitOfWork:
    def __init__(self, published):
        self._published = published
        self._events = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self._published.extend(self._events)
        self._events = []

    def collect_events(self, aggregate):
        self._events.extend(aggregate.events)
        aggregate.clear_events()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def vehicles():
    return FakeVehicleRepository()


@pytest.fixture
def reservations():
    return FakeReservationRepository()


@pytest.fixture
def published():
    return []


@pytest.fixture
def make_engine(vehicles, reservations, clock, published):
    def factory(**overrides):
        options = {
            "ledger": AvailabilityLedger(),
            "reservation_repo": reservations,
            "vehicle_repo": vehicles,
            "calculator": PricingCalculator(),
            "hold_duration": timedelta(minutes=15),
            "record_rejected": True,
            "clock": clock,
            "uow_factory": lambda: FakeUnitOfWork(published),
        }
        options.update(overrides)
        return ReservationEngine(**options)

    return factory


@pytest.fixture
def engine(make_engine):
    return make_engine()
