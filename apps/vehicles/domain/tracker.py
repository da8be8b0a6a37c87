"""
Location Tracker

Keeps, per vehicle, a bounded history of position samples and the
latest known position.

- history is in arrival order (most recently recorded first when read)
  and evicts the oldest recorded sample beyond the bound
- latest is the sample with the greatest timestamp seen so far, so an
  out-of-order sample enters history without moving latest back
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Deque, Dict, Iterable, Optional, Tuple
from uuid import UUID

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidLocation
from shared.domain.value_objects import to_decimal

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


@dataclass(frozen=True)
class LocationSample(ValueObject):
    vehicle_id: UUID
    latitude: Decimal
    longitude: Decimal
    recorded_at: datetime

    def __post_init__(self):
        try:
            latitude = to_decimal(self.latitude)
            longitude = to_decimal(self.longitude)
        except ValueError as exc:
            raise InvalidLocation(str(exc)) from exc
        if not latitude.is_finite() or not -90 <= latitude <= 90:
            raise InvalidLocation(f"Latitude out of range: {self.latitude}")
        if not longitude.is_finite() or not -180 <= longitude <= 180:
            raise InvalidLocation(f"Longitude out of range: {self.longitude}")
        if not isinstance(self.recorded_at, datetime):
            raise InvalidLocation(f"Invalid sample timestamp: {self.recorded_at!r}")
        object.__setattr__(self, 'latitude', latitude)
        object.__setattr__(self, 'longitude', longitude)

    def to_dict(self) -> dict:
        return {
            'vehicle_id': str(self.vehicle_id),
            'latitude': str(self.latitude),
            'longitude': str(self.longitude),
            'recorded_at': self.recorded_at.isoformat(),
        }


class LocationTracker:
    """
    In-memory bounded position history per vehicle

    Usage:
        tracker = LocationTracker(history_limit=100)
        tracker.record(vehicle_id, sample)
        tracker.latest(vehicle_id)    # greatest timestamp seen
        tracker.history(vehicle_id)   # tuple, most recently recorded first
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        self._lock = threading.Lock()
        self._histories: Dict[UUID, Deque[LocationSample]] = {}
        self._latest: Dict[UUID, LocationSample] = {}

    def record(self, vehicle_id: UUID, sample: LocationSample) -> bool:
        """
        Append a sample, evicting the oldest beyond the bound

        Returns True if the sample became the latest known position.
        """
        with self._lock:
            history = self._histories.get(vehicle_id)
            if history is None:
                history = self._histories[vehicle_id] = deque(maxlen=self.history_limit)
            history.append(sample)

            current = self._latest.get(vehicle_id)
            if current is None or sample.recorded_at > current.recorded_at:
                self._latest[vehicle_id] = sample
                return True

        logger.debug(
            f"Out-of-order sample for vehicle {vehicle_id} at {sample.recorded_at} "
            f"kept in history only (latest {current.recorded_at})"
        )
        return False

    def latest(self, vehicle_id: UUID) -> Optional[LocationSample]:
        with self._lock:
            return self._latest.get(vehicle_id)

    def history(self, vehicle_id: UUID) -> Tuple[LocationSample, ...]:
        with self._lock:
            return tuple(reversed(self._histories.get(vehicle_id, ())))

    def is_loaded(self, vehicle_id: UUID) -> bool:
        with self._lock:
            return vehicle_id in self._histories

    def load(
        self,
        vehicle_id: UUID,
        samples: Iterable[LocationSample],
        latest: Optional[LocationSample] = None,
    ):
        """
        Replace a vehicle's state with persisted samples (oldest recorded first)

        `latest` overrides the greatest-timestamp sample of `samples`, for
        when the latest known position was evicted from history.
        """
        history: Deque[LocationSample] = deque(samples, maxlen=self.history_limit)
        candidates = list(history) + ([latest] if latest is not None else [])
        with self._lock:
            self._histories[vehicle_id] = history
            if candidates:
                self._latest[vehicle_id] = max(candidates, key=lambda s: s.recorded_at)
            else:
                self._latest.pop(vehicle_id, None)

    def forget(self, vehicle_id: UUID):
        with self._lock:
            self._histories.pop(vehicle_id, None)
            self._latest.pop(vehicle_id, None)
