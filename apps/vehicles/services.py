"""Location tracking services backed by the database."""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore

from .domain.tracker import DEFAULT_HISTORY_LIMIT, LocationSample, LocationTracker
from .models import LocationSample as LocationSampleModel
from .models import Vehicle

logger = logging.getLogger(__name__)

_tracker: LocationTracker | None = None
_tracker_lock = threading.Lock()


def history_limit() -> int:
    return int(getattr(settings, "VEHICLES", {}).get("LOCATION_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT))


def get_tracker() -> LocationTracker:
    """Process-wide tracker; per-vehicle state is loaded from the DB on first use."""
    global _tracker
    if _tracker is None:
        with _tracker_lock:
            if _tracker is None:
                _tracker = LocationTracker(history_limit=history_limit())
    return _tracker


def reset_tracker() -> None:
    global _tracker
    with _tracker_lock:
        _tracker = None


def _to_sample(row: LocationSampleModel) -> LocationSample:
    return LocationSample(
        vehicle_id=row.vehicle_id,
        latitude=row.latitude,
        longitude=row.longitude,
        recorded_at=row.recorded_at,
    )


def _persisted_latest(vehicle: Vehicle) -> LocationSample | None:
    if vehicle.last_seen_at is None:
        return None
    return LocationSample(
        vehicle_id=vehicle.id,
        latitude=vehicle.last_latitude,
        longitude=vehicle.last_longitude,
        recorded_at=vehicle.last_seen_at,
    )


def _ensure_loaded(tracker: LocationTracker, vehicle: Vehicle) -> None:
    if tracker.is_loaded(vehicle.id):
        return
    rows = list(
        LocationSampleModel.objects.filter(vehicle=vehicle).order_by("-id")[: tracker.history_limit]
    )
    tracker.load(vehicle.id, [_to_sample(row) for row in reversed(rows)], latest=_persisted_latest(vehicle))
    logger.debug(f"Loaded {len(rows)} location samples for vehicle {vehicle.id}")


def record_location(vehicle: Vehicle, latitude, longitude, recorded_at: datetime) -> LocationSample:
    """
    Persist a position report and feed it to the tracker.

    Rows beyond the retention bound are pruned oldest-first. The vehicle's
    persisted latest position only moves forward in time.
    """
    sample = LocationSample(
        vehicle_id=vehicle.id,
        latitude=latitude,
        longitude=longitude,
        recorded_at=recorded_at,
    )
    tracker = get_tracker()
    _ensure_loaded(tracker, vehicle)

    with transaction.atomic():
        LocationSampleModel.objects.create(
            vehicle=vehicle,
            latitude=sample.latitude,
            longitude=sample.longitude,
            recorded_at=sample.recorded_at,
        )
        keep_ids = list(
            LocationSampleModel.objects.filter(vehicle=vehicle)
            .order_by("-id")
            .values_list("id", flat=True)[: tracker.history_limit]
        )
        evicted, _ = (
            LocationSampleModel.objects.filter(vehicle=vehicle).exclude(id__in=keep_ids).delete()
        )
        updated = Vehicle.objects.filter(pk=vehicle.pk).filter(
            _newer_than_last_seen(sample.recorded_at)
        ).update(
            last_latitude=sample.latitude,
            last_longitude=sample.longitude,
            last_seen_at=sample.recorded_at,
        )

    tracker.record(vehicle.id, sample)
    if updated:
        vehicle.last_latitude = sample.latitude
        vehicle.last_longitude = sample.longitude
        vehicle.last_seen_at = sample.recorded_at
    logger.info(
        f"Location recorded for vehicle {vehicle.id} at {sample.recorded_at} "
        f"(latest={bool(updated)}, evicted={evicted})"
    )
    return sample


def _newer_than_last_seen(recorded_at: datetime):
    return Q(last_seen_at__isnull=True) | Q(last_seen_at__lt=recorded_at)


def latest_location(vehicle: Vehicle) -> LocationSample | None:
    """
    Newest known position of the vehicle.

    Reports handled by other processes only reach this tracker through the
    vehicle row, so the persisted position wins when it is more recent.
    """
    tracker = get_tracker()
    _ensure_loaded(tracker, vehicle)
    cached = tracker.latest(vehicle.id)
    persisted = _persisted_latest(vehicle)
    if persisted is not None and (cached is None or persisted.recorded_at > cached.recorded_at):
        return persisted
    return cached


def location_history(vehicle: Vehicle) -> tuple[LocationSample, ...]:
    tracker = get_tracker()
    _ensure_loaded(tracker, vehicle)
    return tracker.history(vehicle.id)
