"""Accessors for the RESERVATIONS settings dict."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore

DEFAULTS = {
    "HOLD_DURATION_MINUTES": 15,
    "SWEEP_INTERVAL_SECONDS": 60,
    "CANCELLATION_CUTOFF_HOURS": 0,
    "RECORD_REJECTED_ATTEMPTS": True,
    "RETENTION_DAYS": 365,
    "PRICING_MODIFIERS": [],
}


def get(name: str):
    return getattr(settings, "RESERVATIONS", {}).get(name, DEFAULTS[name])


def hold_duration() -> timedelta:
    return timedelta(minutes=int(get("HOLD_DURATION_MINUTES")))


def sweep_interval_seconds() -> int:
    return int(get("SWEEP_INTERVAL_SECONDS"))


def cancellation_cutoff_hours() -> int:
    return int(get("CANCELLATION_CUTOFF_HOURS") or 0)


def record_rejected_attempts() -> bool:
    return bool(get("RECORD_REJECTED_ATTEMPTS"))


def retention_days() -> int:
    return int(get("RETENTION_DAYS"))


def pricing_modifiers() -> list:
    return list(get("PRICING_MODIFIERS") or [])
