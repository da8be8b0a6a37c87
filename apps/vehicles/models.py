"""Vehicle domain models for the rental platform."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Vehicle(models.Model):
    """Vehicle listed by an owner for per-day rental."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.UUIDField(
        db_index=True,
        help_text=_("Opaque owner identifier supplied by the identity layer."),
    )
    title = models.CharField(max_length=255)
    make = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    license_plate = models.CharField(max_length=20, blank=True)
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    currency = models.CharField(max_length=3, default="USD")
    is_active = models.BooleanField(default=True)

    # Latest known position (greatest sample timestamp seen so far)
    last_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    last_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    last_seen_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vehicle")
        verbose_name_plural = _("Vehicles")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_id", "is_active"], name="vehicle_owner_active_idx"),
        ]

    def __str__(self) -> str:
        return self.title

    def deactivate(self) -> None:
        """Stop accepting new reservations; existing ones are kept."""
        if self.is_active:
            self.is_active = False
            self.save(update_fields=["is_active", "updated_at"])


class LocationSample(models.Model):
    """Position report for a vehicle. Only the most recent N per vehicle are kept."""

    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.CASCADE,
        related_name="location_samples",
    )
    latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        validators=[MinValueValidator(Decimal("-90")), MaxValueValidator(Decimal("90"))],
    )
    longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        validators=[MinValueValidator(Decimal("-180")), MaxValueValidator(Decimal("180"))],
    )
    recorded_at = models.DateTimeField(help_text=_("Timestamp reported by the vehicle."))
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Location sample")
        verbose_name_plural = _("Location samples")
        # Arrival order; id is monotonic
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["vehicle", "-id"], name="location_vehicle_arrival_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.vehicle_id} @ {self.latitude},{self.longitude} ({self.recorded_at})"
