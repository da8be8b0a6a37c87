"""Reservation models for the vehicle rental platform."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ReservationQuerySet(models.QuerySet):
    def blocking(self):
        return self.filter(status__in=Reservation.BLOCKING_STATUSES)

    def overlapping(self, start_date, end_date):
        return self.filter(start_date__lt=end_date, end_date__gt=start_date)

    def overdue(self, now=None):
        return self.filter(
            status=Reservation.Status.PENDING,
            expires_at__lte=now or timezone.now(),
        )

    def terminal(self):
        return self.filter(status__in=Reservation.TERMINAL_STATUSES)


class Reservation(models.Model):
    """Vehicle reservation; cancelled and expired rows are kept as history."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending confirmation")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        EXPIRED = "expired", _("Expired")
        REJECTED = "rejected", _("Rejected (interval taken)")

    BLOCKING_STATUSES = (Status.PENDING, Status.CONFIRMED)
    TERMINAL_STATUSES = (Status.CANCELLED, Status.EXPIRED, Status.REJECTED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        "vehicles.Vehicle",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    renter_id = models.UUIDField(
        db_index=True,
        help_text=_("Opaque renter identifier supplied by the identity layer."),
    )
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Exclusive."))
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )

    # Price snapshot, captured at creation and never recomputed
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)
    base_price = models.DecimalField(max_digits=12, decimal_places=2)
    adjustments_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    price_breakdown = models.JSONField(default=dict, blank=True)

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Hold deadline; only meaningful while pending."),
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    conflicting_reservation_id = models.UUIDField(
        null=True,
        blank=True,
        help_text=_("For rejected attempts: the reservation holding the interval."),
    )
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="reservation_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle", "start_date", "end_date"], name="reservation_vehicle_dates_idx"),
            models.Index(fields=["status", "expires_at"], name="reservation_status_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.id} for {self.vehicle_id} ({self.status})"

    def clean(self) -> None:
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError(_("End date must be after start date."))

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days
