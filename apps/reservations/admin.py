"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "vehicle",
        "renter_id",
        "status",
        "start_date",
        "end_date",
        "total_price",
        "expires_at",
        "created_at",
    )
    list_filter = ("status", "start_date", "end_date")
    search_fields = ("id", "renter_id", "vehicle__title", "vehicle__license_plate")
    # State changes go through the engine so the ledger stays in sync
    readonly_fields = (
        "id",
        "vehicle",
        "renter_id",
        "start_date",
        "end_date",
        "status",
        "price_per_day",
        "base_price",
        "adjustments_total",
        "total_price",
        "currency",
        "price_breakdown",
        "expires_at",
        "confirmed_at",
        "cancelled_at",
        "expired_at",
        "cancellation_reason",
        "conflicting_reservation_id",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        return False
