"""Serializers for the reservation domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Reservation


class ReservationCreateSerializer(serializers.Serializer):
    """Booking request from a renter.

    Dates are passed through as text; the engine parses them and rejects
    malformed or empty intervals with a 400.
    """

    vehicle = serializers.UUIDField()
    renter_id = serializers.UUIDField()
    start_date = serializers.CharField()
    end_date = serializers.CharField()


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class ReservationSerializer(serializers.ModelSerializer):
    """Detailed reservation representation."""

    vehicle_id = serializers.ReadOnlyField(source="vehicle.id")
    vehicle_title = serializers.ReadOnlyField(source="vehicle.title")
    total_days = serializers.ReadOnlyField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "vehicle_id",
            "vehicle_title",
            "renter_id",
            "start_date",
            "end_date",
            "total_days",
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
        ]
        read_only_fields = fields
