"""Serializers for the vehicles domain."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import SUPPORTED_CURRENCIES

from .models import Vehicle


def default_currency() -> str:
    return getattr(settings, "VEHICLES", {}).get("DEFAULT_CURRENCY", "USD")


class VehicleSerializer(serializers.ModelSerializer):
    """Owner-facing vehicle listing."""

    currency = serializers.CharField(max_length=3, required=False)

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "owner_id",
            "title",
            "make",
            "model",
            "license_plate",
            "price_per_day",
            "currency",
            "is_active",
            "last_latitude",
            "last_longitude",
            "last_seen_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "last_latitude",
            "last_longitude",
            "last_seen_at",
            "created_at",
            "updated_at",
        ]

    def validate_currency(self, value: str) -> str:
        value = value.upper()
        if value not in SUPPORTED_CURRENCIES:
            raise serializers.ValidationError(f"Unsupported currency: {value}")
        return value

    def validate_owner_id(self, value):  # type: ignore
        if self.instance is not None and value != self.instance.owner_id:
            raise serializers.ValidationError("Owner cannot be changed.")
        return value

    def create(self, validated_data):  # type: ignore
        validated_data.setdefault("currency", default_currency())
        return super().create(validated_data)


class LocationReportSerializer(serializers.Serializer):
    latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=Decimal("-90"), max_value=Decimal("90")
    )
    longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=Decimal("-180"), max_value=Decimal("180")
    )
    recorded_at = serializers.DateTimeField()


class LocationSampleSerializer(serializers.Serializer):
    """Read-only view of a tracker sample."""

    vehicle_id = serializers.UUIDField(read_only=True)
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, read_only=True)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, read_only=True)
    recorded_at = serializers.DateTimeField(read_only=True)
