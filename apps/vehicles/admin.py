"""Admin registration for vehicles."""

from __future__ import annotations

from django.contrib import admin

from .models import LocationSample, Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "owner_id",
        "license_plate",
        "price_per_day",
        "currency",
        "is_active",
        "last_seen_at",
        "created_at",
    )
    list_filter = ("is_active", "currency")
    search_fields = ("title", "make", "model", "license_plate", "owner_id")
    readonly_fields = (
        "id",
        "last_latitude",
        "last_longitude",
        "last_seen_at",
        "created_at",
        "updated_at",
    )


@admin.register(LocationSample)
class LocationSampleAdmin(admin.ModelAdmin):
    list_display = ("vehicle", "latitude", "longitude", "recorded_at", "received_at")
    list_filter = ("recorded_at",)
    search_fields = ("vehicle__title", "vehicle__license_plate")
    readonly_fields = ("vehicle", "latitude", "longitude", "recorded_at", "received_at")
