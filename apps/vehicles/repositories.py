"""Vehicle lookups used by the reservation engine."""

from __future__ import annotations

from uuid import UUID

from django.core.exceptions import ValidationError  # type: ignore
from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.exceptions import NotFound

from .models import Vehicle


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class DjangoVehicleRepository:
    def get(self, vehicle_id: UUID, *, lock: bool = False) -> Vehicle:
        try:
            queryset = Vehicle.objects.filter(pk=vehicle_id)
            if lock:
                queryset = lock_queryset_if_possible(queryset)
            vehicle = queryset.first()
        except ValidationError:
            vehicle = None
        if vehicle is None:
            raise NotFound(f"Vehicle {vehicle_id} not found", vehicle_id=str(vehicle_id))
        return vehicle
