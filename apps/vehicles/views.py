"""API views for the vehicles domain."""

from __future__ import annotations

from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.reservations.services import get_engine

from . import services
from .models import Vehicle
from .serializers import LocationReportSerializer, LocationSampleSerializer, VehicleSerializer

UUID_PATTERN = r"[0-9a-fA-F-]{36}"


def _window(request):
    return request.query_params.get("from"), request.query_params.get("to")


class VehicleViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Vehicle listings, availability, quotes and position reports.

    Vehicles are deactivated rather than deleted so reservation history
    keeps its references.
    """

    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer
    filterset_fields = ["owner_id", "is_active", "currency"]
    search_fields = ["title", "make", "model", "license_plate"]
    lookup_value_regex = UUID_PATTERN

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        """Blocking holds intersecting [from, to) and whether the window is free."""
        vehicle: Vehicle = self.get_object()  # type: ignore
        start, end = _window(request)
        availability = get_engine().availability(vehicle.id, start, end)
        return Response(
            {
                "vehicle_id": str(vehicle.id),
                "from": availability.window.start.isoformat(),
                "to": availability.window.end.isoformat(),
                "is_free": availability.is_free,
                "holds": [
                    {
                        "reservation_id": str(hold.reservation_id),
                        "start": hold.interval.start.isoformat(),
                        "end": hold.interval.end.isoformat(),
                    }
                    for hold in availability.holds
                ],
            }
        )

    @action(detail=True, methods=["get"])
    def quote(self, request, pk=None):  # type: ignore
        """Price [from, to) without reserving anything."""
        vehicle: Vehicle = self.get_object()  # type: ignore
        start, end = _window(request)
        quote = get_engine().quote(vehicle, start, end)
        return Response(quote.to_dict())

    @action(detail=True, methods=["post"], serializer_class=LocationReportSerializer)
    def location(self, request, pk=None):  # type: ignore
        vehicle: Vehicle = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sample = services.record_location(vehicle, **serializer.validated_data)
        return Response(LocationSampleSerializer(sample).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["get"],
        url_path="location/latest",
        url_name="location-latest",
        serializer_class=LocationSampleSerializer,
    )
    def location_latest(self, request, pk=None):  # type: ignore
        """Position with the greatest timestamp reported so far."""
        vehicle: Vehicle = self.get_object()  # type: ignore
        sample = services.latest_location(vehicle)
        if sample is None:
            return Response(
                {"detail": "No position reported yet.", "code": "not_found"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(LocationSampleSerializer(sample).data)

    @action(
        detail=True,
        methods=["get"],
        url_path="location/history",
        url_name="location-history",
        serializer_class=LocationSampleSerializer,
    )
    def location_history(self, request, pk=None):  # type: ignore
        """Retained samples, most recently received first."""
        vehicle: Vehicle = self.get_object()  # type: ignore
        samples = services.location_history(vehicle)
        return Response(LocationSampleSerializer(samples, many=True).data)
