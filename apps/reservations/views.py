"""API views for the reservation domain."""

from __future__ import annotations

from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Reservation
from .serializers import (
    ReservationCancelSerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
)
from .services import get_engine

UUID_PATTERN = r"[0-9a-fA-F-]{36}"


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset for creating reservations and driving their lifecycle.

    Reservations are never deleted through the API; cancelled, expired and
    rejected rows stay as history.
    """

    queryset = Reservation.objects.select_related("vehicle").all()
    serializer_class = ReservationSerializer
    filterset_fields = ["vehicle", "renter_id", "status"]
    ordering_fields = ["created_at", "start_date"]
    lookup_value_regex = UUID_PATTERN

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        if self.action == "cancel":
            return ReservationCancelSerializer
        return ReservationSerializer

    def _render(self, reservation_id, status_code=status.HTTP_200_OK):
        instance = self.get_queryset().get(pk=reservation_id)
        data = ReservationSerializer(instance, context=self.get_serializer_context()).data
        return Response(data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = get_engine().create(
            data["vehicle"],
            data["renter_id"],
            data["start_date"],
            data["end_date"],
        )
        if not outcome.accepted:
            payload = outcome.to_error().to_dict()
            if outcome.reservation is not None:
                payload["rejected_reservation_id"] = str(outcome.reservation.id)
            return Response(payload, status=status.HTTP_409_CONFLICT)

        return self._render(outcome.reservation.id, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        reservation = get_engine().confirm(pk)
        return self._render(reservation.id)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = get_engine().cancel(pk, serializer.validated_data["reason"])
        return self._render(reservation.id)
