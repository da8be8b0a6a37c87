"""Integration tests for vehicle API endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from datetime import timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.reservations.services import get_engine, reset_engine
from apps.vehicles.domain.tracker import LocationTracker
from apps.vehicles.models import LocationSample, Vehicle
from apps.vehicles.services import get_tracker, record_location, reset_tracker


class VehicleAPITestCase(APITestCase):
    def setUp(self) -> None:
        reset_engine()
        reset_tracker()
        self.addCleanup(reset_engine)
        self.addCleanup(reset_tracker)
        self.owner_id = uuid.uuid4()
        self.vehicle = Vehicle.objects.create(
            owner_id=self.owner_id,
            title="Toyota Camry 2021",
            make="Toyota",
            model="Camry",
            license_plate="123ABC01",
            price_per_day=Decimal("50.00"),
        )

    def url(self, name: str, vehicle=None) -> str:
        return reverse(f"vehicle-{name}", args=[(vehicle or self.vehicle).id])


class VehicleCRUDTests(VehicleAPITestCase):
    def test_owner_can_list_vehicle(self) -> None:
        response = self.client.post(
            reverse("vehicle-list"),
            {"owner_id": str(self.owner_id), "title": "Kia Rio", "price_per_day": "25.50"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["currency"], "USD")
        self.assertTrue(response.data["is_active"])
        self.assertIsNone(response.data["last_seen_at"])

    def test_currency_is_validated(self) -> None:
        payload = {"owner_id": str(self.owner_id), "title": "Kia Rio", "price_per_day": "25.50"}

        response = self.client.post(reverse("vehicle-list"), {**payload, "currency": "eur"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["currency"], "EUR")

        response = self.client.post(reverse("vehicle-list"), {**payload, "currency": "XYZ"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("currency", response.data)

    def test_price_must_be_positive(self) -> None:
        response = self.client.post(
            reverse("vehicle-list"),
            {"owner_id": str(self.owner_id), "title": "Free car", "price_per_day": "0.00"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("price_per_day", response.data)

    def test_update_price_and_deactivate(self) -> None:
        response = self.client.patch(
            reverse("vehicle-detail", args=[self.vehicle.id]),
            {"price_per_day": "65.00", "is_active": False},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.price_per_day, Decimal("65.00"))
        self.assertFalse(self.vehicle.is_active)

    def test_owner_cannot_be_changed(self) -> None:
        response = self.client.patch(
            reverse("vehicle-detail", args=[self.vehicle.id]),
            {"owner_id": str(uuid.uuid4())},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("owner_id", response.data)

    def test_vehicles_cannot_be_deleted(self) -> None:
        response = self.client.delete(reverse("vehicle-detail", args=[self.vehicle.id]))

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertTrue(Vehicle.objects.filter(pk=self.vehicle.pk).exists())

    def test_filter_by_owner(self) -> None:
        Vehicle.objects.create(owner_id=uuid.uuid4(), title="Other", price_per_day=Decimal("10.00"))

        response = self.client.get(reverse("vehicle-list"), {"owner_id": str(self.owner_id)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], str(self.vehicle.id))

    def test_unknown_vehicle_returns_404(self) -> None:
        response = self.client.get(reverse("vehicle-detail", args=[uuid.uuid4()]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AvailabilityAndQuoteTests(VehicleAPITestCase):
    def test_availability_reports_holds_in_window(self) -> None:
        outcome = get_engine().create(self.vehicle.id, uuid.uuid4(), date(2025, 6, 1), date(2025, 6, 4))

        response = self.client.get(self.url("availability"), {"from": "2025-06-02", "to": "2025-06-10"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["is_free"])
        self.assertEqual(
            response.data["holds"],
            [{"reservation_id": str(outcome.reservation.id), "start": "2025-06-01", "end": "2025-06-04"}],
        )

        response = self.client.get(self.url("availability"), {"from": "2025-06-04", "to": "2025-06-10"})
        self.assertTrue(response.data["is_free"])
        self.assertEqual(response.data["holds"], [])

    def test_availability_requires_a_valid_window(self) -> None:
        response = self.client.get(self.url("availability"), {"from": "2025-06-10"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_interval")

    def test_quote_prices_without_reserving(self) -> None:
        response = self.client.get(self.url("quote"), {"from": "2025-06-01", "to": "2025-06-04"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["days"], 3)
        self.assertEqual(response.data["price_per_day"], "50.00")
        self.assertEqual(response.data["total"], "150.00")
        self.assertEqual(response.data["currency"], "USD")
        self.assertTrue(get_engine().is_free(self.vehicle.id, date(2025, 6, 1), date(2025, 6, 4)))


class LocationTests(VehicleAPITestCase):
    def report(self, minute: int, latitude: str = "43.238949", longitude: str = "76.889709"):
        return self.client.post(
            self.url("location"),
            {
                "latitude": latitude,
                "longitude": longitude,
                "recorded_at": f"2025-06-01T12:{minute:02d}:00Z",
            },
            format="json",
        )

    def recorded_times(self) -> list[str]:
        response = self.client.get(self.url("location-history"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [item["recorded_at"] for item in response.data]

    def test_no_position_yet(self) -> None:
        response = self.client.get(self.url("location-latest"))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")
        self.assertEqual(self.recorded_times(), [])

    def test_report_and_read_latest(self) -> None:
        response = self.report(3)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["latitude"], "43.238949")

        response = self.client.get(self.url("location-latest"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["recorded_at"], "2025-06-01T12:03:00Z")
        self.assertEqual(response.data["vehicle_id"], str(self.vehicle.id))

    def test_out_of_order_samples_do_not_move_latest_back(self) -> None:
        for minute in (3, 1, 2):
            self.assertEqual(self.report(minute).status_code, status.HTTP_201_CREATED)

        latest = self.client.get(self.url("location-latest"))
        self.assertEqual(latest.data["recorded_at"], "2025-06-01T12:03:00Z")
        self.assertEqual(
            self.recorded_times(),
            ["2025-06-01T12:02:00Z", "2025-06-01T12:01:00Z", "2025-06-01T12:03:00Z"],
        )

        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.last_seen_at.minute, 3)

    def test_history_is_bounded_in_memory_and_storage(self) -> None:
        with self.settings(VEHICLES={"LOCATION_HISTORY_LIMIT": 3, "DEFAULT_CURRENCY": "USD"}):
            reset_tracker()
            for minute in range(1, 6):
                self.report(minute)

            self.assertEqual(
                self.recorded_times(),
                ["2025-06-01T12:05:00Z", "2025-06-01T12:04:00Z", "2025-06-01T12:03:00Z"],
            )
            self.assertEqual(LocationSample.objects.filter(vehicle=self.vehicle).count(), 3)

    def test_state_is_restored_after_restart(self) -> None:
        with self.settings(VEHICLES={"LOCATION_HISTORY_LIMIT": 3, "DEFAULT_CURRENCY": "USD"}):
            reset_tracker()
            for minute in (50, 1, 2, 3):
                self.report(minute)

            reset_tracker()

            latest = self.client.get(self.url("location-latest"))
            self.assertEqual(latest.data["recorded_at"], "2025-06-01T12:50:00Z")
            self.assertEqual(
                self.recorded_times(),
                ["2025-06-01T12:03:00Z", "2025-06-01T12:02:00Z", "2025-06-01T12:01:00Z"],
            )

    def test_latest_reported_through_another_worker_is_visible(self) -> None:
        self.report(3)
        self.assertEqual(
            self.client.get(self.url("location-latest")).data["recorded_at"],
            "2025-06-01T12:03:00Z",
        )

        # A second worker process has its own tracker; only the vehicle row is shared
        with patch("apps.vehicles.services.get_tracker", return_value=LocationTracker()):
            record_location(
                Vehicle.objects.get(pk=self.vehicle.pk),
                Decimal("43.250000"),
                Decimal("76.900000"),
                datetime(2025, 6, 1, 12, 10, tzinfo=dt_timezone.utc),
            )

        latest = self.client.get(self.url("location-latest"))
        self.assertEqual(latest.status_code, status.HTTP_200_OK)
        self.assertEqual(latest.data["recorded_at"], "2025-06-01T12:10:00Z")
        self.assertEqual(get_tracker().latest(self.vehicle.id).recorded_at.minute, 3)

    def test_out_of_range_coordinates_are_rejected(self) -> None:
        response = self.report(1, latitude="95.0")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("latitude", response.data)
        self.assertFalse(LocationSample.objects.exists())

    def test_location_for_unknown_vehicle(self) -> None:
        response = self.client.post(
            reverse("vehicle-location", args=[uuid.uuid4()]),
            {"latitude": "1", "longitude": "1", "recorded_at": "2025-06-01T12:00:00Z"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
