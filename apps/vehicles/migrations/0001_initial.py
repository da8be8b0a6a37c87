import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "owner_id",
                    models.UUIDField(
                        db_index=True,
                        help_text="Opaque owner identifier supplied by the identity layer.",
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("make", models.CharField(blank=True, max_length=100)),
                ("model", models.CharField(blank=True, max_length=100)),
                ("license_plate", models.CharField(blank=True, max_length=20)),
                (
                    "price_per_day",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("is_active", models.BooleanField(default=True)),
                ("last_latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("last_longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("last_seen_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Vehicle",
                "verbose_name_plural": "Vehicles",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["owner_id", "is_active"], name="vehicle_owner_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LocationSample",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "latitude",
                    models.DecimalField(
                        decimal_places=6,
                        max_digits=9,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("-90")),
                            django.core.validators.MaxValueValidator(Decimal("90")),
                        ],
                    ),
                ),
                (
                    "longitude",
                    models.DecimalField(
                        decimal_places=6,
                        max_digits=9,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("-180")),
                            django.core.validators.MaxValueValidator(Decimal("180")),
                        ],
                    ),
                ),
                ("recorded_at", models.DateTimeField(help_text="Timestamp reported by the vehicle.")),
                ("received_at", models.DateTimeField(auto_now_add=True)),
                (
                    "vehicle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="location_samples",
                        to="vehicles.vehicle",
                    ),
                ),
            ],
            options={
                "verbose_name": "Location sample",
                "verbose_name_plural": "Location samples",
                "ordering": ["-id"],
                "indexes": [
                    models.Index(fields=["vehicle", "-id"], name="location_vehicle_arrival_idx"),
                ],
            },
        ),
    ]
