from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand  # type: ignore
from django.utils import timezone  # type: ignore

from apps.reservations import conf
from apps.reservations.models import Reservation


class Command(BaseCommand):
    help = "Deletes cancelled, expired and rejected reservations older than N days"

    def add_arguments(self, parser):  # type: ignore
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Retention in days (defaults to RESERVATIONS['RETENTION_DAYS'])",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many rows would be deleted",
        )

    def handle(self, *args, **options):  # type: ignore
        days = options["days"] if options["days"] is not None else conf.retention_days()
        cutoff = timezone.now() - timedelta(days=days)

        # Blocking reservations are never purged
        stale = Reservation.objects.terminal().filter(updated_at__lt=cutoff)
        count = stale.count()

        if options["dry_run"]:
            self.stdout.write(f"{count} reservations older than {days} days would be deleted")
            return

        stale.delete()
        self.stdout.write(
            self.style.SUCCESS(f"Deleted {count} reservations older than {days} days")
        )
