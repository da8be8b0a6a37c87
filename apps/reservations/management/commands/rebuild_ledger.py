from __future__ import annotations

from django.core.management.base import BaseCommand  # type: ignore

from apps.reservations.services import get_engine


class Command(BaseCommand):
    help = "Rebuilds the availability ledger from pending and confirmed reservations"

    def handle(self, *args, **options):  # type: ignore
        engine = get_engine()
        total = engine.rebuild_ledger()
        self.stdout.write(self.style.SUCCESS(f"Ledger rebuilt with {total} holds"))
        for vehicle_id, count in sorted(engine.ledger.summary().items(), key=lambda item: str(item[0])):
            self.stdout.write(f"  {vehicle_id}: {count} holds")
