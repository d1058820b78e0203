from django.core.management.base import BaseCommand
from django.db import transaction

from regions.boundaries import STATE_BOUNDARIES
from regions.models import Region


class Command(BaseCommand):
    help = "Create or update the state/UT regions with their boundary rectangles."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        created = 0
        updated = 0

        with transaction.atomic():
            for priority, boundary in enumerate(STATE_BOUNDARIES):
                defaults = {
                    "lat_min": boundary.lat_min,
                    "lat_max": boundary.lat_max,
                    "lng_min": boundary.lng_min,
                    "lng_max": boundary.lng_max,
                    "priority": priority,
                    "is_active": True,
                }
                region = Region.objects.filter(name__iexact=boundary.name).first()
                if region is None:
                    created += 1
                    if not dry_run:
                        Region.objects.create(name=boundary.name, **defaults)
                    continue

                changed = [key for key, value in defaults.items() if getattr(region, key) != value]
                if changed:
                    updated += 1
                    if not dry_run:
                        for key in changed:
                            setattr(region, key, defaults[key])
                        region.save(update_fields=[*changed, "updated_at"])

        prefix = "[dry-run] " if dry_run else ""
        self.stdout.write(
            self.style.SUCCESS(f"{prefix}Regions seeded. created={created} updated={updated}")
        )
