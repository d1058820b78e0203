from django.core.management.base import BaseCommand

from temporary_access.services import notify_expiring_soon


class Command(BaseCommand):
    help = "Warn users whose temporary region grants expire within about a day."

    def handle(self, *args, **options):
        result = notify_expiring_soon()
        self.stdout.write(
            self.style.SUCCESS(
                f"Expiry warnings processed. scanned={result.scanned} "
                f"sent={result.sent} skipped={result.skipped}"
            )
        )
