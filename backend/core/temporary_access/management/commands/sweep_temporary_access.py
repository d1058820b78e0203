from django.core.management.base import BaseCommand

from temporary_access.services import sweep_expired_grants


class Command(BaseCommand):
    help = "Expire temporary region grants whose validity has passed."

    def handle(self, *args, **options):
        result = sweep_expired_grants()
        self.stdout.write(
            self.style.SUCCESS(
                f"Temporary access sweep finished. scanned={result.scanned} "
                f"expired={result.expired} assignments_removed={result.assignments_removed}"
            )
        )
