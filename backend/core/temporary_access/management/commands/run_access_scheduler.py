import logging
import time

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import close_old_connections

from temporary_access.services import notify_expiring_soon, sweep_expired_grants

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run the temporary access sweep and expiry warnings on their configured intervals."

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run both jobs a single time and exit.",
        )

    def handle(self, *args, **options):
        sweep_interval = int(getattr(settings, "TEMPORARY_ACCESS_SWEEP_INTERVAL_SECONDS", 300))
        notify_interval = int(getattr(settings, "TEMPORARY_ACCESS_NOTIFY_INTERVAL_SECONDS", 3600))
        jobs = [
            ("sweep", sweep_expired_grants, sweep_interval),
            ("expiry_warnings", notify_expiring_soon, notify_interval),
        ]
        next_run = {name: 0.0 for name, _job, _interval in jobs}

        if options["once"]:
            for name, job, _interval in jobs:
                self._run(name, job)
            return

        self.stdout.write(
            f"Access scheduler started (sweep every {sweep_interval}s, "
            f"warnings every {notify_interval}s)."
        )
        try:
            while True:
                close_old_connections()
                now = time.monotonic()
                for name, job, interval in jobs:
                    if now >= next_run[name]:
                        self._run(name, job)
                        next_run[name] = now + interval
                time.sleep(max(1.0, min(next_run.values()) - time.monotonic()))
        except KeyboardInterrupt:
            self.stdout.write("Access scheduler stopped.")

    def _run(self, name, job):
        try:
            result = job()
        except Exception:
            # One failed pass must not stop the loop; the next interval retries.
            logger.exception("scheduled access job failed", extra={"job": name})
            self.stdout.write(self.style.ERROR(f"{name}: failed"))
            return None
        self.stdout.write(self.style.SUCCESS(f"{name}: {result}"))
        return result
