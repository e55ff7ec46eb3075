import signal

from django.conf import settings
from django.core.management.base import BaseCommand

from events.dependencies import get_lifecycle
from events.sweep import RecurringSweep


class Command(BaseCommand):
    help = "Complete elapsed events and sync sold-out status, once or on a fixed interval."

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between sweeps (defaults to TICKETING['SWEEP_INTERVAL_SECONDS']).",
        )

    def handle(self, *args, **options):
        interval = options["interval"] or settings.TICKETING["SWEEP_INTERVAL_SECONDS"]
        sweep = RecurringSweep(get_lifecycle, interval)

        if options["once"]:
            report = sweep.run_once()
            if report is None:
                self.stdout.write("Another lifecycle sweep is running, skipped.")
                return
            self.stdout.write(
                f"examined={report.examined} transitioned={report.transitioned} failed={report.failed}"
            )
            return

        def stop(*_):
            self.stdout.write("Stopping lifecycle sweep...")
            sweep.stop()

        signal.signal(signal.SIGTERM, stop)
        signal.signal(signal.SIGINT, stop)
        sweep.start()
        sweep.wait()
