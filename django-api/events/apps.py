import atexit
import os
import sys

from django.apps import AppConfig
from django.conf import settings


def serves_requests(argv: list[str], environ) -> bool:
    """Whether this process handles traffic and may own the in-process sweep.

    Management commands other than ``runserver`` never start it, and neither
    does the autoreloader parent of ``runserver``.
    """
    if len(argv) < 2 or os.path.basename(argv[0]) != "manage.py":
        return True
    if argv[1] != "runserver":
        return False
    return "--noreload" in argv or environ.get("RUN_MAIN") == "true"


class EventsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "events"

    sweep = None

    def ready(self):
        from events import signals  # noqa: F401

        if settings.TICKETING["RUN_SWEEP_IN_PROCESS"] and serves_requests(sys.argv, os.environ):
            from events.dependencies import get_lifecycle
            from events.sweep import RecurringSweep

            EventsConfig.sweep = RecurringSweep(get_lifecycle, settings.TICKETING["SWEEP_INTERVAL_SECONDS"])
            EventsConfig.sweep.start()
            atexit.register(EventsConfig.sweep.stop, 5)
