"""Recurring lifecycle sweep.

Runs ``EventLifecycle.sweep`` on a dedicated daemon thread so it never
blocks request handling. Sweeps never overlap within a process: every
``RecurringSweep`` shares one lock, and a run requested while another is in
flight is skipped.
"""

import logging
import threading
from collections.abc import Callable

from django.db import connections

from events.domain.read_models import SweepReport
from events.services.lifecycle_service import EventLifecycle

logger = logging.getLogger(__name__)

# Shared by every RecurringSweep in the process.
_SWEEP_LOCK = threading.Lock()


class RecurringSweep:
    """Cancellable background task owned by the process."""

    def __init__(self, lifecycle_factory: Callable[[], EventLifecycle], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._lifecycle_factory = lifecycle_factory
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepReport | None:
        """Run one sweep now, or return None if another one is still running."""
        if not _SWEEP_LOCK.acquire(blocking=False):
            logger.warning("Lifecycle sweep still running, skipping this tick")
            return None
        try:
            return self._lifecycle_factory().sweep()
        finally:
            _SWEEP_LOCK.release()

    def _loop(self) -> None:
        try:
            while not self._stopped.is_set():
                try:
                    self.run_once()
                except Exception:
                    # Picked up again on the next tick.
                    logger.exception("Lifecycle sweep tick failed")
                self._stopped.wait(self._interval)
        finally:
            connections.close_all()
            logger.info("Lifecycle sweep thread stopped")

    def start(self) -> None:
        if self.is_alive:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._loop, name="lifecycle-sweep", daemon=True)
        self._thread.start()
        logger.info("Lifecycle sweep started (every %ss)", self._interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def wait(self) -> None:
        """Block until the sweep is stopped."""
        while self.is_alive:
            self._thread.join(0.5)
