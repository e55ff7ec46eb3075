"""Event lifecycle evaluation.

``EventLifecycle.evaluate`` is the only code that writes an automatic
status change. It is called after purchases and refunds, from the periodic
sweep, and from the read path through ``ensure_current`` when a snapshot
is stale.
"""

import logging

from events.domain import EventId, EventStatus
from events.domain.clock import TimeSource
from events.domain.errors import EventNotFoundError
from events.domain.lifecycle import derive_status
from events.domain.read_models import SweepReport
from events.stores.interfaces import EventStore, TicketLedger

logger = logging.getLogger(__name__)


class EventLifecycle:
    """Derives and persists event status from tickets and time."""

    def __init__(self, store: EventStore, ledger: TicketLedger, clock: TimeSource) -> None:
        self._store = store
        self._ledger = ledger
        self._clock = clock

    def evaluate(self, event_id: EventId) -> EventStatus:
        """Re-derive the status of one event and persist it if it changed.

        Sold-out flags are recomputed from purchase counts first, so a stale
        cached flag is corrected rather than trusted.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        now = self._clock.now()
        with self._store.atomic():
            event = self._store.lock_event(event_id)
            if event is None:
                raise EventNotFoundError(str(event_id))
            if event.status is EventStatus.COMPLETED:
                return event.status

            tickets = self._store.get_tickets_for_event(event_id)
            flags = [self._ledger.sync_sold_out(ticket.id) for ticket in tickets]
            status = derive_status(event.status, flags, event.end_time, event.has_sales, now)
            if status is not event.status:
                self._store.set_event_status(event_id, status)
                logger.info("Event %s moved from %s to %s", event_id, event.status.value, status.value)
        return status

    def ensure_current(self, event_id: EventId) -> EventStatus:
        """Evaluate only when an unlocked snapshot shows a pending change.

        Reads stay off the row locks unless a status or sold-out flag is
        actually stale.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        event = self._store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        if event.status is EventStatus.COMPLETED:
            return event.status

        tickets = self._store.get_tickets_for_event(event_id)
        sold = self._store.sold_counts(t.id for t in tickets)
        flags = [t.count.is_exhausted_by(sold[t.id]) for t in tickets]
        stale_flags = any(flag != t.is_sold_out for flag, t in zip(flags, tickets))
        status = derive_status(event.status, flags, event.end_time, event.has_sales, self._clock.now())
        if status is event.status and not stale_flags:
            return status
        return self.evaluate(event_id)

    def refresh(self, event_id: EventId) -> EventStatus | None:
        """Evaluate after a committed write; failures are logged and left to the sweep."""
        try:
            return self.evaluate(event_id)
        except EventNotFoundError:
            return None
        except Exception:
            logger.exception("Status refresh failed for event %s", event_id)
            return None

    def sweep(self) -> SweepReport:
        """Evaluate every event that can still change status.

        One failing event does not stop the batch; it is logged and picked
        up again on the next sweep.
        """
        candidates = self._store.list_events(
            statuses=[EventStatus.DRAFT, EventStatus.PUBLISHED, EventStatus.SOLD_OUT]
        )
        transitioned = failed = 0
        for event in candidates:
            try:
                status = self.evaluate(event.id)
            except Exception:
                failed += 1
                logger.exception("Lifecycle sweep failed for event %s", event.id)
                continue
            if status is not event.status:
                transitioned += 1

        report = SweepReport(examined=len(candidates), transitioned=transitioned, failed=failed)
        logger.info(
            "Lifecycle sweep examined %s events: %s transitioned, %s failed",
            report.examined,
            report.transitioned,
            report.failed,
        )
        return report
