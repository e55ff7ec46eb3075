"""Ticket tier management for organizers."""

import logging
from dataclasses import fields

from events.domain import Event, Ticket
from events.domain.commands import TicketChanges, TicketDraft
from events.domain.errors import (
    EventNotFoundError,
    InvalidTicketError,
    NotEventOwnerError,
    TicketHasPurchasesError,
    TicketNotFoundError,
)
from events.domain.read_models import TicketAvailability
from events.domain.refund_policy import MAX_REFUND_DATE_COUNT, window_in_range
from events.services.ids import parse_event_id, parse_ticket_id
from events.services.lifecycle_service import EventLifecycle
from events.stores.interfaces import EventStore, TicketLedger

logger = logging.getLogger(__name__)


def _check_windows(sales_start, sales_end, valid_from, valid_to) -> None:
    if sales_start and sales_end and sales_end < sales_start:
        raise InvalidTicketError("Sales end must not precede sales start")
    if valid_from and valid_to and valid_to < valid_from:
        raise InvalidTicketError("Validity end must not precede validity start")


class TicketService:
    """Service for adding, changing and removing ticket tiers."""

    def __init__(self, store: EventStore, ledger: TicketLedger, lifecycle: EventLifecycle) -> None:
        self._store = store
        self._ledger = ledger
        self._lifecycle = lifecycle

    def _owned_event(self, event_id, organizer_id: int) -> Event:
        event = self._store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        if event.organizer_id != organizer_id:
            raise NotEventOwnerError(str(event_id))
        return event

    def _owned_ticket(self, ticket_id: str, organizer_id: int) -> Ticket:
        ticket = self._store.get_ticket(parse_ticket_id(ticket_id))
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        self._owned_event(ticket.event_id, organizer_id)
        return ticket

    def list_tickets(self, event_id: str) -> list[TicketAvailability]:
        """Return an event's tiers with authoritative sold counts.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        eid = parse_event_id(event_id)
        if not self._store.event_exists(eid):
            raise EventNotFoundError(event_id)
        tickets = self._store.get_tickets_for_event(eid)
        sold = self._store.sold_counts(t.id for t in tickets)
        return [TicketAvailability(ticket=t, sold_count=sold[t.id]) for t in tickets]

    def add_ticket(self, event_id: str, organizer_id: int, draft: TicketDraft) -> Ticket:
        event = self._owned_event(parse_event_id(event_id), organizer_id)
        if draft.count < 1:
            raise InvalidTicketError("Ticket count must be a positive integer")
        if draft.price < 0:
            raise InvalidTicketError("Ticket price cannot be negative")
        if draft.refund_date_count is not None and not window_in_range(draft.refund_date_count):
            raise InvalidTicketError(f"Refund window must be between 0 and {MAX_REFUND_DATE_COUNT} days")
        _check_windows(draft.sales_start, draft.sales_end, draft.valid_from, draft.valid_to)

        ticket = self._store.create_ticket(event.id, draft)
        logger.info("Ticket %s (%s x %s) added to event %s", ticket.id, draft.count, draft.price, event.id)
        # A new available tier lifts a SoldOut event back to Draft.
        self._lifecycle.refresh(event.id)
        return ticket

    def update_ticket(self, ticket_id: str, organizer_id: int, changes: TicketChanges) -> Ticket:
        """Change a tier. Existing purchases keep the terms they were sold with."""
        ticket = self._owned_ticket(ticket_id, organizer_id)
        if changes.price is not None and changes.price < 0:
            raise InvalidTicketError("Ticket price cannot be negative")
        if changes.refund_date_count is not None and not window_in_range(changes.refund_date_count):
            raise InvalidTicketError(f"Refund window must be between 0 and {MAX_REFUND_DATE_COUNT} days")
        _check_windows(
            changes.sales_start or ticket.sales_start,
            changes.sales_end or ticket.sales_end,
            changes.valid_from or ticket.valid_from,
            changes.valid_to or ticket.valid_to,
        )

        updates = {
            f.name: getattr(changes, f.name)
            for f in fields(changes)
            if f.name != "count" and getattr(changes, f.name) is not None
        }
        with self._store.atomic():
            self._store.lock_event(ticket.event_id)
            if changes.count is not None:
                self._ledger.resize(ticket.id, changes.count)
            updated = self._store.update_ticket(ticket.id, **updates)

        self._lifecycle.refresh(ticket.event_id)
        return updated

    def delete_ticket(self, ticket_id: str, organizer_id: int) -> None:
        """Remove a tier that has never been sold.

        Raises:
            TicketHasPurchasesError: If any purchase references the ticket.
        """
        ticket = self._owned_ticket(ticket_id, organizer_id)
        with self._store.atomic():
            self._store.lock_event(ticket.event_id)
            sold = self._ledger.sold_count(ticket.id)
            if sold:
                raise TicketHasPurchasesError(ticket_id, sold)
            self._store.delete_ticket(ticket.id)

        logger.info("Ticket %s removed from event %s", ticket.id, ticket.event_id)
        self._lifecycle.refresh(ticket.event_id)
