"""Read models returned by services to the handlers."""

from dataclasses import dataclass
from datetime import datetime

from events.domain.models import Event, EventImage, EventStatus, Purchase, ScheduleEntry, Ticket
from events.domain.value_objects import EventId, Money, PurchaseId


@dataclass(frozen=True)
class TicketAvailability:
    """A ticket tier together with its authoritative sold count."""

    ticket: Ticket
    sold_count: int

    @property
    def available_count(self) -> int:
        return self.ticket.count.remaining(self.sold_count)

    @property
    def profit(self) -> Money:
        return self.ticket.price.times(self.sold_count)


@dataclass(frozen=True)
class EventListing:
    event: Event
    active_date: datetime
    tickets: tuple[Ticket, ...]
    images: tuple[EventImage, ...] = ()


@dataclass(frozen=True)
class EventDetail:
    event: Event
    tickets: tuple[TicketAvailability, ...]
    active_date: datetime | None
    images: tuple[EventImage, ...] = ()
    schedule: tuple[ScheduleEntry, ...] = ()

    @property
    def status(self) -> EventStatus:
        return self.event.status

    @property
    def total_tickets_count(self) -> int:
        return sum(t.ticket.count.value for t in self.tickets)

    @property
    def total_sold_tickets(self) -> int:
        return sum(t.sold_count for t in self.tickets)

    @property
    def available_tickets_count(self) -> int:
        return sum(t.available_count for t in self.tickets)


@dataclass(frozen=True)
class OrganizerEventSummary:
    """Dashboard row for an organizer's event."""

    event: Event
    sold_tickets_count: int
    total_tickets_count: int
    profit: Money


@dataclass(frozen=True)
class PurchaseView:
    """A buyer-facing purchase with its refund deadline.

    ``refund_deadline`` is None when no refund is possible any more
    (no window, window elapsed or parameters missing).
    """

    purchase: Purchase
    ticket_name: str
    event_title: str
    event_start_time: datetime
    event_status: EventStatus
    refund_deadline: datetime | None

    @property
    def refundable(self) -> bool:
        return self.refund_deadline is not None


@dataclass(frozen=True)
class PurchaseReceipt:
    event_id: EventId
    purchases: tuple[Purchase, ...]
    total_amount: Money


@dataclass(frozen=True)
class RefundReceipt:
    purchase_id: PurchaseId
    event_id: EventId
    refund_amount: Money


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one lifecycle sweep."""

    examined: int = 0
    transitioned: int = 0
    failed: int = 0
