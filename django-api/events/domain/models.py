"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum

from events.domain.value_objects import Capacity, EventId, Money, PurchaseId, TicketId


class EventStatus(str, Enum):
    """Publication status of an event."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SOLD_OUT = "sold_out"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    organizer_id: int
    title: str
    description: str
    location: str
    start_time: datetime
    end_time: datetime
    status: EventStatus
    refund_date_count: int | None
    revenue: Money
    has_sales: bool
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    def spans_single_day(self, tz: tzinfo) -> bool:
        return self.start_time.astimezone(tz).date() == self.end_time.astimezone(tz).date()

    def has_elapsed(self, now: datetime) -> bool:
        return self.end_time < now


@dataclass(frozen=True)
class Ticket:
    """Domain representation of a Ticket tier."""

    id: TicketId
    event_id: EventId
    name: str
    description: str
    price: Money
    count: Capacity
    sales_start: datetime | None
    sales_end: datetime | None
    valid_from: datetime | None
    valid_to: datetime | None
    refund_date_count: int | None
    is_sold_out: bool
    created_at: datetime

    def on_sale(self, now: datetime) -> bool:
        """Whether ``now`` falls inside the sales window (open bounds allowed)."""
        if self.sales_start is not None and now < self.sales_start:
            return False
        if self.sales_end is not None and now > self.sales_end:
            return False
        return True


@dataclass(frozen=True)
class Purchase:
    """One sold unit of a ticket tier, with the ticket terms captured at sale time."""

    id: PurchaseId
    ticket_id: TicketId
    event_id: EventId
    buyer_id: int
    price: Money
    valid_from: datetime | None
    valid_to: datetime | None
    refund_date_count: int | None
    purchase_time: datetime
    payment_reference: str = ""


@dataclass(frozen=True)
class EventImage:
    public_id: str
    image_url: str
    is_main: bool


@dataclass(frozen=True)
class ScheduleEntry:
    """A dated slot in an event's programme."""

    event_id: EventId
    starts_at: datetime
    ends_at: datetime
    label: str = ""
