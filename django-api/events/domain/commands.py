"""Validated inputs accepted by the services."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from events.domain.value_objects import TicketId


@dataclass(frozen=True)
class ImageInput:
    image_url: str
    public_id: str
    is_main: bool = False


@dataclass(frozen=True)
class ScheduleInput:
    starts_at: datetime
    ends_at: datetime
    label: str = ""


@dataclass(frozen=True)
class EventDraft:
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    location: str = ""
    refund_date_count: int | None = None
    images: tuple[ImageInput, ...] = ()
    schedule: tuple[ScheduleInput, ...] = ()


@dataclass(frozen=True)
class EventChanges:
    """Partial update; ``None`` leaves a field untouched."""

    title: str | None = None
    description: str | None = None
    location: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    refund_date_count: int | None = None
    images: tuple[ImageInput, ...] | None = None


@dataclass(frozen=True)
class TicketDraft:
    name: str
    price: Decimal
    count: int
    description: str = ""
    sales_start: datetime | None = None
    sales_end: datetime | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    refund_date_count: int | None = None


@dataclass(frozen=True)
class TicketChanges:
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    count: int | None = None
    sales_start: datetime | None = None
    sales_end: datetime | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    refund_date_count: int | None = None


@dataclass(frozen=True)
class LineItem:
    ticket_id: TicketId
    quantity: int = 1

