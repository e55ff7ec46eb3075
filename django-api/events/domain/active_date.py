"""Choose the single date to show for an event in listings."""

from collections.abc import Iterable
from datetime import datetime, tzinfo

from events.domain.models import Event, Ticket


def bookable_tickets(tickets: Iterable[Ticket], now: datetime) -> list[Ticket]:
    """Tickets that are not sold out and whose sales and validity have not ended.

    An unset ``sales_end`` or ``valid_to`` is treated as open-ended.
    """
    return [
        ticket
        for ticket in tickets
        if not ticket.is_sold_out
        and (ticket.sales_end is None or ticket.sales_end > now)
        and (ticket.valid_to is None or ticket.valid_to > now)
    ]


def select_active_date(
    event: Event, tickets: Iterable[Ticket], now: datetime, tz: tzinfo
) -> datetime | None:
    """Return the representative date for ``event``, or None if nothing is bookable.

    Single-day events always show their start. Multi-day events show the
    earliest validity start from today on, otherwise the latest past one.
    """
    valid = bookable_tickets(tickets, now)
    if not valid:
        return None

    if event.spans_single_day(tz):
        return event.start_time

    starts = [t.valid_from for t in valid if t.valid_from is not None]
    if not starts:
        return event.start_time

    today = now.astimezone(tz).date()
    upcoming = [start for start in starts if start.astimezone(tz).date() >= today]
    if upcoming:
        return min(upcoming)
    return max(starts)
