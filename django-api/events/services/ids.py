"""Parse external identifiers into domain ids, mapping failures to InvalidIdError."""

from events.domain import EventId, PurchaseId, TicketId
from events.domain.errors import InvalidIdError


def parse_event_id(value: str) -> EventId:
    try:
        return EventId.from_string(value)
    except (TypeError, ValueError):
        raise InvalidIdError("event") from None


def parse_ticket_id(value: str) -> TicketId:
    try:
        return TicketId.from_string(value)
    except (TypeError, ValueError):
        raise InvalidIdError("ticket") from None


def parse_purchase_id(value: str) -> PurchaseId:
    try:
        return PurchaseId.from_string(value)
    except (TypeError, ValueError):
        raise InvalidIdError("purchase") from None
