from events.domain.models import Event, EventImage, EventStatus, Purchase, ScheduleEntry, Ticket
from events.domain.value_objects import Capacity, EventId, Money, PurchaseId, TicketId

__all__ = [
    "Event",
    "EventImage",
    "EventStatus",
    "Purchase",
    "ScheduleEntry",
    "Ticket",
    "EventId",
    "TicketId",
    "PurchaseId",
    "Money",
    "Capacity",
]
