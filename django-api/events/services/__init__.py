from events.services.event_service import EventService
from events.services.lifecycle_service import EventLifecycle
from events.services.purchase_service import PurchaseService
from events.services.ticket_service import TicketService

__all__ = [
    "EventService",
    "EventLifecycle",
    "PurchaseService",
    "TicketService",
]
