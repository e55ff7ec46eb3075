"""Builds services from settings.

Handlers, the sweep and management commands get their services here so
that the concrete store, clock and dispatcher are chosen in one place.
"""

from django.conf import settings
from django.utils.module_loading import import_string

from events.domain.clock import SystemClock, TimeSource
from events.notifications import NotificationDispatcher
from events.services import EventLifecycle, EventService, PurchaseService, TicketService
from events.stores.django_ledger import DjangoTicketLedger
from events.stores.django_store import DjangoEventStore


def ticketing_setting(name: str):
    return settings.TICKETING[name]


def get_clock() -> TimeSource:
    return SystemClock(ticketing_setting("REFERENCE_UTC_OFFSET_MINUTES"))


def get_dispatcher() -> NotificationDispatcher:
    return import_string(ticketing_setting("NOTIFICATION_DISPATCHER"))()


def get_lifecycle(clock: TimeSource | None = None) -> EventLifecycle:
    return EventLifecycle(DjangoEventStore(), DjangoTicketLedger(), clock or get_clock())


def get_event_service() -> EventService:
    clock = get_clock()
    return EventService(DjangoEventStore(), clock, get_lifecycle(clock), get_dispatcher())


def get_ticket_service() -> TicketService:
    return TicketService(DjangoEventStore(), DjangoTicketLedger(), get_lifecycle())


def get_purchase_service() -> PurchaseService:
    clock = get_clock()
    return PurchaseService(DjangoEventStore(), DjangoTicketLedger(), clock, get_lifecycle(clock))
