"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from events import models
from events.domain import EventStatus
from events.domain.clock import FixedClock
from events.notifications import NotificationDispatcher
from events.services import EventLifecycle, EventService, PurchaseService, TicketService
from events.stores.django_ledger import DjangoTicketLedger
from events.stores.django_store import DjangoEventStore

ORGANIZER_ID = 10
BUYER_ID = 20
OTHER_USER_ID = 30
NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


class RecordingDispatcher(NotificationDispatcher):
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.changes = []
        self.new_events = []

    def notify_event_change(self, event_id, change) -> None:
        self.changes.append((event_id, change))

    def notify_followers_on_new_event(self, organizer_id, event_name, event_id) -> None:
        self.new_events.append((organizer_id, event_name, event_id))


class FailingDispatcher(NotificationDispatcher):
    def notify_event_change(self, event_id, change) -> None:
        raise ConnectionError("push service unavailable")

    def notify_followers_on_new_event(self, organizer_id, event_name, event_id) -> None:
        raise ConnectionError("push service unavailable")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def organizer_client() -> APIClient:
    client = APIClient()
    client.credentials(HTTP_X_USER_ID=str(ORGANIZER_ID))
    return client


@pytest.fixture
def buyer_client() -> APIClient:
    client = APIClient()
    client.credentials(HTTP_X_USER_ID=str(BUYER_ID))
    return client


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def store() -> DjangoEventStore:
    return DjangoEventStore()


@pytest.fixture
def ledger() -> DjangoTicketLedger:
    return DjangoTicketLedger()


@pytest.fixture
def lifecycle(store, ledger, clock) -> EventLifecycle:
    return EventLifecycle(store, ledger, clock)


@pytest.fixture
def event_service(store, clock, lifecycle, dispatcher) -> EventService:
    return EventService(store, clock, lifecycle, dispatcher)


@pytest.fixture
def ticket_service(store, ledger, lifecycle) -> TicketService:
    return TicketService(store, ledger, lifecycle)


@pytest.fixture
def purchase_service(store, ledger, clock, lifecycle) -> PurchaseService:
    return PurchaseService(store, ledger, clock, lifecycle)


@pytest.fixture
def make_event():
    """Create an Event row; published, a month ahead and two days long by default."""

    def _make(status: EventStatus = EventStatus.PUBLISHED, **overrides) -> models.Event:
        fields = {
            "organizer_id": ORGANIZER_ID,
            "title": "Summer Festival",
            "start_time": NOW + timedelta(days=30),
            "end_time": NOW + timedelta(days=32),
            "status": status.value,
        }
        fields.update(overrides)
        return models.Event.objects.create(**fields)

    return _make


@pytest.fixture
def make_ticket():
    """Create a Ticket row on an event, valid for the event's dates by default."""

    def _make(event: models.Event, **overrides) -> models.Ticket:
        fields = {
            "event": event,
            "name": "General admission",
            "price": Decimal("25.00"),
            "count": 10,
            "valid_from": event.start_time,
            "valid_to": event.end_time,
        }
        fields.update(overrides)
        return models.Ticket.objects.create(**fields)

    return _make


@pytest.fixture
def make_purchase():
    """Create a Purchase row directly, bypassing the ledger."""

    def _make(ticket: models.Ticket, buyer_id: int = BUYER_ID, **overrides) -> models.Purchase:
        fields = {
            "ticket": ticket,
            "buyer_id": buyer_id,
            "price": ticket.price,
            "valid_from": ticket.valid_from,
            "valid_to": ticket.valid_to,
            "refund_date_count": ticket.refund_date_count,
            "purchase_time": NOW,
        }
        fields.update(overrides)
        return models.Purchase.objects.create(**fields)

    return _make
