"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Methods whose name
starts with ``lock_`` must be called inside ``atomic()`` and hold the row
until the transaction ends. Callers lock in the order event, ticket,
purchase.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal

from events.domain import (
    Event,
    EventId,
    EventImage,
    EventStatus,
    Purchase,
    PurchaseId,
    ScheduleEntry,
    Ticket,
    TicketId,
)
from events.domain.commands import EventDraft, ImageInput, TicketDraft


class EventStore(ABC):
    """Interface for event, ticket and purchase persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping a single all-or-nothing transaction."""
        ...

    # Events

    @abstractmethod
    def list_events(
        self,
        statuses: Iterable[EventStatus] | None = None,
        ending_after: datetime | None = None,
        ending_before: datetime | None = None,
        organizer_id: int | None = None,
        event_ids: Iterable[EventId] | None = None,
    ) -> list[Event]:
        """Return events matching every given filter, ordered by start_time ascending."""
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def lock_event(self, event_id: EventId) -> Event | None:
        """Return the event with its row locked, or None if not found."""
        ...

    @abstractmethod
    def event_exists(self, event_id: EventId) -> bool:
        """Check if an event exists."""
        ...

    @abstractmethod
    def count_events_for_organizer(self, organizer_id: int) -> int:
        ...

    @abstractmethod
    def create_event(self, organizer_id: int, draft: EventDraft, status: EventStatus) -> Event:
        ...

    @abstractmethod
    def update_event(self, event_id: EventId, **fields) -> Event:
        """Persist the given event fields and return the refreshed event."""
        ...

    @abstractmethod
    def set_event_status(self, event_id: EventId, status: EventStatus) -> None:
        ...

    @abstractmethod
    def adjust_revenue(self, event_id: EventId, delta: Decimal) -> Decimal:
        """Re-read the locked revenue, apply ``delta`` and return the new total."""
        ...

    @abstractmethod
    def delete_event_cascade(self, event_id: EventId) -> None:
        """Remove the event with its purchases, tickets, images, favorites and schedule."""
        ...

    @abstractmethod
    def get_images(self, event_id: EventId) -> list[EventImage]:
        ...

    @abstractmethod
    def replace_images(self, event_id: EventId, images: Iterable[ImageInput]) -> None:
        ...

    @abstractmethod
    def get_image_event_id(self, public_id: str) -> EventId | None:
        ...

    @abstractmethod
    def delete_image(self, public_id: str) -> None:
        ...

    @abstractmethod
    def get_schedule(self, event_id: EventId) -> list[ScheduleEntry]:
        """Return schedule entries for an event, ordered by starts_at ascending."""
        ...

    # Tickets

    @abstractmethod
    def get_ticket(self, ticket_id: TicketId) -> Ticket | None:
        ...

    @abstractmethod
    def get_tickets(self, ticket_ids: Iterable[TicketId]) -> list[Ticket]:
        ...

    @abstractmethod
    def get_tickets_for_event(self, event_id: EventId) -> list[Ticket]:
        ...

    @abstractmethod
    def get_tickets_for_events(self, event_ids: Iterable[EventId]) -> dict[EventId, list[Ticket]]:
        ...

    @abstractmethod
    def create_ticket(self, event_id: EventId, draft: TicketDraft) -> Ticket:
        ...

    @abstractmethod
    def update_ticket(self, ticket_id: TicketId, **fields) -> Ticket:
        ...

    @abstractmethod
    def delete_ticket(self, ticket_id: TicketId) -> None:
        ...

    @abstractmethod
    def clamp_ticket_refund_windows(self, event_id: EventId, maximum: int) -> int:
        """Lower ticket refund windows above ``maximum``; return rows changed."""
        ...

    # Purchases

    @abstractmethod
    def sold_counts(self, ticket_ids: Iterable[TicketId]) -> dict[TicketId, int]:
        """Authoritative purchase counts per ticket (missing tickets count 0)."""
        ...

    @abstractmethod
    def get_purchase(self, purchase_id: PurchaseId) -> Purchase | None:
        ...

    @abstractmethod
    def purchases_for_buyer(self, buyer_id: int) -> list[Purchase]:
        ...

    @abstractmethod
    def purchases_for_event(self, event_id: EventId) -> list[Purchase]:
        """Return purchases of every ticket of the event, newest first."""
        ...

    @abstractmethod
    def count_purchases_for_event(self, event_id: EventId) -> int:
        ...

    @abstractmethod
    def count_active_purchases(self, event_id: EventId, now: datetime) -> int:
        """Count purchases whose validity has not ended at ``now``.

        A purchase without ``valid_to`` stays active until the event ends.
        """
        ...

    @abstractmethod
    def clamp_purchase_refund_windows(self, event_id: EventId, maximum: int) -> int:
        """Lower purchase refund windows above ``maximum``; return rows changed."""
        ...

    # Favorites

    @abstractmethod
    def add_favorite(self, event_id: EventId, user_id: int) -> None:
        ...

    @abstractmethod
    def remove_favorite(self, event_id: EventId, user_id: int) -> None:
        ...

    @abstractmethod
    def favorite_event_ids(self, user_id: int) -> list[EventId]:
        ...


class TicketLedger(ABC):
    """Owns per-ticket capacity, sold count and the sold-out flag.

    Every method serialises on the ticket row; the sold count is always
    recomputed from purchases inside the lock, never taken from the cached
    ``is_sold_out`` flag.
    """

    @abstractmethod
    def reserve(
        self,
        ticket_id: TicketId,
        buyer_id: int,
        quantity: int,
        *,
        purchased_at: datetime,
        fallback_refund_date_count: int | None = None,
        payment_reference: str = "",
    ) -> list[Purchase]:
        """Create ``quantity`` purchases if capacity allows.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            CapacityExceededError: If the reservation would oversell.
        """
        ...

    @abstractmethod
    def release(self, purchase_id: PurchaseId) -> Purchase:
        """Delete one purchase and clear the sold-out flag if capacity frees up.

        Raises:
            PurchaseNotFoundError: If the purchase does not exist.
        """
        ...

    @abstractmethod
    def sold_count(self, ticket_id: TicketId) -> int:
        ...

    @abstractmethod
    def resize(self, ticket_id: TicketId, count: int) -> Ticket:
        """Change capacity, refusing to go below the sold count.

        Raises:
            InvalidTicketError: If ``count`` is below the sold count.
        """
        ...

    @abstractmethod
    def sync_sold_out(self, ticket_id: TicketId) -> bool:
        """Recompute and persist the sold-out flag; return it."""
        ...
