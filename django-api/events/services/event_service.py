"""Event service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from dataclasses import fields

from events.domain import Event, EventStatus, Money
from events.domain.active_date import select_active_date
from events.domain.clock import TimeSource
from events.domain.commands import EventChanges, EventDraft
from events.domain.errors import (
    EventHasActivePurchasesError,
    EventNotFoundError,
    ImageNotFoundError,
    InvalidEventError,
    InvalidStatusTransitionError,
    NotEventOwnerError,
)
from events.domain.lifecycle import derive_status
from events.domain.read_models import (
    EventDetail,
    EventListing,
    OrganizerEventSummary,
    PurchaseView,
    TicketAvailability,
)
from events.domain.refund_policy import MAX_REFUND_DATE_COUNT, visible_deadline, window_in_range
from events.notifications import ChangeKind, NotificationDispatcher, dispatch_quietly
from events.services.ids import parse_event_id
from events.services.lifecycle_service import EventLifecycle
from events.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


def _validate_times(start_time, end_time) -> None:
    if end_time <= start_time:
        raise InvalidEventError("Event end time must be after its start time")


class EventService:
    """Service for event catalog and organizer operations."""

    def __init__(
        self,
        store: EventStore,
        clock: TimeSource,
        lifecycle: EventLifecycle,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._store = store
        self._clock = clock
        self._lifecycle = lifecycle
        self._dispatcher = dispatcher

    def _get_owned_event(self, event_id: str, organizer_id: int) -> Event:
        event = self.get_event(event_id)
        if event.organizer_id != organizer_id:
            raise NotEventOwnerError(event_id)
        return event

    # Reads

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        event = self._store.get_event(parse_event_id(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def list_active_events(self) -> list[EventListing]:
        """Return published events that still have something to sell, soonest first."""
        now = self._clock.now()
        events = self._store.list_events(statuses=[EventStatus.PUBLISHED], ending_after=now)
        tickets = self._store.get_tickets_for_events(e.id for e in events)
        listings = []
        for event in events:
            event_tickets = tickets.get(event.id, [])
            active_date = select_active_date(event, event_tickets, now, self._clock.tz)
            if active_date is None:
                continue
            listings.append(
                EventListing(
                    event=event,
                    active_date=active_date,
                    tickets=tuple(event_tickets),
                    images=tuple(self._store.get_images(event.id)),
                )
            )
        listings.sort(key=lambda listing: listing.active_date)
        return listings

    def get_event_detail(self, event_id: str) -> EventDetail:
        """Return an event with availability, re-deriving its status first.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        eid = parse_event_id(event_id)
        self._lifecycle.ensure_current(eid)
        event = self._store.get_event(eid)
        if event is None:
            raise EventNotFoundError(event_id)

        tickets = self._store.get_tickets_for_event(eid)
        sold = self._store.sold_counts(t.id for t in tickets)
        now = self._clock.now()
        return EventDetail(
            event=event,
            tickets=tuple(TicketAvailability(ticket=t, sold_count=sold[t.id]) for t in tickets),
            active_date=select_active_date(event, tickets, now, self._clock.tz),
            images=tuple(self._store.get_images(eid)),
            schedule=tuple(self._store.get_schedule(eid)),
        )

    def list_organizer_events(self, organizer_id: int, when: str | None = None) -> list[OrganizerEventSummary]:
        """Return an organizer's events with sales totals.

        ``when`` is ``"upcoming"`` (not yet ended), ``"past"`` or None for all.
        """
        now = self._clock.now()
        if when == "upcoming":
            events = self._store.list_events(organizer_id=organizer_id, ending_after=now)
        elif when == "past":
            events = self._store.list_events(organizer_id=organizer_id, ending_before=now)
        elif when is None:
            events = self._store.list_events(organizer_id=organizer_id)
        else:
            raise InvalidEventError("Filter must be 'upcoming' or 'past'")

        tickets = self._store.get_tickets_for_events(e.id for e in events)
        sold = self._store.sold_counts(t.id for group in tickets.values() for t in group)
        summaries = []
        for event in events:
            profit = Money.zero()
            sold_total = capacity_total = 0
            for ticket in tickets.get(event.id, []):
                sold_total += sold[ticket.id]
                capacity_total += ticket.count.value
                profit = profit + ticket.price.times(sold[ticket.id])
            summaries.append(
                OrganizerEventSummary(
                    event=event,
                    sold_tickets_count=sold_total,
                    total_tickets_count=capacity_total,
                    profit=profit,
                )
            )
        return summaries

    def list_event_purchases(self, event_id: str, organizer_id: int) -> list[PurchaseView]:
        """Return every purchase of an event for its organizer, newest first."""
        event = self._get_owned_event(event_id, organizer_id)
        tickets = {t.id: t for t in self._store.get_tickets_for_event(event.id)}
        now = self._clock.now()
        return [
            PurchaseView(
                purchase=purchase,
                ticket_name=tickets[purchase.ticket_id].name,
                event_title=event.title,
                event_start_time=event.start_time,
                event_status=event.status,
                refund_deadline=visible_deadline(purchase, now),
            )
            for purchase in self._store.purchases_for_event(event.id)
        ]

    # Organizer actions

    def create_event(self, organizer_id: int, draft: EventDraft) -> Event:
        """Create an event in Draft; publication is a separate step."""
        _validate_times(draft.start_time, draft.end_time)
        if draft.refund_date_count is not None and not window_in_range(draft.refund_date_count):
            raise InvalidEventError(f"Refund window must be between 0 and {MAX_REFUND_DATE_COUNT} days")
        event = self._store.create_event(organizer_id, draft, EventStatus.DRAFT)
        logger.info("Organizer %s created event %s", organizer_id, event.id)
        return event

    def update_event(self, event_id: str, organizer_id: int, changes: EventChanges) -> Event:
        """Apply a partial update.

        Lowering the refund window narrows existing purchases and tiers;
        raising it never widens a purchase that already has a narrower one.
        """
        event = self._get_owned_event(event_id, organizer_id)
        if event.status is EventStatus.COMPLETED:
            raise InvalidEventError("A completed event cannot be edited")

        start_time = changes.start_time or event.start_time
        end_time = changes.end_time or event.end_time
        _validate_times(start_time, end_time)

        updates = {
            f.name: getattr(changes, f.name)
            for f in fields(changes)
            if f.name != "images" and getattr(changes, f.name) is not None
        }
        new_window = changes.refund_date_count
        if new_window is not None and not window_in_range(new_window):
            raise InvalidEventError(f"Refund window must be between 0 and {MAX_REFUND_DATE_COUNT} days")

        with self._store.atomic():
            self._store.lock_event(event.id)
            updated = self._store.update_event(event.id, **updates) if updates else event
            if changes.images is not None:
                self._store.replace_images(event.id, changes.images)
            if new_window is not None and (
                event.refund_date_count is None or new_window < event.refund_date_count
            ):
                narrowed = self._store.clamp_purchase_refund_windows(event.id, new_window)
                self._store.clamp_ticket_refund_windows(event.id, new_window)
                logger.info("Refund window of event %s lowered to %s days (%s purchases)", event.id, new_window, narrowed)

        if "start_time" in updates or "end_time" in updates:
            self._lifecycle.refresh(event.id)
        if self._store.count_purchases_for_event(event.id):
            dispatch_quietly(self._dispatcher.notify_event_change, event.id, ChangeKind.UPDATE)
        return updated

    def publish_event(self, event_id: str, organizer_id: int) -> Event:
        """Confirm publication of a Draft event.

        An event whose tiers are all sold out goes straight to SoldOut.
        """
        event = self._get_owned_event(event_id, organizer_id)
        now = self._clock.now()
        with self._store.atomic():
            event = self._store.lock_event(event.id)
            if event.status is not EventStatus.DRAFT:
                raise InvalidStatusTransitionError(
                    event.status.value, EventStatus.PUBLISHED.value, "Only draft events can be published"
                )
            if event.has_elapsed(now):
                raise InvalidStatusTransitionError(
                    event.status.value, EventStatus.PUBLISHED.value, "An event that has ended cannot be published"
                )
            tickets = self._store.get_tickets_for_event(event.id)
            if not tickets:
                raise InvalidStatusTransitionError(
                    event.status.value, EventStatus.PUBLISHED.value, "An event needs at least one ticket to be published"
                )
            status = derive_status(
                EventStatus.PUBLISHED,
                [t.is_sold_out for t in tickets],
                event.end_time,
                event.has_sales,
                now,
            )
            first_publication = event.published_at is None
            updates = {"status": status}
            if first_publication:
                updates["published_at"] = now
            published = self._store.update_event(event.id, **updates)

        logger.info("Event %s published by organizer %s", event.id, organizer_id)
        if first_publication:
            dispatch_quietly(
                self._dispatcher.notify_followers_on_new_event, organizer_id, published.title, published.id
            )
        else:
            dispatch_quietly(self._dispatcher.notify_event_change, published.id, ChangeKind.PUBLIC)
        return published

    def unpublish_event(self, event_id: str, organizer_id: int) -> Event:
        """Take a Published or SoldOut event back to Draft."""
        event = self._get_owned_event(event_id, organizer_id)
        with self._store.atomic():
            event = self._store.lock_event(event.id)
            if event.status not in (EventStatus.PUBLISHED, EventStatus.SOLD_OUT):
                raise InvalidStatusTransitionError(
                    event.status.value, EventStatus.DRAFT.value, "Only published events can be unpublished"
                )
            draft = self._store.update_event(event.id, status=EventStatus.DRAFT)

        logger.info("Event %s unpublished by organizer %s", event.id, organizer_id)
        dispatch_quietly(self._dispatcher.notify_event_change, event.id, ChangeKind.REFUND)
        return draft

    def delete_event(self, event_id: str, organizer_id: int, force_override: bool = False) -> int:
        """Delete an event with everything it owns, atomically.

        Completed events are always deletable. Otherwise active purchases
        block deletion unless ``force_override`` is set, in which case buyers
        and followers are told about the cancellation before the purge.

        Returns:
            The number of events the organizer still has.

        Raises:
            EventHasActivePurchasesError: If active purchases exist and no override is given.
        """
        event = self._get_owned_event(event_id, organizer_id)
        now = self._clock.now()
        with self._store.atomic():
            event = self._store.lock_event(event.id)
            if event is None:
                raise EventNotFoundError(event_id)
            if event.status is not EventStatus.COMPLETED:
                if not force_override:
                    active = self._store.count_active_purchases(event.id, now)
                    if active:
                        raise EventHasActivePurchasesError(event_id, active)
                elif self._store.count_purchases_for_event(event.id):
                    dispatch_quietly(self._dispatcher.notify_event_change, event.id, ChangeKind.CANCEL)
            self._store.delete_event_cascade(event.id)

        logger.info("Event %s deleted by organizer %s (override=%s)", event.id, organizer_id, force_override)
        return self._store.count_events_for_organizer(organizer_id)

    def delete_image(self, public_id: str, organizer_id: int) -> None:
        event_id = self._store.get_image_event_id(public_id)
        if event_id is None:
            raise ImageNotFoundError(public_id)
        self._get_owned_event(str(event_id), organizer_id)
        self._store.delete_image(public_id)

    # Favorites

    def add_favorite(self, event_id: str, user_id: int) -> None:
        event = self.get_event(event_id)
        self._store.add_favorite(event.id, user_id)

    def remove_favorite(self, event_id: str, user_id: int) -> None:
        self._store.remove_favorite(parse_event_id(event_id), user_id)

    def list_favorites(self, user_id: int) -> list[Event]:
        ids = self._store.favorite_event_ids(user_id)
        if not ids:
            return []
        return self._store.list_events(event_ids=ids)
