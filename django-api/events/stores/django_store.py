"""Django ORM implementation of the EventStore."""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q

from events import models
from events.domain import (
    Capacity,
    Event,
    EventId,
    EventImage,
    EventStatus,
    Money,
    Purchase,
    PurchaseId,
    ScheduleEntry,
    Ticket,
    TicketId,
)
from events.domain.commands import EventDraft, ImageInput, TicketDraft
from events.domain.errors import EventNotFoundError, TicketNotFoundError
from events.stores.interfaces import EventStore


def to_event(row: models.Event) -> Event:
    return Event(
        id=EventId(row.id),
        organizer_id=row.organizer_id,
        title=row.title,
        description=row.description,
        location=row.location,
        start_time=row.start_time,
        end_time=row.end_time,
        status=EventStatus(row.status),
        refund_date_count=row.refund_date_count,
        revenue=Money(Decimal(row.revenue)),
        has_sales=row.has_sales,
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_ticket(row: models.Ticket) -> Ticket:
    return Ticket(
        id=TicketId(row.id),
        event_id=EventId(row.event_id),
        name=row.name,
        description=row.description,
        price=Money(Decimal(row.price)),
        count=Capacity(row.count),
        sales_start=row.sales_start,
        sales_end=row.sales_end,
        valid_from=row.valid_from,
        valid_to=row.valid_to,
        refund_date_count=row.refund_date_count,
        is_sold_out=row.is_sold_out,
        created_at=row.created_at,
    )


def to_purchase(row: models.Purchase, event_id) -> Purchase:
    return Purchase(
        id=PurchaseId(row.id),
        ticket_id=TicketId(row.ticket_id),
        event_id=EventId(event_id),
        buyer_id=row.buyer_id,
        price=Money(Decimal(row.price)),
        valid_from=row.valid_from,
        valid_to=row.valid_to,
        refund_date_count=row.refund_date_count,
        purchase_time=row.purchase_time,
        payment_reference=row.payment_reference,
    )


class DjangoEventStore(EventStore):
    """PostgreSQL/SQLite-backed event store using Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    # Events

    def list_events(
        self,
        statuses: Iterable[EventStatus] | None = None,
        ending_after: datetime | None = None,
        ending_before: datetime | None = None,
        organizer_id: int | None = None,
        event_ids: Iterable[EventId] | None = None,
    ) -> list[Event]:
        queryset = models.Event.objects.all()
        if statuses is not None:
            queryset = queryset.filter(status__in=[s.value for s in statuses])
        if ending_after is not None:
            queryset = queryset.filter(end_time__gte=ending_after)
        if ending_before is not None:
            queryset = queryset.filter(end_time__lt=ending_before)
        if organizer_id is not None:
            queryset = queryset.filter(organizer_id=organizer_id)
        if event_ids is not None:
            queryset = queryset.filter(id__in=[e.value for e in event_ids])
        return [to_event(row) for row in queryset.order_by("start_time")]

    def get_event(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.filter(pk=event_id.value).first()
        return to_event(row) if row else None

    def lock_event(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.select_for_update().filter(pk=event_id.value).first()
        return to_event(row) if row else None

    def event_exists(self, event_id: EventId) -> bool:
        return models.Event.objects.filter(pk=event_id.value).exists()

    def count_events_for_organizer(self, organizer_id: int) -> int:
        return models.Event.objects.filter(organizer_id=organizer_id).count()

    def create_event(self, organizer_id: int, draft: EventDraft, status: EventStatus) -> Event:
        with transaction.atomic():
            row = models.Event.objects.create(
                organizer_id=organizer_id,
                title=draft.title,
                description=draft.description,
                location=draft.location,
                start_time=draft.start_time,
                end_time=draft.end_time,
                status=status.value,
                refund_date_count=draft.refund_date_count,
            )
            self.replace_images(EventId(row.id), draft.images)
            models.EventSchedule.objects.bulk_create(
                models.EventSchedule(
                    event=row, starts_at=slot.starts_at, ends_at=slot.ends_at, label=slot.label
                )
                for slot in draft.schedule
            )
        return to_event(row)

    def update_event(self, event_id: EventId, **fields) -> Event:
        row = models.Event.objects.filter(pk=event_id.value).first()
        if row is None:
            raise EventNotFoundError(str(event_id))
        for name, value in fields.items():
            setattr(row, name, value.value if isinstance(value, EventStatus) else value)
        # save() rather than update() so cache invalidation signals fire.
        row.save(update_fields=[*fields, "updated_at"])
        return to_event(row)

    def set_event_status(self, event_id: EventId, status: EventStatus) -> None:
        self.update_event(event_id, status=status)

    def adjust_revenue(self, event_id: EventId, delta: Decimal) -> Decimal:
        row = models.Event.objects.select_for_update().filter(pk=event_id.value).first()
        if row is None:
            raise EventNotFoundError(str(event_id))
        new_total = Decimal(row.revenue) + delta
        if new_total < 0:
            raise ValueError(f"Revenue of event {event_id} would become negative")
        row.revenue = new_total
        row.save(update_fields=["revenue", "updated_at"])
        return new_total

    def delete_event_cascade(self, event_id: EventId) -> None:
        with transaction.atomic():
            models.Purchase.objects.filter(ticket__event_id=event_id.value).delete()
            models.FavoriteEvent.objects.filter(event_id=event_id.value).delete()
            models.EventImage.objects.filter(event_id=event_id.value).delete()
            models.EventSchedule.objects.filter(event_id=event_id.value).delete()
            models.Ticket.objects.filter(event_id=event_id.value).delete()
            models.Event.objects.filter(pk=event_id.value).delete()

    def get_images(self, event_id: EventId) -> list[EventImage]:
        return [
            EventImage(public_id=row.public_id, image_url=row.image_url, is_main=row.is_main)
            for row in models.EventImage.objects.filter(event_id=event_id.value).order_by("-is_main", "id")
        ]

    def replace_images(self, event_id: EventId, images: Iterable[ImageInput]) -> None:
        models.EventImage.objects.filter(event_id=event_id.value).delete()
        models.EventImage.objects.bulk_create(
            models.EventImage(
                event_id=event_id.value,
                image_url=image.image_url,
                public_id=image.public_id,
                is_main=image.is_main,
            )
            for image in images
        )

    def get_image_event_id(self, public_id: str) -> EventId | None:
        event_id = (
            models.EventImage.objects.filter(public_id=public_id).values_list("event_id", flat=True).first()
        )
        return EventId(event_id) if event_id else None

    def delete_image(self, public_id: str) -> None:
        models.EventImage.objects.filter(public_id=public_id).delete()

    def get_schedule(self, event_id: EventId) -> list[ScheduleEntry]:
        return [
            ScheduleEntry(
                event_id=event_id, starts_at=row.starts_at, ends_at=row.ends_at, label=row.label
            )
            for row in models.EventSchedule.objects.filter(event_id=event_id.value).order_by("starts_at")
        ]

    # Tickets

    def get_ticket(self, ticket_id: TicketId) -> Ticket | None:
        row = models.Ticket.objects.filter(pk=ticket_id.value).first()
        return to_ticket(row) if row else None

    def get_tickets(self, ticket_ids: Iterable[TicketId]) -> list[Ticket]:
        ids = [t.value for t in ticket_ids]
        return [to_ticket(row) for row in models.Ticket.objects.filter(pk__in=ids)]

    def get_tickets_for_event(self, event_id: EventId) -> list[Ticket]:
        return [to_ticket(row) for row in models.Ticket.objects.filter(event_id=event_id.value)]

    def get_tickets_for_events(self, event_ids: Iterable[EventId]) -> dict[EventId, list[Ticket]]:
        ids = [e.value for e in event_ids]
        grouped: dict[EventId, list[Ticket]] = {EventId(i): [] for i in ids}
        for row in models.Ticket.objects.filter(event_id__in=ids):
            grouped[EventId(row.event_id)].append(to_ticket(row))
        return grouped

    def create_ticket(self, event_id: EventId, draft: TicketDraft) -> Ticket:
        row = models.Ticket.objects.create(
            event_id=event_id.value,
            name=draft.name,
            description=draft.description,
            price=draft.price,
            count=draft.count,
            sales_start=draft.sales_start,
            sales_end=draft.sales_end,
            valid_from=draft.valid_from,
            valid_to=draft.valid_to,
            refund_date_count=draft.refund_date_count,
            is_sold_out=False,
        )
        return to_ticket(row)

    def update_ticket(self, ticket_id: TicketId, **fields) -> Ticket:
        row = models.Ticket.objects.filter(pk=ticket_id.value).first()
        if row is None:
            raise TicketNotFoundError(str(ticket_id))
        for name, value in fields.items():
            setattr(row, name, value)
        if fields:
            row.save(update_fields=list(fields))
        return to_ticket(row)

    def delete_ticket(self, ticket_id: TicketId) -> None:
        models.Ticket.objects.filter(pk=ticket_id.value).delete()

    def clamp_ticket_refund_windows(self, event_id: EventId, maximum: int) -> int:
        return models.Ticket.objects.filter(
            event_id=event_id.value, refund_date_count__gt=maximum
        ).update(refund_date_count=maximum)

    # Purchases

    def sold_counts(self, ticket_ids: Iterable[TicketId]) -> dict[TicketId, int]:
        ids = [t.value for t in ticket_ids]
        counts = {TicketId(i): 0 for i in ids}
        rows = (
            models.Purchase.objects.filter(ticket_id__in=ids)
            .values("ticket_id")
            .annotate(sold=Count("id"))
        )
        for row in rows:
            counts[TicketId(row["ticket_id"])] = row["sold"]
        return counts

    def get_purchase(self, purchase_id: PurchaseId) -> Purchase | None:
        row = models.Purchase.objects.select_related("ticket").filter(pk=purchase_id.value).first()
        return to_purchase(row, row.ticket.event_id) if row else None

    def purchases_for_buyer(self, buyer_id: int) -> list[Purchase]:
        rows = models.Purchase.objects.select_related("ticket").filter(buyer_id=buyer_id)
        return [to_purchase(row, row.ticket.event_id) for row in rows]

    def purchases_for_event(self, event_id: EventId) -> list[Purchase]:
        rows = models.Purchase.objects.filter(ticket__event_id=event_id.value).order_by("-purchase_time")
        return [to_purchase(row, event_id.value) for row in rows]

    def count_purchases_for_event(self, event_id: EventId) -> int:
        return models.Purchase.objects.filter(ticket__event_id=event_id.value).count()

    def count_active_purchases(self, event_id: EventId, now: datetime) -> int:
        return models.Purchase.objects.filter(
            Q(valid_to__gt=now) | Q(valid_to__isnull=True, ticket__event__end_time__gt=now),
            ticket__event_id=event_id.value,
        ).count()

    def clamp_purchase_refund_windows(self, event_id: EventId, maximum: int) -> int:
        return models.Purchase.objects.filter(
            ticket__event_id=event_id.value, refund_date_count__gt=maximum
        ).update(refund_date_count=maximum)

    # Favorites

    def add_favorite(self, event_id: EventId, user_id: int) -> None:
        models.FavoriteEvent.objects.get_or_create(event_id=event_id.value, user_id=user_id)

    def remove_favorite(self, event_id: EventId, user_id: int) -> None:
        models.FavoriteEvent.objects.filter(event_id=event_id.value, user_id=user_id).delete()

    def favorite_event_ids(self, user_id: int) -> list[EventId]:
        ids = models.FavoriteEvent.objects.filter(user_id=user_id).values_list("event_id", flat=True)
        return [EventId(i) for i in ids]
