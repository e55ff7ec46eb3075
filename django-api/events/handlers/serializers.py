"""Serializers for transforming domain models to API responses, and request bodies to commands."""

from rest_framework import serializers

from events.domain import TicketId
from events.domain.commands import (
    EventChanges,
    EventDraft,
    ImageInput,
    LineItem,
    ScheduleInput,
    TicketChanges,
    TicketDraft,
)
from events.domain.refund_policy import MAX_REFUND_DATE_COUNT


def _money(source: str) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=12, decimal_places=2, source=source)


# Responses


class EventImageSerializer(serializers.Serializer):
    public_id = serializers.CharField()
    image_url = serializers.CharField()
    is_main = serializers.BooleanField()


class ScheduleEntrySerializer(serializers.Serializer):
    """Serializer for ScheduleEntry domain model."""

    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    label = serializers.CharField()


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model."""

    id = serializers.UUIDField(source="id.value")
    organizer_id = serializers.IntegerField()
    title = serializers.CharField()
    description = serializers.CharField()
    location = serializers.CharField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    status = serializers.CharField(source="status.value")
    refund_date_count = serializers.IntegerField(allow_null=True)


class TicketSerializer(serializers.Serializer):
    """Serializer for Ticket domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    name = serializers.CharField()
    description = serializers.CharField()
    price = _money("price.amount")
    count = serializers.IntegerField(source="count.value")
    sales_start = serializers.DateTimeField(allow_null=True)
    sales_end = serializers.DateTimeField(allow_null=True)
    valid_from = serializers.DateTimeField(allow_null=True)
    valid_to = serializers.DateTimeField(allow_null=True)
    refund_date_count = serializers.IntegerField(allow_null=True)
    is_sold_out = serializers.BooleanField()


class TicketAvailabilitySerializer(serializers.Serializer):
    """A ticket tier with sold and available counts."""

    id = serializers.UUIDField(source="ticket.id.value")
    name = serializers.CharField(source="ticket.name")
    description = serializers.CharField(source="ticket.description")
    price = _money("ticket.price.amount")
    count = serializers.IntegerField(source="ticket.count.value")
    sales_start = serializers.DateTimeField(source="ticket.sales_start", allow_null=True)
    sales_end = serializers.DateTimeField(source="ticket.sales_end", allow_null=True)
    valid_from = serializers.DateTimeField(source="ticket.valid_from", allow_null=True)
    valid_to = serializers.DateTimeField(source="ticket.valid_to", allow_null=True)
    is_sold_out = serializers.BooleanField(source="ticket.is_sold_out")
    sold_count = serializers.IntegerField()
    available_count = serializers.IntegerField()
    profit = _money("profit.amount")


class EventListingSerializer(serializers.Serializer):
    event = EventSerializer()
    active_date = serializers.DateTimeField()
    tickets = TicketSerializer(many=True)
    images = EventImageSerializer(many=True)


class EventDetailSerializer(serializers.Serializer):
    event = EventSerializer()
    active_date = serializers.DateTimeField(allow_null=True)
    tickets = TicketAvailabilitySerializer(many=True)
    total_tickets_count = serializers.IntegerField()
    total_sold_tickets = serializers.IntegerField()
    available_tickets_count = serializers.IntegerField()
    images = EventImageSerializer(many=True)
    schedule = ScheduleEntrySerializer(many=True)


class OrganizerEventSummarySerializer(serializers.Serializer):
    event = EventSerializer()
    revenue = _money("event.revenue.amount")
    sold_tickets_count = serializers.IntegerField()
    total_tickets_count = serializers.IntegerField()
    profit = _money("profit.amount")


class PurchaseViewSerializer(serializers.Serializer):
    """A purchase with its refund deadline (null when no refund is possible)."""

    id = serializers.UUIDField(source="purchase.id.value")
    ticket_id = serializers.UUIDField(source="purchase.ticket_id.value")
    event_id = serializers.UUIDField(source="purchase.event_id.value")
    buyer_id = serializers.IntegerField(source="purchase.buyer_id")
    price = _money("purchase.price.amount")
    valid_from = serializers.DateTimeField(source="purchase.valid_from", allow_null=True)
    valid_to = serializers.DateTimeField(source="purchase.valid_to", allow_null=True)
    purchase_time = serializers.DateTimeField(source="purchase.purchase_time")
    ticket_name = serializers.CharField()
    event_title = serializers.CharField()
    event_start_time = serializers.DateTimeField()
    event_status = serializers.CharField(source="event_status.value")
    refund_deadline = serializers.DateTimeField(allow_null=True)
    refundable = serializers.BooleanField()


class PurchaseReceiptSerializer(serializers.Serializer):
    event_id = serializers.UUIDField(source="event_id.value")
    total_amount = _money("total_amount.amount")
    purchase_ids = serializers.SerializerMethodField()

    def get_purchase_ids(self, receipt) -> list[str]:
        return [str(p.id) for p in receipt.purchases]


class RefundReceiptSerializer(serializers.Serializer):
    purchase_id = serializers.UUIDField(source="purchase_id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    refund_amount = _money("refund_amount.amount")


# Requests


class ImageInputSerializer(serializers.Serializer):
    image_url = serializers.URLField(max_length=500)
    public_id = serializers.CharField(max_length=255)
    is_main = serializers.BooleanField(default=False)


class ScheduleInputSerializer(serializers.Serializer):
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    label = serializers.CharField(max_length=150, required=False, default="")


class EventCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    location = serializers.CharField(max_length=150, required=False, default="", allow_blank=True)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    refund_date_count = serializers.IntegerField(
        min_value=0, max_value=MAX_REFUND_DATE_COUNT, required=False, allow_null=True, default=None
    )
    images = ImageInputSerializer(many=True, required=False, default=list)
    schedule = ScheduleInputSerializer(many=True, required=False, default=list)

    def to_draft(self) -> EventDraft:
        data = dict(self.validated_data)
        return EventDraft(
            title=data["title"],
            description=data["description"],
            location=data["location"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            refund_date_count=data["refund_date_count"],
            images=tuple(ImageInput(**image) for image in data["images"]),
            schedule=tuple(ScheduleInput(**slot) for slot in data["schedule"]),
        )


class EventUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=150, required=False, allow_blank=True)
    start_time = serializers.DateTimeField(required=False)
    end_time = serializers.DateTimeField(required=False)
    refund_date_count = serializers.IntegerField(min_value=0, max_value=MAX_REFUND_DATE_COUNT, required=False)
    images = ImageInputSerializer(many=True, required=False)

    def to_changes(self) -> EventChanges:
        data = dict(self.validated_data)
        if "images" in data:
            data["images"] = tuple(ImageInput(**image) for image in data["images"])
        return EventChanges(**data)


class TicketCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    count = serializers.IntegerField(min_value=1)
    sales_start = serializers.DateTimeField(required=False, allow_null=True, default=None)
    sales_end = serializers.DateTimeField(required=False, allow_null=True, default=None)
    valid_from = serializers.DateTimeField(required=False, allow_null=True, default=None)
    valid_to = serializers.DateTimeField(required=False, allow_null=True, default=None)
    refund_date_count = serializers.IntegerField(
        min_value=0, max_value=MAX_REFUND_DATE_COUNT, required=False, allow_null=True, default=None
    )

    def to_draft(self) -> TicketDraft:
        return TicketDraft(**self.validated_data)


class TicketUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    count = serializers.IntegerField(min_value=1, required=False)
    sales_start = serializers.DateTimeField(required=False)
    sales_end = serializers.DateTimeField(required=False)
    valid_from = serializers.DateTimeField(required=False)
    valid_to = serializers.DateTimeField(required=False)
    refund_date_count = serializers.IntegerField(min_value=0, max_value=MAX_REFUND_DATE_COUNT, required=False)

    def to_changes(self) -> TicketChanges:
        return TicketChanges(**self.validated_data)


class LineItemSerializer(serializers.Serializer):
    ticket_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class PurchaseConfirmSerializer(serializers.Serializer):
    """Checkout body. Any client-side price is ignored; the server prices every unit."""

    line_items = LineItemSerializer(many=True, allow_empty=False)
    payment_reference = serializers.CharField(max_length=100, required=False, default="", allow_blank=True)

    def to_line_items(self) -> list[LineItem]:
        return [
            LineItem(ticket_id=TicketId(item["ticket_id"]), quantity=item["quantity"])
            for item in self.validated_data["line_items"]
        ]
