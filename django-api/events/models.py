"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Buyer and organizer identities come from the external identity provider and
are stored as plain numeric ids.
"""

import uuid

from django.db import models


class Event(models.Model):
    """Persistence model for events."""

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        SOLD_OUT = "sold_out", "Sold out"
        COMPLETED = "completed", "Completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organizer_id = models.PositiveBigIntegerField(db_index=True)
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=150, blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    refund_date_count = models.PositiveIntegerField(null=True, blank=True)
    revenue = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    has_sales = models.BooleanField(default=False)
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["status", "end_time"], name="event_status_end_idx"),
            models.Index(fields=["organizer_id", "start_time"], name="event_organizer_start_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class Ticket(models.Model):
    """Persistence model for ticket tiers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="tickets")
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    count = models.PositiveIntegerField()
    sales_start = models.DateTimeField(null=True, blank=True)
    sales_end = models.DateTimeField(null=True, blank=True)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_to = models.DateTimeField(null=True, blank=True)
    refund_date_count = models.PositiveIntegerField(null=True, blank=True)
    is_sold_out = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event"], name="ticket_event_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} - {self.price}"


class Purchase(models.Model):
    """One sold unit of a ticket tier."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # PROTECT: purchases are only removed by a refund or an explicit event purge.
    ticket = models.ForeignKey(Ticket, on_delete=models.PROTECT, related_name="purchases")
    buyer_id = models.PositiveBigIntegerField(db_index=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_to = models.DateTimeField(null=True, blank=True)
    refund_date_count = models.PositiveIntegerField(null=True, blank=True)
    purchase_time = models.DateTimeField()
    payment_reference = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["-purchase_time"]
        indexes = [
            models.Index(fields=["ticket"], name="purchase_ticket_idx"),
            models.Index(fields=["buyer_id", "-purchase_time"], name="purchase_buyer_time_idx"),
        ]

    def __str__(self) -> str:
        return f"Purchase {self.pk} of {self.ticket_id}"


class EventImage(models.Model):
    """Image metadata; the files themselves live in external storage."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="images")
    image_url = models.URLField(max_length=500)
    public_id = models.CharField(max_length=255, unique=True)
    is_main = models.BooleanField(default=False)

    def __str__(self) -> str:
        return self.public_id


class EventSchedule(models.Model):
    """Persistence model for scheduled slots of an event."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="schedule")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    label = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["starts_at"]
        indexes = [
            models.Index(fields=["event", "starts_at"], name="schedule_event_start_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event.title} - {self.starts_at}"


class FavoriteEvent(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="favorites")
    user_id = models.PositiveBigIntegerField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user_id"], name="unique_favorite_per_user"),
        ]
