from django.contrib import admin

from events.models import Event, EventImage, EventSchedule, Purchase, Ticket


class TicketInline(admin.TabularInline):
    model = Ticket
    extra = 1
    readonly_fields = ["is_sold_out"]


class EventScheduleInline(admin.TabularInline):
    model = EventSchedule
    extra = 1


class EventImageInline(admin.TabularInline):
    model = EventImage
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "organizer_id", "status", "start_time", "end_time", "revenue"]
    list_filter = ["status"]
    search_fields = ["title", "location"]
    # Status and revenue only change through the ledger and lifecycle services.
    readonly_fields = ["status", "revenue", "has_sales", "published_at"]
    inlines = [TicketInline, EventScheduleInline, EventImageInline]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "price", "count", "is_sold_out"]
    list_filter = ["event", "is_sold_out"]
    readonly_fields = ["is_sold_out"]


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ["id", "ticket", "buyer_id", "price", "purchase_time"]
    list_filter = ["ticket__event"]
    search_fields = ["buyer_id", "payment_reference"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
