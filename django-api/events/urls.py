from django.urls import path

from events.handlers.views import (
    EventDetailView,
    EventFavoriteView,
    EventListView,
    EventPublishView,
    EventPurchaseListView,
    EventUnpublishView,
    ImageDetailView,
    MyEventsView,
    MyFavoritesView,
    MyPurchasesView,
    PurchaseListView,
    PurchaseReturnView,
    TicketDetailView,
    TicketListView,
)

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("events/<str:event_id>/publish", EventPublishView.as_view(), name="event-publish"),
    path("events/<str:event_id>/unpublish", EventUnpublishView.as_view(), name="event-unpublish"),
    path("events/<str:event_id>/tickets", TicketListView.as_view(), name="ticket-list"),
    path("events/<str:event_id>/purchases", EventPurchaseListView.as_view(), name="event-purchases"),
    path("events/<str:event_id>/favorite", EventFavoriteView.as_view(), name="event-favorite"),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
    path("images/<str:public_id>", ImageDetailView.as_view(), name="image-detail"),
    path("purchases", PurchaseListView.as_view(), name="purchase-list"),
    path("purchases/<str:purchase_id>/return", PurchaseReturnView.as_view(), name="purchase-return"),
    path("me/purchases", MyPurchasesView.as_view(), name="my-purchases"),
    path("me/events", MyEventsView.as_view(), name="my-events"),
    path("me/favorites", MyFavoritesView.as_view(), name="my-favorites"),
]
