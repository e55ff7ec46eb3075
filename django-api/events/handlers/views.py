"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain error mapping to the exception handler
- Never contain business logic
- Never expose internal error details
"""

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from events import cache_keys
from events.dependencies import get_event_service, get_purchase_service, get_ticket_service
from events.handlers.serializers import (
    EventCreateSerializer,
    EventDetailSerializer,
    EventListingSerializer,
    EventSerializer,
    EventUpdateSerializer,
    OrganizerEventSummarySerializer,
    PurchaseConfirmSerializer,
    PurchaseReceiptSerializer,
    PurchaseViewSerializer,
    RefundReceiptSerializer,
    TicketAvailabilitySerializer,
    TicketCreateSerializer,
    TicketSerializer,
    TicketUpdateSerializer,
)
from events.services.ids import parse_event_id


def _cached(key: str, build):
    data = cache.get(key)
    if data is None:
        data = build()
        cache.set(key, data, settings.TICKETING["CACHE_TIMEOUT_SECONDS"])
    return data


def _flag(request: Request, name: str) -> bool:
    return request.query_params.get(name, "").lower() in ("1", "true", "yes")


class EventListView(APIView):
    """Handler for GET/POST /api/events"""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return []

    def get(self, request: Request) -> Response:
        def build():
            listings = get_event_service().list_active_events()
            return EventListingSerializer(listings, many=True).data

        return Response(_cached(cache_keys.EVENT_LIST, build))

    def post(self, request: Request) -> Response:
        serializer = EventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = get_event_service().create_event(request.user.id, serializer.to_draft())
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(APIView):
    """Handler for GET/PATCH/DELETE /api/events/{event_id}"""

    def get_permissions(self):
        if self.request.method == "GET":
            return []
        return [IsAuthenticated()]

    def get(self, request: Request, event_id: str) -> Response:
        def build():
            return EventDetailSerializer(get_event_service().get_event_detail(event_id)).data

        key = cache_keys.event_detail(parse_event_id(event_id))
        return Response(_cached(key, build))

    def patch(self, request: Request, event_id: str) -> Response:
        serializer = EventUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = get_event_service().update_event(event_id, request.user.id, serializer.to_changes())
        return Response(EventSerializer(event).data)

    def delete(self, request: Request, event_id: str) -> Response:
        remaining = get_event_service().delete_event(
            event_id, request.user.id, force_override=_flag(request, "force")
        )
        return Response({"remaining_events": remaining})


class EventPublishView(APIView):
    """Handler for POST /api/events/{event_id}/publish"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request, event_id: str) -> Response:
        event = get_event_service().publish_event(event_id, request.user.id)
        return Response(EventSerializer(event).data)


class EventUnpublishView(APIView):
    """Handler for POST /api/events/{event_id}/unpublish"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request, event_id: str) -> Response:
        event = get_event_service().unpublish_event(event_id, request.user.id)
        return Response(EventSerializer(event).data)


class TicketListView(APIView):
    """Handler for GET/POST /api/events/{event_id}/tickets"""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated()]
        return []

    def get(self, request: Request, event_id: str) -> Response:
        def build():
            tickets = get_ticket_service().list_tickets(event_id)
            return TicketAvailabilitySerializer(tickets, many=True).data

        key = cache_keys.event_tickets(parse_event_id(event_id))
        return Response(_cached(key, build))

    def post(self, request: Request, event_id: str) -> Response:
        serializer = TicketCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ticket = get_ticket_service().add_ticket(event_id, request.user.id, serializer.to_draft())
        return Response(TicketSerializer(ticket).data, status=status.HTTP_201_CREATED)


class TicketDetailView(APIView):
    """Handler for PATCH/DELETE /api/tickets/{ticket_id}"""

    permission_classes = [IsAuthenticated]

    def patch(self, request: Request, ticket_id: str) -> Response:
        serializer = TicketUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ticket = get_ticket_service().update_ticket(ticket_id, request.user.id, serializer.to_changes())
        return Response(TicketSerializer(ticket).data)

    def delete(self, request: Request, ticket_id: str) -> Response:
        get_ticket_service().delete_ticket(ticket_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class EventPurchaseListView(APIView):
    """Handler for GET /api/events/{event_id}/purchases (organizer only)"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request, event_id: str) -> Response:
        purchases = get_event_service().list_event_purchases(event_id, request.user.id)
        return Response(PurchaseViewSerializer(purchases, many=True).data)


class EventFavoriteView(APIView):
    """Handler for POST/DELETE /api/events/{event_id}/favorite"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request, event_id: str) -> Response:
        get_event_service().add_favorite(event_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def delete(self, request: Request, event_id: str) -> Response:
        get_event_service().remove_favorite(event_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ImageDetailView(APIView):
    """Handler for DELETE /api/images/{public_id}"""

    permission_classes = [IsAuthenticated]

    def delete(self, request: Request, public_id: str) -> Response:
        get_event_service().delete_image(public_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PurchaseListView(APIView):
    """Handler for POST /api/purchases"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = PurchaseConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        receipt = get_purchase_service().confirm_purchase(
            request.user.id,
            serializer.to_line_items(),
            payment_reference=serializer.validated_data["payment_reference"],
        )
        return Response(PurchaseReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


class PurchaseReturnView(APIView):
    """Handler for POST /api/purchases/{purchase_id}/return"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request, purchase_id: str) -> Response:
        receipt = get_purchase_service().return_ticket(purchase_id, request.user.id)
        return Response(RefundReceiptSerializer(receipt).data)


class MyPurchasesView(APIView):
    """Handler for GET /api/me/purchases"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        purchases = get_purchase_service().list_buyer_purchases(request.user.id)
        return Response(PurchaseViewSerializer(purchases, many=True).data)


class MyEventsView(APIView):
    """Handler for GET /api/me/events?when=upcoming|past"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        summaries = get_event_service().list_organizer_events(
            request.user.id, when=request.query_params.get("when")
        )
        return Response(OrganizerEventSummarySerializer(summaries, many=True).data)


class MyFavoritesView(APIView):
    """Handler for GET /api/me/favorites"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        events = get_event_service().list_favorites(request.user.id)
        return Response(EventSerializer(events, many=True).data)
