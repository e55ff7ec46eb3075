"""Purchase and refund transactions.

Both operations run as one all-or-nothing transaction covering the ledger,
the event revenue and the sold-out flags. The event row is locked first, so
purchases, refunds and deletions of the same event are serialised.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from events.domain import EventStatus, Money, TicketId
from events.domain.clock import TimeSource
from events.domain.commands import LineItem
from events.domain.errors import (
    EventNotFoundError,
    InvalidPurchaseError,
    MixedEventPurchaseError,
    PurchaseNotFoundError,
    SalesClosedError,
    TicketNotFoundError,
)
from events.domain.read_models import PurchaseReceipt, PurchaseView, RefundReceipt
from events.domain.refund_policy import ensure_refundable, visible_deadline
from events.services.ids import parse_purchase_id
from events.services.lifecycle_service import EventLifecycle
from events.stores.interfaces import EventStore, TicketLedger

logger = logging.getLogger(__name__)


def merge_line_items(line_items: Sequence[LineItem]) -> dict[TicketId, int]:
    """Sum quantities per ticket, rejecting empty or non-positive requests."""
    if not line_items:
        raise InvalidPurchaseError("A purchase needs at least one line item")
    merged: dict[TicketId, int] = {}
    for item in line_items:
        if item.quantity < 1:
            raise InvalidPurchaseError("Quantity must be a positive integer")
        merged[item.ticket_id] = merged.get(item.ticket_id, 0) + item.quantity
    return merged


class PurchaseService:
    """Service for buying and returning tickets."""

    def __init__(
        self,
        store: EventStore,
        ledger: TicketLedger,
        clock: TimeSource,
        lifecycle: EventLifecycle,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._clock = clock
        self._lifecycle = lifecycle

    def confirm_purchase(
        self, buyer_id: int, line_items: Sequence[LineItem], payment_reference: str = ""
    ) -> PurchaseReceipt:
        """Reserve every requested unit and book the revenue.

        Payment is already settled by the gateway when this is called. Prices
        come from the ticket rows, never from the client.

        Raises:
            InvalidPurchaseError: If the request is empty or has bad quantities.
            TicketNotFoundError: If a ticket does not exist.
            MixedEventPurchaseError: If tickets belong to different events.
            SalesClosedError: If a ticket is outside its sales window.
            CapacityExceededError: If any ticket would be oversold.
        """
        quantities = merge_line_items(line_items)
        tickets = {ticket.id: ticket for ticket in self._store.get_tickets(quantities)}
        for ticket_id in quantities:
            if ticket_id not in tickets:
                raise TicketNotFoundError(str(ticket_id))

        event_ids = {ticket.event_id for ticket in tickets.values()}
        if len(event_ids) != 1:
            raise MixedEventPurchaseError(sorted(str(e) for e in event_ids))
        event_id = event_ids.pop()

        now = self._clock.now()
        for ticket in tickets.values():
            if not ticket.on_sale(now):
                raise SalesClosedError(str(ticket.id))

        with self._store.atomic():
            event = self._store.lock_event(event_id)
            if event is None:
                raise EventNotFoundError(str(event_id))
            if event.status is EventStatus.COMPLETED:
                raise SalesClosedError(str(next(iter(quantities))))

            purchases = []
            # Fixed ticket order keeps lock acquisition deterministic.
            for ticket_id in sorted(quantities, key=str):
                purchases.extend(
                    self._ledger.reserve(
                        ticket_id,
                        buyer_id,
                        quantities[ticket_id],
                        purchased_at=now,
                        fallback_refund_date_count=event.refund_date_count,
                        payment_reference=payment_reference,
                    )
                )

            total = sum((p.price.amount for p in purchases), Decimal("0"))
            self._store.adjust_revenue(event_id, total)
            if not event.has_sales:
                self._store.update_event(event_id, has_sales=True)

        logger.info(
            "Buyer %s bought %s tickets of event %s for %s",
            buyer_id,
            len(purchases),
            event_id,
            total,
        )
        self._lifecycle.refresh(event_id)
        return PurchaseReceipt(event_id=event_id, purchases=tuple(purchases), total_amount=Money(total))

    def return_ticket(self, purchase_id: str, buyer_id: int) -> RefundReceipt:
        """Refund one purchase if it belongs to the buyer and the deadline allows.

        Raises:
            InvalidIdError: If the purchase_id is not a valid UUID.
            PurchaseNotFoundError: If the purchase is absent or owned by someone else.
            RefundForbiddenError: If refund parameters are missing.
            RefundExpiredError: If the refund deadline has passed.
        """
        pid = parse_purchase_id(purchase_id)
        purchase = self._store.get_purchase(pid)
        if purchase is None or purchase.buyer_id != buyer_id:
            raise PurchaseNotFoundError(purchase_id)

        now = self._clock.now()
        with self._store.atomic():
            self._store.lock_event(purchase.event_id)
            # Re-read under the event lock: the purchase may have been refunded
            # or had its refund window lowered meanwhile.
            current = self._store.get_purchase(pid)
            if current is None:
                raise PurchaseNotFoundError(purchase_id)
            ensure_refundable(current, now)
            released = self._ledger.release(pid)
            self._store.adjust_revenue(released.event_id, -released.price.amount)

        logger.info("Buyer %s returned purchase %s for %s", buyer_id, pid, released.price)
        self._lifecycle.refresh(released.event_id)
        return RefundReceipt(
            purchase_id=released.id, event_id=released.event_id, refund_amount=released.price
        )

    def list_buyer_purchases(self, buyer_id: int) -> list[PurchaseView]:
        """Return the buyer's purchases with their current refund deadline."""
        purchases = self._store.purchases_for_buyer(buyer_id)
        if not purchases:
            return []
        now = self._clock.now()
        tickets = {t.id: t for t in self._store.get_tickets({p.ticket_id for p in purchases})}
        events = {e.id: e for e in self._store.list_events(event_ids={p.event_id for p in purchases})}
        return [
            PurchaseView(
                purchase=purchase,
                ticket_name=tickets[purchase.ticket_id].name,
                event_title=events[purchase.event_id].title,
                event_start_time=events[purchase.event_id].start_time,
                event_status=events[purchase.event_id].status,
                refund_deadline=visible_deadline(purchase, now),
            )
            for purchase in purchases
        ]
