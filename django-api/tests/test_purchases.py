"""Tests for purchase and refund transactions.

Run with: pytest tests/test_purchases.py -v
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from events import models
from events.domain import EventStatus, TicketId
from events.domain.commands import LineItem, TicketChanges
from events.domain.errors import (
    CapacityExceededError,
    InvalidPurchaseError,
    MixedEventPurchaseError,
    PurchaseNotFoundError,
    RefundExpiredError,
    RefundForbiddenError,
    SalesClosedError,
    TicketNotFoundError,
)
from events.services.purchase_service import merge_line_items
from tests.conftest import BUYER_ID, NOW, OTHER_USER_ID


def line(ticket: models.Ticket, quantity: int = 1) -> LineItem:
    return LineItem(ticket_id=TicketId(ticket.pk), quantity=quantity)


class TestMergeLineItems:
    """Tests for line item normalisation."""

    def test_quantities_are_summed_per_ticket(self):
        """Repeated tickets are merged into one quantity."""
        ticket_id = TicketId.from_string("6a1f3c52-8e4b-4d0f-9b7a-0c2d1e5f4a33")
        merged = merge_line_items([LineItem(ticket_id, 2), LineItem(ticket_id, 3)])
        assert merged == {ticket_id: 5}

    def test_empty_request_rejected(self):
        """A purchase needs at least one line item."""
        with pytest.raises(InvalidPurchaseError):
            merge_line_items([])

    def test_non_positive_quantity_rejected(self):
        """Zero quantities are rejected."""
        ticket_id = TicketId.from_string("6a1f3c52-8e4b-4d0f-9b7a-0c2d1e5f4a33")
        with pytest.raises(InvalidPurchaseError):
            merge_line_items([LineItem(ticket_id, 0)])


@pytest.mark.django_db
class TestConfirmPurchase:
    """Tests for PurchaseService.confirm_purchase."""

    def test_purchase_books_units_and_revenue(self, purchase_service, make_event, make_ticket):
        """One purchase row per unit, priced server-side, with revenue booked."""
        event = make_event()
        ticket = make_ticket(event, price=Decimal("40.00"), count=5)

        receipt = purchase_service.confirm_purchase(BUYER_ID, [line(ticket, 3)], payment_reference="pay_123")

        assert receipt.total_amount.amount == Decimal("120.00")
        assert len(receipt.purchases) == 3
        assert models.Purchase.objects.filter(ticket=ticket, payment_reference="pay_123").count() == 3
        event.refresh_from_db()
        assert event.revenue == Decimal("120.00")
        assert event.has_sales is True

    def test_purchase_snapshots_ticket_terms(self, purchase_service, make_event, make_ticket):
        """Purchases capture price and validity; the refund window falls back to the event's."""
        event = make_event(refund_date_count=4)
        ticket = make_ticket(event, price=Decimal("15.00"), refund_date_count=None)

        [purchase] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases

        assert purchase.price.amount == Decimal("15.00")
        assert purchase.valid_from == ticket.valid_from
        assert purchase.refund_date_count == 4
        assert purchase.purchase_time == NOW

    def test_last_unit_sets_sold_out(self, purchase_service, make_event, make_ticket):
        """Selling the final unit flags the ticket and moves the event to SoldOut."""
        event = make_event()
        ticket = make_ticket(event, count=2)

        purchase_service.confirm_purchase(BUYER_ID, [line(ticket, 2)])

        ticket.refresh_from_db()
        event.refresh_from_db()
        assert ticket.is_sold_out is True
        assert event.status == EventStatus.SOLD_OUT.value

    def test_mixed_events_rejected_before_any_write(self, purchase_service, make_event, make_ticket):
        """Tickets from two events raise MixedEventPurchaseError."""
        first = make_ticket(make_event(title="One"))
        second = make_ticket(make_event(title="Two"))

        with pytest.raises(MixedEventPurchaseError) as exc_info:
            purchase_service.confirm_purchase(BUYER_ID, [line(first), line(second)])

        assert len(exc_info.value.details()["event_ids"]) == 2
        assert not models.Purchase.objects.exists()

    def test_capacity_exceeded_rolls_back_whole_purchase(self, purchase_service, make_event, make_ticket):
        """One oversold line leaves no purchases and no revenue behind."""
        event = make_event()
        roomy = make_ticket(event, name="Roomy", count=10)
        tight = make_ticket(event, name="Tight", count=1)

        with pytest.raises(CapacityExceededError) as exc_info:
            purchase_service.confirm_purchase(BUYER_ID, [line(roomy, 2), line(tight, 2)])

        assert exc_info.value.details() == {"ticket_id": str(tight.pk), "requested": 2, "available": 1}
        assert not models.Purchase.objects.exists()
        event.refresh_from_db()
        assert event.revenue == Decimal("0")
        assert event.has_sales is False

    def test_unknown_ticket_rejected(self, purchase_service):
        """A missing ticket raises TicketNotFoundError."""
        ticket_id = TicketId.from_string("0f0e0d0c-0b0a-4909-8807-060504030201")
        with pytest.raises(TicketNotFoundError):
            purchase_service.confirm_purchase(BUYER_ID, [LineItem(ticket_id)])

    def test_closed_sales_window_rejected(self, purchase_service, make_event, make_ticket):
        """Buying after sales end raises SalesClosedError."""
        ticket = make_ticket(make_event(), sales_end=NOW - timedelta(minutes=1))
        with pytest.raises(SalesClosedError):
            purchase_service.confirm_purchase(BUYER_ID, [line(ticket)])

    def test_sales_not_yet_open_rejected(self, purchase_service, make_event, make_ticket):
        """Buying before sales start raises SalesClosedError."""
        ticket = make_ticket(make_event(), sales_start=NOW + timedelta(days=1))
        with pytest.raises(SalesClosedError):
            purchase_service.confirm_purchase(BUYER_ID, [line(ticket)])

    def test_completed_event_rejected(self, purchase_service, make_event, make_ticket):
        """Completed events no longer sell."""
        ticket = make_ticket(make_event(EventStatus.COMPLETED))
        with pytest.raises(SalesClosedError):
            purchase_service.confirm_purchase(BUYER_ID, [line(ticket)])

    def test_free_ticket_marks_event_as_sold(self, purchase_service, make_event, make_ticket):
        """A zero-priced sale still counts as a sale."""
        event = make_event()
        ticket = make_ticket(event, price=Decimal("0.00"))

        purchase_service.confirm_purchase(BUYER_ID, [line(ticket)])

        event.refresh_from_db()
        assert event.has_sales is True
        assert event.revenue == Decimal("0")


@pytest.mark.django_db
class TestReturnTicket:
    """Tests for PurchaseService.return_ticket."""

    @pytest.fixture
    def bought(self, purchase_service, make_event, make_ticket):
        event = make_event(refund_date_count=5)
        ticket = make_ticket(event, price=Decimal("30.00"), count=1, refund_date_count=5)
        [purchase] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases
        return event, ticket, purchase

    def test_refund_reverses_ledger_and_revenue(self, purchase_service, bought):
        """A refund deletes the purchase, clears the flag and decrements revenue."""
        event, ticket, purchase = bought

        receipt = purchase_service.return_ticket(str(purchase.id), BUYER_ID)

        assert receipt.refund_amount.amount == Decimal("30.00")
        assert not models.Purchase.objects.filter(pk=purchase.id.value).exists()
        ticket.refresh_from_db()
        event.refresh_from_db()
        assert ticket.is_sold_out is False
        assert event.revenue == Decimal("0")
        assert event.status == EventStatus.DRAFT.value

    def test_second_refund_is_not_found(self, purchase_service, bought):
        """Refunding twice raises PurchaseNotFoundError and never double-decrements."""
        event, _, purchase = bought
        purchase_service.return_ticket(str(purchase.id), BUYER_ID)

        with pytest.raises(PurchaseNotFoundError):
            purchase_service.return_ticket(str(purchase.id), BUYER_ID)

        event.refresh_from_db()
        assert event.revenue == Decimal("0")

    def test_other_buyer_cannot_refund(self, purchase_service, bought):
        """A purchase owned by someone else looks absent."""
        _, _, purchase = bought
        with pytest.raises(PurchaseNotFoundError):
            purchase_service.return_ticket(str(purchase.id), OTHER_USER_ID)
        assert models.Purchase.objects.filter(pk=purchase.id.value).exists()

    def test_refund_after_deadline_expired(self, purchase_service, clock, bought):
        """Past the deadline the refund raises RefundExpiredError."""
        _, _, purchase = bought
        clock.set(purchase.valid_from - timedelta(days=5) + timedelta(seconds=1))
        with pytest.raises(RefundExpiredError):
            purchase_service.return_ticket(str(purchase.id), BUYER_ID)

    def test_refund_without_window_forbidden(self, purchase_service, make_event, make_ticket):
        """Missing refund parameters raise RefundForbiddenError."""
        ticket = make_ticket(make_event(refund_date_count=None), refund_date_count=None)
        [purchase] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases
        with pytest.raises(RefundForbiddenError):
            purchase_service.return_ticket(str(purchase.id), BUYER_ID)

    def test_refund_uses_captured_price(self, purchase_service, ticket_service, bought):
        """A later price change does not alter the refunded amount."""
        event, ticket, purchase = bought
        event_before = models.Event.objects.get(pk=event.pk).revenue
        ticket_service.update_ticket(str(ticket.pk), event.organizer_id, TicketChanges(price=Decimal("99.00")))

        receipt = purchase_service.return_ticket(str(purchase.id), BUYER_ID)

        assert receipt.refund_amount.amount == Decimal("30.00")
        event.refresh_from_db()
        assert event.revenue == event_before - Decimal("30.00")

    def test_buyer_purchase_list_shows_deadline(self, purchase_service, bought):
        """Buyers see their purchases with the refund deadline."""
        _, ticket, purchase = bought
        [view] = purchase_service.list_buyer_purchases(BUYER_ID)
        assert view.purchase.id == purchase.id
        assert view.ticket_name == ticket.name
        assert view.refund_deadline == purchase.valid_from - timedelta(days=5)
        assert view.refundable


@pytest.mark.django_db
class TestPurchaseScenario:
    """End-to-end purchase, refund and late refund of a single-seat ticket."""

    def test_buy_refund_and_late_refund(self, purchase_service, clock, make_event, make_ticket):
        """Sold-out follows the sale, Draft follows the refund, late refunds expire."""
        event = make_event(
            start_time=datetime(2025, 6, 1, 18, tzinfo=timezone.utc),
            end_time=datetime(2025, 6, 2, 2, tzinfo=timezone.utc),
        )
        ticket = make_ticket(
            event,
            count=1,
            valid_from=datetime(2025, 6, 1, tzinfo=timezone.utc),
            valid_to=datetime(2025, 6, 2, 2, tzinfo=timezone.utc),
            refund_date_count=5,
        )

        [purchase] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases
        ticket.refresh_from_db()
        event.refresh_from_db()
        assert ticket.purchases.count() == 1
        assert ticket.is_sold_out is True
        assert event.status == EventStatus.SOLD_OUT.value

        clock.set(datetime(2025, 5, 26, tzinfo=timezone.utc))
        purchase_service.return_ticket(str(purchase.id), BUYER_ID)
        ticket.refresh_from_db()
        event.refresh_from_db()
        assert ticket.purchases.count() == 0
        assert ticket.is_sold_out is False
        assert event.status == EventStatus.DRAFT.value

        [again] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases
        clock.set(datetime(2025, 5, 28, tzinfo=timezone.utc))
        with pytest.raises(RefundExpiredError):
            purchase_service.return_ticket(str(again.id), BUYER_ID)


@pytest.mark.django_db
class TestOversizedRefundWindow:
    """Tests for stored refund windows too large to subtract from a date."""

    def test_buyer_list_and_refund_treat_window_as_elapsed(self, purchase_service, make_event, make_ticket):
        """Purchases with a huge stored window list without a deadline and cannot be refunded."""
        ticket = make_ticket(make_event(), refund_date_count=1_000_000)
        [purchase] = purchase_service.confirm_purchase(BUYER_ID, [line(ticket)]).purchases

        [view] = purchase_service.list_buyer_purchases(BUYER_ID)
        assert view.refund_deadline is None
        assert not view.refundable

        with pytest.raises(RefundExpiredError):
            purchase_service.return_ticket(str(purchase.id), BUYER_ID)
