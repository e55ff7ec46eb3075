"""Unit tests for domain primitives and pure policies.

These test invariants that must hold without touching the database.
Run with: pytest tests/test_domain.py -v
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from events.domain import Capacity, Event, EventId, EventStatus, Money, Purchase, PurchaseId, Ticket, TicketId
from events.domain.active_date import bookable_tickets, select_active_date
from events.domain.clock import FixedClock, SystemClock
from events.domain.errors import ErrorCode, RefundExpiredError, RefundForbiddenError
from events.domain.lifecycle import derive_status
from events.domain.refund_policy import (
    NO_REFUND_WINDOW,
    ensure_refundable,
    lowered_window,
    refund_deadline,
    visible_deadline,
    window_in_range,
)

UTC = timezone.utc
NOW = datetime(2025, 5, 1, 12, 0, tzinfo=UTC)


def build_event(start_time: datetime, end_time: datetime, status: EventStatus = EventStatus.PUBLISHED) -> Event:
    return Event(
        id=EventId(uuid4()),
        organizer_id=1,
        title="Jazz Nights",
        description="",
        location="",
        start_time=start_time,
        end_time=end_time,
        status=status,
        refund_date_count=None,
        revenue=Money.zero(),
        has_sales=False,
        published_at=None,
        created_at=NOW,
        updated_at=NOW,
    )


def build_ticket(valid_from=None, valid_to=None, sales_start=None, sales_end=None, is_sold_out=False) -> Ticket:
    return Ticket(
        id=TicketId(uuid4()),
        event_id=EventId(uuid4()),
        name="Day pass",
        description="",
        price=Money(Decimal("10")),
        count=Capacity(5),
        sales_start=sales_start,
        sales_end=sales_end,
        valid_from=valid_from,
        valid_to=valid_to,
        refund_date_count=None,
        is_sold_out=is_sold_out,
        created_at=NOW,
    )


def build_purchase(valid_from, refund_date_count) -> Purchase:
    return Purchase(
        id=PurchaseId(uuid4()),
        ticket_id=TicketId(uuid4()),
        event_id=EventId(uuid4()),
        buyer_id=7,
        price=Money(Decimal("10")),
        valid_from=valid_from,
        valid_to=None,
        refund_date_count=refund_date_count,
        purchase_time=NOW,
    )


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_positive_amount(self):
        """Money can be created with positive amount."""
        assert Money(Decimal("12.50")).amount == Decimal("12.50")

    def test_money_accepts_zero(self):
        """Money can be created with zero."""
        assert Money.zero().amount == 0

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("7.5"))) == "7.50"

    def test_money_arithmetic(self):
        """Money adds and multiplies by a quantity."""
        total = Money(Decimal("10.00")).times(3) + Money(Decimal("0.50"))
        assert total == Money(Decimal("30.50"))


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_positive_value(self):
        """Capacity can be created with positive value."""
        assert Capacity(10).value == 10

    def test_capacity_accepts_zero(self):
        """Capacity can be created with zero."""
        assert Capacity(0).is_exhausted_by(0)

    def test_capacity_rejects_negative_value(self):
        """Capacity raises ValueError for negative value."""
        with pytest.raises(ValueError):
            Capacity(-1)

    def test_remaining_never_negative(self):
        """Remaining count floors at zero."""
        assert Capacity(3).remaining(1) == 2
        assert Capacity(3).remaining(5) == 0


class TestEventId:
    """Tests for EventId value object."""

    def test_from_string_valid_uuid(self):
        """EventId.from_string parses valid UUID."""
        raw = "0b8f5c0e-5d57-4c58-9a51-3f6f4b7f0a11"
        assert str(EventId.from_string(raw)) == raw

    def test_from_string_invalid_uuid(self):
        """EventId.from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            EventId.from_string("not-a-uuid")


class TestClock:
    """Tests for time sources."""

    def test_system_clock_uses_reference_offset(self):
        """SystemClock reports instants in its configured offset."""
        clock = SystemClock(utc_offset_minutes=540)
        assert clock.now().utcoffset() == timedelta(hours=9)

    def test_fixed_clock_only_moves_when_told(self):
        """FixedClock stays put until advanced."""
        clock = FixedClock(NOW)
        assert clock.now() == NOW
        clock.advance(timedelta(days=1))
        assert clock.now() == NOW + timedelta(days=1)

    def test_fixed_clock_rejects_naive_datetime(self):
        """FixedClock requires an aware datetime."""
        with pytest.raises(ValueError):
            FixedClock(datetime(2025, 5, 1))


class TestRefundPolicy:
    """Tests for refund deadline computation."""

    VALID_FROM = datetime(2025, 6, 1, tzinfo=UTC)

    def test_deadline_is_valid_from_minus_window(self):
        """Deadline is validFrom minus refundDateCount days."""
        purchase = build_purchase(self.VALID_FROM, 5)
        assert refund_deadline(purchase) == datetime(2025, 5, 27, tzinfo=UTC)

    def test_refund_allowed_exactly_at_deadline(self):
        """A refund at exactly the deadline succeeds."""
        purchase = build_purchase(self.VALID_FROM, 5)
        assert ensure_refundable(purchase, datetime(2025, 5, 27, tzinfo=UTC)) == datetime(2025, 5, 27, tzinfo=UTC)

    def test_refund_rejected_one_instant_after_deadline(self):
        """One microsecond past the deadline raises RefundExpiredError."""
        purchase = build_purchase(self.VALID_FROM, 5)
        with pytest.raises(RefundExpiredError) as exc_info:
            ensure_refundable(purchase, datetime(2025, 5, 27, tzinfo=UTC) + timedelta(microseconds=1))
        assert exc_info.value.code == ErrorCode.REFUND_EXPIRED

    def test_zero_window_means_no_refund(self):
        """A zero-day window is already expired."""
        purchase = build_purchase(self.VALID_FROM, 0)
        assert refund_deadline(purchase) == NO_REFUND_WINDOW
        with pytest.raises(RefundExpiredError):
            ensure_refundable(purchase, NOW)

    def test_window_reaching_before_calendar_start_is_expired(self):
        """A window older than any representable date behaves like an elapsed deadline."""
        purchase = build_purchase(self.VALID_FROM, 1_000_000)
        assert refund_deadline(purchase) == NO_REFUND_WINDOW
        assert visible_deadline(purchase, NOW) is None
        with pytest.raises(RefundExpiredError):
            ensure_refundable(purchase, NOW)

    @pytest.mark.parametrize("value,accepted", [(0, True), (3650, True), (3651, False), (-1, False)])
    def test_window_range(self, value, accepted):
        """Organizer refund windows are bounded."""
        assert window_in_range(value) is accepted

    @pytest.mark.parametrize("valid_from,window", [(None, 5), (VALID_FROM, None)])
    def test_missing_parameters_forbid_refund(self, valid_from, window):
        """Unset window or validity start raises RefundForbiddenError."""
        with pytest.raises(RefundForbiddenError):
            refund_deadline(build_purchase(valid_from, window))

    def test_visible_deadline_uses_none_sentinel(self):
        """Buyers see None once no refund is possible."""
        purchase = build_purchase(self.VALID_FROM, 5)
        assert visible_deadline(purchase, NOW) == datetime(2025, 5, 27, tzinfo=UTC)
        assert visible_deadline(purchase, datetime(2025, 5, 28, tzinfo=UTC)) is None
        assert visible_deadline(build_purchase(None, 5), NOW) is None

    def test_lowered_window_never_widens(self):
        """Lowering narrows wider snapshots and leaves narrower or unset ones alone."""
        assert lowered_window(7, 3) == 3
        assert lowered_window(2, 3) == 2
        assert lowered_window(3, 3) == 3
        assert lowered_window(None, 3) is None


class TestActiveDate:
    """Tests for the representative date of an event."""

    def test_single_day_event_shows_start_time(self):
        """A one-day event yields its start time whatever the ticket windows."""
        event = build_event(datetime(2025, 5, 10, 18, tzinfo=UTC), datetime(2025, 5, 10, 23, tzinfo=UTC))
        ticket = build_ticket(valid_from=datetime(2025, 5, 3, tzinfo=UTC), valid_to=datetime(2025, 5, 11, tzinfo=UTC))
        assert select_active_date(event, [ticket], NOW, UTC) == event.start_time

    def test_multi_day_prefers_earliest_upcoming_validity(self):
        """The earliest today-or-future validFrom wins."""
        event = build_event(datetime(2025, 4, 1, tzinfo=UTC), datetime(2025, 6, 1, tzinfo=UTC))
        later = build_ticket(valid_from=datetime(2025, 5, 20, tzinfo=UTC), valid_to=datetime(2025, 5, 21, tzinfo=UTC))
        sooner = build_ticket(valid_from=datetime(2025, 5, 3, tzinfo=UTC), valid_to=datetime(2025, 5, 4, tzinfo=UTC))
        past = build_ticket(valid_from=datetime(2025, 4, 2, tzinfo=UTC), valid_to=datetime(2025, 5, 30, tzinfo=UTC))
        assert select_active_date(event, [later, past, sooner], NOW, UTC) == sooner.valid_from

    def test_earlier_today_counts_as_upcoming(self):
        """A validity start earlier on the current day is still today."""
        event = build_event(datetime(2025, 4, 1, tzinfo=UTC), datetime(2025, 6, 1, tzinfo=UTC))
        today = build_ticket(valid_from=datetime(2025, 5, 1, 8, tzinfo=UTC), valid_to=datetime(2025, 5, 2, tzinfo=UTC))
        assert select_active_date(event, [today], NOW, UTC) == today.valid_from

    def test_multi_day_with_only_past_validity_uses_latest(self):
        """Only past validity starts fall back to the most recent one."""
        event = build_event(datetime(2025, 4, 1, tzinfo=UTC), datetime(2025, 6, 1, tzinfo=UTC))
        older = build_ticket(valid_from=datetime(2025, 4, 5, tzinfo=UTC), valid_to=datetime(2025, 6, 1, tzinfo=UTC))
        recent = build_ticket(valid_from=datetime(2025, 4, 20, tzinfo=UTC), valid_to=datetime(2025, 6, 1, tzinfo=UTC))
        assert select_active_date(event, [older, recent], NOW, UTC) == recent.valid_from

    def test_no_bookable_ticket_yields_none(self):
        """Sold-out, closed or expired tickets leave no active date."""
        event = build_event(datetime(2025, 4, 1, tzinfo=UTC), datetime(2025, 6, 1, tzinfo=UTC))
        tickets = [
            build_ticket(valid_from=NOW, valid_to=NOW + timedelta(days=1), is_sold_out=True),
            build_ticket(valid_from=NOW, valid_to=NOW + timedelta(days=1), sales_end=NOW - timedelta(hours=1)),
            build_ticket(valid_from=NOW - timedelta(days=2), valid_to=NOW - timedelta(days=1)),
        ]
        assert bookable_tickets(tickets, NOW) == []
        assert select_active_date(event, tickets, NOW, UTC) is None

    def test_calendar_day_follows_reference_offset(self):
        """Whether an event is single-day depends on the reference offset."""
        event = build_event(datetime(2025, 5, 10, 20, tzinfo=UTC), datetime(2025, 5, 11, 2, tzinfo=UTC))
        ticket = build_ticket(valid_from=datetime(2025, 5, 11, tzinfo=UTC), valid_to=datetime(2025, 5, 12, tzinfo=UTC))
        tokyo = timezone(timedelta(hours=9))
        assert select_active_date(event, [ticket], NOW, tokyo) == event.start_time
        assert select_active_date(event, [ticket], NOW, UTC) == ticket.valid_from


class TestDeriveStatus:
    """Tests for event status derivation."""

    FUTURE_END = NOW + timedelta(days=10)
    PAST_END = NOW - timedelta(days=1)

    def test_all_tickets_sold_out_moves_to_sold_out(self):
        """Published with every ticket sold out becomes SoldOut."""
        assert derive_status(EventStatus.PUBLISHED, [True, True], self.FUTURE_END, True, NOW) is EventStatus.SOLD_OUT

    def test_draft_with_all_sold_out_moves_to_sold_out(self):
        """Draft events are also eligible for sold-out detection."""
        assert derive_status(EventStatus.DRAFT, [True], self.FUTURE_END, True, NOW) is EventStatus.SOLD_OUT

    def test_event_without_tickets_is_never_sold_out(self):
        """Zero tickets never count as sold out."""
        assert derive_status(EventStatus.PUBLISHED, [], self.FUTURE_END, False, NOW) is EventStatus.PUBLISHED

    def test_available_ticket_reverts_sold_out_to_draft(self):
        """A freed ticket sends SoldOut back to Draft, not Published."""
        assert derive_status(EventStatus.SOLD_OUT, [True, False], self.FUTURE_END, True, NOW) is EventStatus.DRAFT

    def test_elapsed_event_with_sales_completes(self):
        """An elapsed event that sold anything becomes Completed."""
        assert derive_status(EventStatus.PUBLISHED, [False], self.PAST_END, True, NOW) is EventStatus.COMPLETED

    def test_elapsed_event_without_sales_reverts_to_draft(self):
        """An elapsed event that never sold reverts to Draft."""
        assert derive_status(EventStatus.PUBLISHED, [False], self.PAST_END, False, NOW) is EventStatus.DRAFT

    def test_elapsed_sold_out_event_completes_in_one_evaluation(self):
        """An elapsed sold-out event reaches Completed without an intermediate round."""
        assert derive_status(EventStatus.SOLD_OUT, [True], self.PAST_END, True, NOW) is EventStatus.COMPLETED

    def test_elapsed_draft_is_left_alone(self):
        """Completion only applies to Published and SoldOut events."""
        assert derive_status(EventStatus.DRAFT, [False], self.PAST_END, True, NOW) is EventStatus.DRAFT

    def test_completed_is_terminal(self):
        """Completed never changes."""
        assert derive_status(EventStatus.COMPLETED, [False], self.FUTURE_END, False, NOW) is EventStatus.COMPLETED

    @pytest.mark.parametrize("status", list(EventStatus))
    @pytest.mark.parametrize("flags", [[], [True], [False], [True, False]])
    @pytest.mark.parametrize("end_offset", [timedelta(days=-1), timedelta(days=1)])
    def test_derivation_is_idempotent(self, status, flags, end_offset):
        """Deriving twice from unchanged inputs gives the same status."""
        once = derive_status(status, flags, NOW + end_offset, True, NOW)
        assert derive_status(once, flags, NOW + end_offset, True, NOW) is once
