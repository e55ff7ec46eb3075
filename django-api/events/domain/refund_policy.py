"""Refund deadline rules.

A purchase can be returned until ``valid_from - refund_date_count days``
(inclusive). A window of zero days means no refund at all.
"""

from datetime import datetime, timedelta, timezone

from events.domain.errors import RefundExpiredError, RefundForbiddenError
from events.domain.models import Purchase

# Deadline used for a zero-day window: always in the past.
NO_REFUND_WINDOW = datetime.min.replace(tzinfo=timezone.utc)

# Longest refund lead time accepted from organizers, in days.
MAX_REFUND_DATE_COUNT = 3650


def refund_deadline(purchase: Purchase) -> datetime:
    """Return the last instant at which ``purchase`` may be refunded.

    Raises:
        RefundForbiddenError: If the window or the validity start is unset.
    """
    if purchase.refund_date_count is None or purchase.valid_from is None:
        raise RefundForbiddenError()
    if purchase.refund_date_count == 0:
        return NO_REFUND_WINDOW
    try:
        return purchase.valid_from - timedelta(days=purchase.refund_date_count)
    except OverflowError:
        # Deadline falls before the earliest representable instant.
        return NO_REFUND_WINDOW


def ensure_refundable(purchase: Purchase, now: datetime) -> datetime:
    """Return the deadline if ``now`` is still within it.

    Raises:
        RefundForbiddenError: If refund parameters are missing.
        RefundExpiredError: If the deadline has passed.
    """
    deadline = refund_deadline(purchase)
    if now > deadline:
        raise RefundExpiredError(None if deadline == NO_REFUND_WINDOW else deadline)
    return deadline


def visible_deadline(purchase: Purchase, now: datetime) -> datetime | None:
    """Deadline to show a buyer, or None when no refund is possible."""
    try:
        return ensure_refundable(purchase, now)
    except (RefundForbiddenError, RefundExpiredError):
        return None


def window_in_range(value: int) -> bool:
    return 0 <= value <= MAX_REFUND_DATE_COUNT


def lowered_window(current: int | None, new_value: int) -> int | None:
    """Apply a policy change to one snapshot without ever widening it."""
    if current is not None and current > new_value:
        return new_value
    return current
