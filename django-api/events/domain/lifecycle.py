"""Event status derivation.

``derive_status`` is the single place that decides what an event's status
should be given its tickets and the current instant. Both the read path
and the periodic sweep go through it.
"""

from collections.abc import Sequence
from datetime import datetime

from events.domain.models import EventStatus

_SOLD_OUT_ELIGIBLE = {EventStatus.DRAFT, EventStatus.PUBLISHED, EventStatus.SOLD_OUT}
_COMPLETION_ELIGIBLE = {EventStatus.PUBLISHED, EventStatus.SOLD_OUT}


def _step(
    status: EventStatus,
    sold_out_flags: Sequence[bool],
    end_time: datetime,
    has_sales: bool,
    now: datetime,
) -> EventStatus:
    if status is EventStatus.COMPLETED:
        return status

    if end_time < now and status in _COMPLETION_ELIGIBLE:
        return EventStatus.COMPLETED if has_sales else EventStatus.DRAFT

    all_sold_out = bool(sold_out_flags) and all(sold_out_flags)
    if all_sold_out and status in _SOLD_OUT_ELIGIBLE:
        return EventStatus.SOLD_OUT
    if status is EventStatus.SOLD_OUT and not all_sold_out:
        # Publication has to be confirmed again by the organizer.
        return EventStatus.DRAFT
    return status


def derive_status(
    status: EventStatus,
    sold_out_flags: Sequence[bool],
    end_time: datetime,
    has_sales: bool,
    now: datetime,
) -> EventStatus:
    """Apply sold-out detection and completion until the status is stable.

    Running to a fixpoint keeps repeated evaluation idempotent: an elapsed,
    fully sold event goes straight to COMPLETED instead of stopping at
    SOLD_OUT for one round.
    """
    current = status
    for _ in range(len(EventStatus)):
        following = _step(current, sold_out_flags, end_time, has_sales, now)
        if following is current:
            return current
        current = following
    return current
