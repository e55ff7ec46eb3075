"""Cache keys for read-path snapshots."""

EVENT_LIST = "events:list"


def event_detail(event_id) -> str:
    return f"events:{event_id}"


def event_tickets(event_id) -> str:
    return f"events:{event_id}:tickets"


def for_event(event_id) -> list[str]:
    """Every key that depends on one event's data, including the listing."""
    return [EVENT_LIST, event_detail(event_id), event_tickets(event_id)]
