"""Notification dispatcher interface.

Delivery (push, in-app, e-mail) is handled outside this service. The core
only announces what changed; a failed announcement never undoes the
ledger transaction that triggered it.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from events.domain import EventId

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    UPDATE = "update"
    REFUND = "refund"
    CANCEL = "cancel"
    PUBLIC = "public"


class NotificationDispatcher(ABC):
    """Interface of the external notification collaborator."""

    @abstractmethod
    def notify_event_change(self, event_id: EventId, change: ChangeKind) -> None:
        """Tell buyers and followers of an event that it changed."""
        ...

    @abstractmethod
    def notify_followers_on_new_event(self, organizer_id: int, event_name: str, event_id: EventId) -> None:
        """Tell an organizer's followers about a newly published event."""
        ...


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher: records notifications in the log only."""

    def notify_event_change(self, event_id: EventId, change: ChangeKind) -> None:
        logger.info("Event %s changed: %s", event_id, change.value)

    def notify_followers_on_new_event(self, organizer_id: int, event_name: str, event_id: EventId) -> None:
        logger.info("Organizer %s published %r (%s)", organizer_id, event_name, event_id)


def dispatch_quietly(send, *args) -> bool:
    """Call a dispatcher method, logging instead of raising on failure."""
    try:
        send(*args)
    except Exception:
        logger.exception("Notification %s failed for %s", getattr(send, "__name__", send), args)
        return False
    return True
