"""Domain error codes for the events module."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    PURCHASE_NOT_FOUND = "PURCHASE_NOT_FOUND"
    IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    INVALID_EVENT = "INVALID_EVENT"
    INVALID_TICKET = "INVALID_TICKET"
    INVALID_PURCHASE = "INVALID_PURCHASE"
    MIXED_EVENT_PURCHASE = "MIXED_EVENT_PURCHASE"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    SALES_CLOSED = "SALES_CLOSED"
    REFUND_EXPIRED = "REFUND_EXPIRED"
    REFUND_FORBIDDEN = "REFUND_FORBIDDEN"
    EVENT_HAS_ACTIVE_PURCHASES = "EVENT_HAS_ACTIVE_PURCHASES"
    TICKET_HAS_PURCHASES = "TICKET_HAS_PURCHASES"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    NOT_EVENT_OWNER = "NOT_EVENT_OWNER"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def details(self) -> dict[str, Any]:
        """Structured, user-safe context for the error."""
        return {}


class EntityNotFoundError(DomainError):
    """Raised when an event, ticket, purchase or image does not exist."""


class EventNotFoundError(EntityNotFoundError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class TicketNotFoundError(EntityNotFoundError):
    """Raised when a ticket tier is not found."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_FOUND,
            message="Ticket not found",
        )
        self.ticket_id = ticket_id

    def details(self) -> dict[str, Any]:
        return {"ticket_id": self.ticket_id}


class PurchaseNotFoundError(EntityNotFoundError):
    """Raised when a purchase is absent or not owned by the caller."""

    def __init__(self, purchase_id: str) -> None:
        super().__init__(
            code=ErrorCode.PURCHASE_NOT_FOUND,
            message="Purchase not found",
        )
        self.purchase_id = purchase_id


class ImageNotFoundError(EntityNotFoundError):
    def __init__(self, public_id: str) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_NOT_FOUND,
            message="Image not found",
        )
        self.public_id = public_id


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str = "event") -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )


class InvalidEventError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_EVENT, message=message)


class InvalidTicketError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_TICKET, message=message)


class InvalidPurchaseError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_PURCHASE, message=message)


class MixedEventPurchaseError(DomainError):
    """Raised when one purchase references tickets of several events."""

    def __init__(self, event_ids: list[str]) -> None:
        super().__init__(
            code=ErrorCode.MIXED_EVENT_PURCHASE,
            message="All tickets in a purchase must belong to one event",
        )
        self.event_ids = event_ids

    def details(self) -> dict[str, Any]:
        return {"event_ids": self.event_ids}


class CapacityExceededError(DomainError):
    """Raised when a reservation would oversell a ticket tier."""

    def __init__(self, ticket_id: str, requested: int, available: int) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message="Not enough tickets available",
        )
        self.ticket_id = ticket_id
        self.requested = requested
        self.available = available

    def details(self) -> dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "requested": self.requested,
            "available": self.available,
        }


class SalesClosedError(DomainError):
    """Raised when a ticket is bought outside its sales window."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.SALES_CLOSED,
            message="Ticket sales are closed",
        )
        self.ticket_id = ticket_id

    def details(self) -> dict[str, Any]:
        return {"ticket_id": self.ticket_id}


class RefundExpiredError(DomainError):
    """Raised when the refund deadline of a purchase has passed."""

    def __init__(self, deadline: datetime | None) -> None:
        super().__init__(
            code=ErrorCode.REFUND_EXPIRED,
            message="Refund period has expired",
        )
        self.deadline = deadline


class RefundForbiddenError(DomainError):
    """Raised when a purchase lacks the parameters needed for a refund."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.REFUND_FORBIDDEN,
            message="Refund is not possible: refund parameters are missing",
        )


class EventHasActivePurchasesError(DomainError):
    """Raised when deleting an event that still has active purchases."""

    def __init__(self, event_id: str, active_purchase_count: int) -> None:
        super().__init__(
            code=ErrorCode.EVENT_HAS_ACTIVE_PURCHASES,
            message="Event cannot be deleted: active purchases exist",
        )
        self.event_id = event_id
        self.active_purchase_count = active_purchase_count

    def details(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "active_purchase_count": self.active_purchase_count,
        }


class TicketHasPurchasesError(DomainError):
    def __init__(self, ticket_id: str, purchases_count: int) -> None:
        super().__init__(
            code=ErrorCode.TICKET_HAS_PURCHASES,
            message="Ticket cannot be deleted: purchases exist",
        )
        self.ticket_id = ticket_id
        self.purchases_count = purchases_count

    def details(self) -> dict[str, Any]:
        return {"ticket_id": self.ticket_id, "purchases_count": self.purchases_count}


class InvalidStatusTransitionError(DomainError):
    def __init__(self, current: str, requested: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=reason,
        )
        self.current = current
        self.requested = requested

    def details(self) -> dict[str, Any]:
        return {"current": self.current, "requested": self.requested}


class NotEventOwnerError(DomainError):
    """Raised when someone other than the organizer manages an event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_EVENT_OWNER,
            message="Only the event organizer can perform this action",
        )
        self.event_id = event_id
