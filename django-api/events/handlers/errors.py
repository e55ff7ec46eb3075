"""Map domain errors to HTTP responses.

Only the machine code, the user-safe message and the error's declared
details reach the client.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from events.domain.errors import DomainError, ErrorCode

STATUS_BY_CODE = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PURCHASE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.IMAGE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EVENT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TICKET: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PURCHASE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MIXED_EVENT_PURCHASE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.SALES_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.REFUND_EXPIRED: status.HTTP_409_CONFLICT,
    ErrorCode.REFUND_FORBIDDEN: status.HTTP_409_CONFLICT,
    ErrorCode.EVENT_HAS_ACTIVE_PURCHASES: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_HAS_PURCHASES: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_EVENT_OWNER: status.HTTP_403_FORBIDDEN,
}


def error_response(error: DomainError) -> Response:
    body = {"error": {"code": error.code.value, "message": error.message, "details": error.details()}}
    return Response(body, status=STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST))


def domain_exception_handler(exc, context):
    """DRF exception handler that understands DomainError."""
    if isinstance(exc, DomainError):
        return error_response(exc)
    return exception_handler(exc, context)
