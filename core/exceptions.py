import logging

from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class SlotUnavailable(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This time slot is already booked. Please choose another slot."
    default_code = "slot_unavailable"


class SessionLimitReached(PermissionDenied):
    default_code = "session_limit_reached"

    def __init__(self, plan):
        super().__init__(f"You have reached your {plan} session limit.")


class InsufficientWalletBalance(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Insufficient wallet balance"
    default_code = "insufficient_wallet_balance"


class EmailDeliveryFailed(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Email could not be sent"
    default_code = "email_delivery_failed"


def api_exception_handler(exc, context):
    """DRF exception handler that also turns unexpected errors into JSON 500s."""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "Unhandled error in %s",
        view.__class__.__name__ if view is not None else "unknown view",
        exc_info=exc,
    )
    return Response(
        {"detail": "Server error."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
