import logging
import traceback

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Cart is empty').
    """
    def __init__(self, message, code="business_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(BusinessLogicException):
    """
    Missing or invalid input: required fields, empty item list, no usable address.
    """
    def __init__(self, message, code="validation_error"):
        super().__init__(message, code=code)


class NotFoundError(BusinessLogicException):
    """
    A referenced product or shipping address does not exist for this requester.
    Order creation reports these as 400, not 404.
    """
    def __init__(self, message, code="not_found"):
        super().__init__(message, code=code)


def _first_message(detail):
    # DRF error details nest as dict -> list -> ErrorDetail
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key == "non_field_errors":
                return message
            return f"{key}: {message}"
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    return str(detail)


def _error_body(message, code, exc=None):
    body = {"success": False, "message": message, "code": code}
    if settings.DEBUG and exc is not None:
        body["error"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def custom_exception_handler(exc, context):
    # Domain errors never reach DRF's default handler
    if isinstance(exc, BusinessLogicException):
        return Response(_error_body(exc.message, exc.code, exc), status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        message = str(exc) if settings.DEBUG else "Internal Server Error"
        return Response(
            _error_body(message, "server_error", exc),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DRFValidationError):
        body = _error_body(_first_message(response.data), "invalid")
        body["errors"] = response.data
    else:
        detail = response.data.get("detail", response.data) if isinstance(response.data, dict) else response.data
        body = _error_body(_first_message(detail), getattr(exc, "default_code", "error"))

    response.data = body
    return response
