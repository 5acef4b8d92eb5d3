from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError
import logging

logger = logging.getLogger(__name__)

class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Stock not available').
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "business_error"

    def __init__(self, message, code=None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class OrderValidationError(BusinessLogicException):
    """Malformed or missing order input, caught before any stock is touched."""
    default_code = "validation_error"


class InvalidReferenceError(BusinessLogicException):
    """A line item names a malformed or nonexistent product."""
    default_code = "invalid_reference"

    def __init__(self, message, product_ref=None, code=None):
        self.product_ref = product_ref
        super().__init__(message, code)


class InsufficientStockError(BusinessLogicException):
    """The guarded decrement found less stock than requested."""
    default_code = "insufficient_stock"

    def __init__(self, message, product_ref=None, code=None):
        self.product_ref = product_ref
        super().__init__(message, code)


class InvalidTransitionError(BusinessLogicException):
    default_code = "invalid_transition"


class PersistenceError(BusinessLogicException):
    """
    Datastore unavailable or a write failed. The message is shown to the
    client as is, so it must never carry driver details.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "persistence_error"


def _first_error(detail, path=()):
    """Depth-first search for the first message; returns (path, message)."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            found = _first_error(value, path + (key,))
            if found:
                return found
        return None
    if isinstance(detail, list):
        for index, value in enumerate(detail):
            # ListSerializer errors keep an empty entry per valid child
            found = _first_error(value, path + (index,) if isinstance(value, dict) else path)
            if found:
                return found
        return None
    return path, str(detail)


def describe_validation_error(detail):
    """
    One readable line out of a DRF error tree,
    e.g. {"items": [{}, {"quantity": ["..."]}]} -> "items[1].quantity: ..."
    """
    found = _first_error(detail)
    if not found:
        return "Invalid input"
    path, message = found
    label = ""
    for part in path:
        if part == "non_field_errors":
            continue
        if isinstance(part, int):
            label += f"[{part}]"
        else:
            label += f".{part}" if label else part
    return f"{label}: {message}" if label else message


def _first_message(detail):
    found = _first_error(detail)
    return found[1] if found else ""


def custom_exception_handler(exc, context):
    # Handle custom BusinessLogicException
    if isinstance(exc, BusinessLogicException):
        if exc.status_code >= 500:
            logger.error(f"Business failure ({exc.code}): {exc.message}")
        data = {"error": exc.message, "code": exc.code}
        if getattr(exc, "product_ref", None):
            data["productId"] = str(exc.product_ref)
        return Response(data, status=exc.status_code)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    # Flatten DRF errors into the {error, code} envelope clients expect
    if isinstance(exc, ValidationError):
        response.data = {
            "error": describe_validation_error(exc.detail),
            "code": "validation_error",
            "fields": exc.detail,
        }
    else:
        codes = exc.get_codes() if hasattr(exc, "get_codes") else "error"
        response.data = {
            "error": _first_message(exc.detail) if hasattr(exc, "detail") else str(exc),
            "code": codes if isinstance(codes, str) else "error",
        }

    return response
