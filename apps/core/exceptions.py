from rest_framework import status
from rest_framework.exceptions import Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler


class MarketplaceError(Exception):
    """Base exception for marketplace domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "error"

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class NotFoundError(MarketplaceError):
    """The referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class ForbiddenError(MarketplaceError):
    """The actor lacks the role required for this action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class InvalidStateError(MarketplaceError):
    """A state-machine guard failed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid_state"


class ConflictError(MarketplaceError):
    """Duplicate active offer, or a concurrent settlement won the race."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class InvalidInputError(MarketplaceError):
    """A supplied amount or field value is unacceptable."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid"


def custom_exception_handler(exc, context):
    """
    Render marketplace domain errors and throttling errors with the
    standard {"status": "error", "message": ...} body. Everything else
    falls back to DRF's default behavior.
    """
    if isinstance(exc, MarketplaceError):
        return Response(
            {
                "status": "error",
                "message": exc.message,
                "code": exc.code,
            },
            status=exc.status_code,
        )

    response = exception_handler(exc, context)

    if isinstance(exc, Throttled) and response is not None:
        view = context.get("view", None)
        throttles = [] if view is None else getattr(view, "get_throttles", lambda: [])()
        scope = None
        if throttles:
            scope = getattr(throttles[0], "scope", None)

        wait_seconds = int(exc.wait) if exc.wait is not None else None

        if scope == "offer_create":
            detail = "Too many offers submitted. Please wait before making another offer."
        elif scope == "offer_respond":
            detail = "Too many offer responses. Please wait before responding again."
        elif wait_seconds is not None:
            detail = f"Request rate limit exceeded. Please wait {wait_seconds} seconds and try again."
        else:
            detail = "Request rate limit exceeded. Please try again later."

        response.data = {
            "status": "error",
            "message": detail,
            "retry_after": wait_seconds,
        }
        response.status_code = 429

    return response
