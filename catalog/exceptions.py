import logging
import traceback

from rest_framework import status
from rest_framework.exceptions import ValidationError as SerializerValidationError
from rest_framework.views import exception_handler

from .utils.format_serializer import format_serializer_errors, summarize_serializer_errors
from .utils.responses import error_response

logger = logging.getLogger(__name__)

_PASSTHROUGH_HEADERS = ("WWW-Authenticate", "Retry-After")


def catalog_exception_handler(exc, context):
    """Turn every error raised by a catalog view into a JSON error body.

    Known API errors keep their status code; serializer errors are flattened
    into ``details``. Anything else is reported as a 500 with the traceback
    in ``details`` so operators can debug from the admin panel.
    """
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "unknown view"

    if response is None:
        logger.error("Unhandled error in %s", view_name, exc_info=(type(exc), exc, exc.__traceback__))
        return error_response(
            str(exc) or type(exc).__name__,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            errorType=type(exc).__name__,
        )

    if isinstance(exc, SerializerValidationError):
        formatted = error_response(
            summarize_serializer_errors(exc.detail),
            response.status_code,
            details=format_serializer_errors(exc.detail),
        )
    else:
        formatted = error_response(
            str(exc.detail),
            response.status_code,
            **getattr(exc, "extra", {}),
        )

    if response.status_code >= 500:
        logger.error("%s failed: %s", view_name, exc)
    else:
        logger.info("%s rejected request: %s (%s)", view_name, exc, response.status_code)

    for header in _PASSTHROUGH_HEADERS:
        if header in response:
            formatted[header] = response[header]
    return formatted
