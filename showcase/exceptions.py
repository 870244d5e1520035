import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BackendError(APIException):
    """A call into the managed backend (bucket, database, email API) failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Something went wrong while talking to the backend. Please try again later."
    default_code = "backend_error"


class ProjectSyncError(BackendError):
    default_detail = "Failed to save project."
    default_code = "project_sync_failed"

    def __init__(self, step: str, detail=None):
        self.step = step
        super().__init__(detail or f"{step} failed")


class CategoryInUse(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Category still has skills assigned."
    default_code = "category_in_use"


class ContactDeliveryError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Failed to send your message. Please try again later."
    default_code = "contact_delivery_failed"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None and response.status_code >= 500:
        view = context.get("view")
        logger.error(
            "%s in %s: %s",
            type(exc).__name__,
            type(view).__name__ if view is not None else "unknown view",
            exc,
        )
    return response
