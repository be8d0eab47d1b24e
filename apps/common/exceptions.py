"""
Error taxonomy for the editorial workflow.

Domain services raise these; the REST layer maps them onto HTTP status
codes through ``workflow_exception_handler``.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Base class for every error raised by the workflow core."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'workflow_error'

    def __init__(self, message='', **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self):
        payload = {'detail': self.message, 'code': self.default_code}
        if self.details:
            payload['context'] = self.details
        return payload


class ValidationError(WorkflowError):
    """Malformed input, e.g. an unknown status value."""
    default_code = 'validation_error'


class PermissionError(WorkflowError):  # noqa: A001
    """Actor or role is not entitled to the requested operation."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'permission_denied'


class ConflictError(WorkflowError):
    """Optimistic-lock failure or an assignment-count invariant would break."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'conflict'


class NotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'not_found'


class PersistenceError(WorkflowError):
    """Transient store failure that survived the call-site retries."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'persistence_error'


class NotificationFailure(WorkflowError):
    """A notification could not be delivered. Never fatal for the caller."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = 'notification_failure'


def workflow_exception_handler(exc, context):
    """
    DRF exception handler that understands WorkflowError.

    Anything else falls through to the stock DRF handler.
    """
    if isinstance(exc, WorkflowError):
        view = context.get('view')
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(exc.as_dict(), status=exc.status_code)

    return exception_handler(exc, context)
