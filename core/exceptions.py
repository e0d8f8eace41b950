"""Domain errors and the DRF exception handler.

Service-layer errors subclass DRF's exception types so views can let them
propagate; the status code and payload come from the class.
"""

import structlog
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class PayloadValidationError(exceptions.ValidationError):
    """Caller-supplied data failed a business rule (never retried)."""


class NotFoundError(exceptions.NotFound):
    """A referenced invoice, template or settings row does not exist."""


class SettingsMissing(NotFoundError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'إعدادات المحل غير موجودة.'
    default_code = 'settings_missing'


class InvalidStateError(exceptions.APIException):
    """The invoice is in a state that forbids the requested action."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'لا يمكن تنفيذ العملية في حالة الفاتورة الحالية.'
    default_code = 'invalid_state'


class AllocationExhausted(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'تعذر إنشاء رقم فاتورة جديد'
    default_code = 'allocation_exhausted'


class AllocationConflict(Exception):
    """Transient numbering race; retried by the invoice service."""


def api_exception_handler(exc, context):
    """Default DRF handling, plus a logged JSON 500 for anything unexpected."""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    request = context.get('request')
    request_id = getattr(request, 'request_id', None)
    logger.exception(
        'unhandled_api_error',
        view=type(context.get('view')).__name__,
        error=str(exc),
    )
    return Response(
        {'detail': 'حدث خطأ في الخادم', 'request_id': request_id},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
