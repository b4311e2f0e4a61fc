"""
Domain errors and the unified API exception handler.

Services raise the ``APIException`` subclasses below; the handler,
installed as DRF's ``EXCEPTION_HANDLER``, renders every error with the
same envelope::

    {"ok": false, "error": {"code": "...", "message": "...", "details": ...}}
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class DomainError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'domain_error'

    def __init__(self, detail=None, code=None, details=None):
        super().__init__(detail, code)
        self.details = details


class ValidationError(DomainError):
    """Malformed or policy-violating input (e.g. a drive dated too soon)."""
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class CapacityExceededError(DomainError):
    default_detail = 'No more doses available for this drive.'
    default_code = 'capacity_exceeded'


class DuplicateError(DomainError):
    default_detail = 'Duplicate entry.'
    default_code = 'duplicate'


class ImmutableStateError(DomainError):
    """Mutation attempted on a past or finalized drive."""
    default_detail = 'This vaccination drive can no longer be changed.'
    default_code = 'immutable_state'


def _message(detail) -> str:
    if isinstance(detail, list) and detail:
        return _message(detail[0])
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _message(detail['detail'])
        if 'non_field_errors' in detail:
            return _message(detail['non_field_errors'])
        return 'Invalid input.'
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('unhandled error in %s', getattr(view, '__name__', None) or type(view).__name__)
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    error = {'message': _message(resp.data)}
    if isinstance(exc, DomainError):
        error['code'] = exc.default_code
        if exc.details is not None:
            error['details'] = exc.details
    elif isinstance(exc, exceptions.ValidationError):
        # Serializer failures carry per-field messages
        error['code'] = 'validation_error'
        error['details'] = resp.data
    elif isinstance(exc, exceptions.NotFound):
        error['code'] = 'not_found'
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        error['code'] = 'not_authenticated'
    elif isinstance(exc, exceptions.PermissionDenied):
        error['code'] = 'permission_denied'
    else:
        error['code'] = 'api_error'
    resp.data = {'ok': False, 'error': error}
    return resp
