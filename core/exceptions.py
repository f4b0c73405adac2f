import logging

from django.db import InterfaceError, OperationalError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for business-rule failures raised by the marketplace services."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Request could not be processed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid request'


class InsufficientCreditError(ValidationError):
    default_message = 'Insufficient credit. You need at least 1 credit to place a bid.'


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You are not allowed to perform this action'


class UnauthorizedError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Authentication required'


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Resource already exists'


class StoreUnavailableError(DomainError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Database connection error. Please try again later.'


def error_response(message, status_code):
    return Response({'success': False, 'error': {'message': message}}, status=status_code)


def _flatten_detail(detail):
    """Pick the first human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _flatten_detail(value)
            if field in ('non_field_errors', 'detail', 'error'):
                return message
            return f"{field}: {message}"
        return 'Invalid request'
    if isinstance(detail, (list, tuple)):
        return _flatten_detail(detail[0]) if detail else 'Invalid request'
    return str(detail)


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER returning the {success, error: {message}} envelope."""
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.error(f"{view_name}: {exc.message}")
        return error_response(exc.message, exc.status_code)

    if isinstance(exc, drf_exceptions.APIException):
        response = error_response(_flatten_detail(exc.detail), exc.status_code)
        if getattr(exc, 'auth_header', None):
            response['WWW-Authenticate'] = exc.auth_header
        if getattr(exc, 'wait', None):
            response['Retry-After'] = '%d' % exc.wait
        return response

    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error(f"{view_name}: database unreachable: {str(exc)}")
        return error_response(StoreUnavailableError.default_message, status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.exception(f"Unexpected error in {view_name}")
    return error_response('Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)
