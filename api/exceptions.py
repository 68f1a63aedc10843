"""
API error responses.

Domain exceptions from core.exceptions and DRF's own exceptions are rendered
as {"success": false, "error": ..., "code": ..., "details": {...}}.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationException

logger = logging.getLogger(__name__)


def _error(message, code=None, details=None, status_code=400):
    return Response(
        {
            'success': False,
            'error': message,
            'code': code,
            'details': details or {},
        },
        status=status_code,
    )


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
    if isinstance(detail, (list, tuple)) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER for the residence API"""
    if isinstance(exc, BaseApplicationException):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}", exc_info=exc)
        return Response(exc.as_payload(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, exceptions.ValidationError):
            return _error(_first_message(exc.detail), 'INVALID_INPUT', exc.detail, response.status_code)
        if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
            code = 'NOT_AUTHENTICATED'
        elif isinstance(exc, (exceptions.PermissionDenied, PermissionDenied)):
            code = 'FORBIDDEN'
        elif isinstance(exc, (exceptions.NotFound, Http404)):
            code = 'NOT_FOUND'
        else:
            code = getattr(exc, 'default_code', 'ERROR').upper()
        detail = getattr(exc, 'detail', str(exc))
        error = _error(_first_message(detail), code, status_code=response.status_code)
        for header in ('WWW-Authenticate', 'Retry-After', 'Allow'):
            if header in response:
                error[header] = response[header]
        return error

    view = context.get('view')
    logger.error(
        f"Unhandled error in {type(view).__name__ if view else 'API'}: {exc}",
        exc_info=exc,
    )
    return _error("An unexpected error occurred", 'INTERNAL_ERROR', status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
