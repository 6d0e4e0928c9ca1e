"""
Error taxonomy and the DRF exception handler.

Every error leaves the API in the same envelope:

    {"success": false, "message": "...", ...}

Services raise the SocialError subclasses below; DRF's own exceptions
(authentication, parsing, method not allowed, serializer validation) are
reshaped into the same envelope here.
"""
from rest_framework.response import Response
from rest_framework import status
from django.db import IntegrityError
import logging

logger = logging.getLogger(__name__)


class SocialError(Exception):
    """Base class for errors that map onto an HTTP status."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'An unexpected error occurred.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(SocialError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input.'


class AuthorizationDenied(SocialError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You do not have permission to do that.'


class NotFound(SocialError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found.'


class Conflict(SocialError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Conflict.'


class UpstreamUnavailable(SocialError):
    """
    An auxiliary upstream (event bus, identity provider) could not be reached.

    Never surfaces to clients when the upstream is auxiliary: the realtime
    notifier logs it and the mutation still succeeds.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Upstream service unavailable.'


def _first_message(detail):
    """Dig the first human-readable string out of DRF error detail."""
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for key, value in detail.items():
            text = _first_message(value)
            if key == 'non_field_errors':
                return text
            return f"{key}: {text}"
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Renders SocialError subclasses with their own status
    2. Converts DRF and Django exceptions to the envelope
    3. Never leaks stack traces
    """
    # rest_framework.views loads DEFAULT_AUTHENTICATION_CLASSES at import time,
    # which imports this module through social.authentication
    from rest_framework.views import exception_handler

    if isinstance(exc, SocialError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return Response(
            {'success': False, 'message': exc.message},
            status=exc.status_code
        )

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        errors = response.data
        response.data = {
            'success': False,
            'message': _first_message(errors),
        }
        if isinstance(errors, dict) and 'detail' not in errors:
            response.data['errors'] = errors
        return response

    if isinstance(exc, IntegrityError):
        logger.warning("IntegrityError: %s", exc)
        return Response(
            {'success': False, 'message': 'Data integrity error. This may be a duplicate entry.'},
            status=status.HTTP_409_CONFLICT
        )

    # Log unexpected exceptions
    logger.exception("Unhandled exception: %s", exc)

    return Response(
        {'success': False, 'message': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
