"""
API exception handling.

Every error leaves the API as JSON. Field validation errors keep DRF's
field-keyed body; everything else is flattened to {"error": "..."}.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            f'Unhandled API exception: {exc.__class__.__name__}',
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={
                'event': 'api_unhandled_exception',
                'exception_type': exc.__class__.__name__,
                'view': view.__class__.__name__ if view else None,
            }
        )
        return Response(
            {'error': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(response.data, dict) and set(response.data) == {'detail'}:
        response.data = {'error': str(response.data['detail'])}

    return response
