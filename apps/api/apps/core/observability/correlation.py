"""
Request correlation middleware.

Every request gets an X-Request-ID: the caller's when it sends a usable one,
a fresh UUID otherwise. The id is held thread-locally so log lines written
while the request runs carry it, and it is echoed on the response.
"""
import logging
import re
import time
import uuid
from threading import local

_request_context = local()

logger = logging.getLogger(__name__)

# Caller-supplied ids are copied into logs and response headers
REQUEST_ID_PATTERN = re.compile(r'^[A-Za-z0-9._:-]{1,128}$')


def get_request_id():
    """Get current request ID from thread-local storage."""
    return getattr(_request_context, 'request_id', None)


def clear_request_context():
    """Forget the current request ID."""
    _request_context.__dict__.pop('request_id', None)


def resolve_request_id(meta):
    request_id = meta.get(RequestCorrelationMiddleware.REQUEST_ID_HEADER, '')
    if REQUEST_ID_PATTERN.match(request_id):
        return request_id
    return str(uuid.uuid4())


class RequestCorrelationMiddleware:
    """
    Tags each request with an id and logs one line when it completes.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        self.process_request(request)
        response = self.get_response(request)
        return self.process_response(request, response)

    def process_request(self, request):
        request.request_id = resolve_request_id(request.META)
        request.start_time = time.time()
        _request_context.request_id = request.request_id

    def process_response(self, request, response):
        response['X-Request-ID'] = request.request_id
        duration_ms = (time.time() - request.start_time) * 1000

        logger.info(
            'Request completed',
            extra={
                'event': 'http_request_completed',
                'request_id': request.request_id,
                'path': request.path,
                'method': request.method,
                'status_code': response.status_code,
                'duration_ms': round(duration_ms, 2),
            }
        )

        clear_request_context()
        return response

    def process_exception(self, request, exception):
        """Log view exceptions while the request id is still set."""
        logger.error(
            f'Request failed: {exception.__class__.__name__}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'request_id': request.request_id,
                'path': request.path,
                'method': request.method,
                'exception_type': exception.__class__.__name__,
            }
        )
