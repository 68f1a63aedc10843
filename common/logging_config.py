"""
Logging configuration with request ID support
"""
import logging
import threading
import uuid

_request_state = threading.local()


def current_request_id():
    return getattr(_request_state, 'request_id', None)


class RequestIDFilter(logging.Filter):
    """
    Logging filter to add the current request ID to log records
    """
    def filter(self, record):
        request_id = getattr(record, 'request_id', None) or current_request_id()
        record.request_id = request_id or 'N/A'
        return True


class RequestIDMiddleware:
    """
    Middleware to generate and attach a unique request ID to each request.
    The ID is available as request.request_id, in the X-Request-ID response
    header and in every log record emitted while the request is served.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex[:8]
        request.request_id = request_id
        _request_state.request_id = request_id
        try:
            response = self.get_response(request)
        finally:
            _request_state.request_id = None
        response['X-Request-ID'] = request_id
        return response

    def process_exception(self, request, exception):
        """Log unhandled exceptions with the request ID"""
        request_id = getattr(request, 'request_id', 'N/A')
        logging.getLogger('django.request').error(
            f"[{request_id}] Exception: {type(exception).__name__}: {exception}",
            exc_info=True,
            extra={'request_id': request_id},
        )
