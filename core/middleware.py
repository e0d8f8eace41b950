"""Request correlation for API calls."""

from uuid import uuid4

import structlog

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestIdMiddleware:
    """Attach a request id to the request, the log context and the response.

    An incoming ``X-Request-ID`` header is reused when it is non-blank.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = (request.headers.get(REQUEST_ID_HEADER) or '').strip()
        request_id = incoming or str(uuid4())
        request.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )

        response = self.get_response(request)
        response[REQUEST_ID_HEADER] = request_id
        return response
