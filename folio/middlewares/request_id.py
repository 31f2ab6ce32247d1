"""Binds the X-Request-ID header to the logging correlation id."""

from uuid import uuid4

from asgi_correlation_id import correlation_id
from robyn import Request

from folio.middlewares.base import BaseMiddleware

REQUEST_ID_HEADER = "x-request-id"
_MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware(BaseMiddleware):
    """Sets the correlation id from the incoming header, or generates one."""

    def before(self, request: Request) -> Request:
        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not request_id or len(request_id) > _MAX_REQUEST_ID_LENGTH:
            request_id = uuid4().hex
            request.headers.set(REQUEST_ID_HEADER, request_id)
        correlation_id.set(request_id)
        return request
