"""Correlation ids for requests and webhook deliveries."""

import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

_current_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Correlation id of the request being handled, if any."""
    return _current_request_id.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation id.

    A caller supplied X-Request-ID is reused so SkipCash deliveries can
    be traced end to end; otherwise a fresh uuid4 is minted. The id is
    visible to structlog and returned on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = _current_request_id.set(request_id)

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            finally:
                _current_request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
