"""Access log lines and per-route HTTP metrics."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from finance_gateway.core.metrics import record_http_request

logger = structlog.get_logger(__name__)


def _endpoint_label(request: Request) -> str:
    # Route templates keep the metric label set bounded.
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return "unmatched"

    # Routes inside prefixed routers may report only their own part;
    # recover the prefix from the concrete path that matched.
    path = request.url.path
    try:
        concrete = template.format(**request.path_params)
    except (KeyError, IndexError, ValueError):
        return template
    if concrete != path and path.endswith(concrete):
        return path[: len(path) - len(concrete)] + template
    return template


class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line and one metrics sample per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        log = logger.bind(method=request.method, path=request.url.path)
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            log.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            log.info(
                "request_completed",
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        finally:
            record_http_request(
                request.method,
                _endpoint_label(request),
                status_code,
                time.perf_counter() - started,
            )

        return response
