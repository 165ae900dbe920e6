"""Middleware for request processing."""

from .cors import PreflightCORSMiddleware
from .error_handler import error_handler_middleware
from .logging import LoggingMiddleware
from .request_context import RequestContextMiddleware

__all__ = [
    "PreflightCORSMiddleware",
    "error_handler_middleware",
    "LoggingMiddleware",
    "RequestContextMiddleware",
]
