"""
Finance Gateway - Main Application Entry Point

SkipCash card payments for vehicle financing: hosted payment initiation,
verification and webhook reconciliation against installment schedules.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.responses import RedirectResponse

from finance_gateway import __version__
from finance_gateway.core.config import settings
from finance_gateway.core.logging import setup_logging
from finance_gateway.core.metrics import get_metrics, get_metrics_content_type
from finance_gateway.core.rate_limit import SlidingWindowRateLimiter
from finance_gateway.infrastructure.database import db_manager
from finance_gateway.presentation.api import api_router
from finance_gateway.presentation.api.v1.health import gateway_environment
from finance_gateway.presentation.middleware import (
    LoggingMiddleware,
    PreflightCORSMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)
from finance_gateway.presentation.middleware.cors import (
    ALLOWED_HEADERS,
    ALLOWED_METHODS,
    PREFLIGHT_MAX_AGE,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Sets up logging and the database engine on startup and disposes of
    the engine on shutdown.
    """
    setup_logging()
    db_manager.init()

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_started",
        version=__version__,
        gateway_environment=gateway_environment(),
    )

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Finance Gateway",
    description="SkipCash payments and installment schedules for vehicle financing",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.rate_limiter = SlidingWindowRateLimiter(
    limit=settings.payment_rate_limit,
    window_seconds=settings.payment_rate_window_seconds,
)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
    max_age=PREFLIGHT_MAX_AGE,
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


if settings.metrics_enabled:

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=get_metrics(),
            media_type=get_metrics_content_type(),
        )


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs")


def run_server() -> None:
    """Run the API with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(
        "finance_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
