"""Exception handlers mapping domain errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from finance_gateway.domain.exceptions import (
    ApplicationNotFoundException,
    DomainException,
    GatewayAPIException,
    GatewayConfigurationException,
    GatewayTimeoutException,
    InvalidPaymentRequestException,
    InvalidPlanUpdateException,
    InvalidWebhookPayloadException,
    PaymentNotPermittedException,
    PaymentUnauthorizedException,
    PlanNotFoundException,
    RateLimitExceededException,
    TransactionNotFoundException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)

PAYMENTS_PATH_PREFIX = "/v1/payments"


def payment_error_response(status_code: int, error: str, code: str) -> JSONResponse:
    """Error body used by the payment endpoints."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "code": code,
            "request_id": get_request_id(),
        },
    )


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Payment endpoints answer `{success: false, error, code}`; the plan
    endpoints use the `{error, message}` shape.
    """

    @app.exception_handler(PaymentUnauthorizedException)
    async def payment_unauthorized_handler(
        request: Request,
        exc: PaymentUnauthorizedException,
    ) -> JSONResponse:
        return payment_error_response(401, exc.message, exc.code)

    @app.exception_handler(PaymentNotPermittedException)
    async def payment_not_permitted_handler(
        request: Request,
        exc: PaymentNotPermittedException,
    ) -> JSONResponse:
        return payment_error_response(403, exc.message, exc.code)

    @app.exception_handler(RateLimitExceededException)
    async def rate_limit_handler(
        request: Request,
        exc: RateLimitExceededException,
    ) -> JSONResponse:
        response = payment_error_response(429, exc.message, exc.code)
        response.headers["Retry-After"] = str(int(exc.window_seconds))
        return response

    @app.exception_handler(GatewayConfigurationException)
    async def gateway_not_configured_handler(
        request: Request,
        exc: GatewayConfigurationException,
    ) -> JSONResponse:
        """Missing credentials are an operator problem, not a client one."""
        logger.error("gateway_not_configured", missing=exc.missing)
        return payment_error_response(500, exc.message, exc.code)

    @app.exception_handler(InvalidPaymentRequestException)
    async def invalid_payment_handler(
        request: Request,
        exc: InvalidPaymentRequestException,
    ) -> JSONResponse:
        logger.info(
            "payment_request_rejected",
            message=exc.message,
            missing_fields=exc.missing_fields,
        )
        return payment_error_response(400, exc.message, exc.code)

    @app.exception_handler(GatewayTimeoutException)
    async def gateway_timeout_handler(
        request: Request,
        exc: GatewayTimeoutException,
    ) -> JSONResponse:
        logger.error("gateway_timeout", path=request.url.path)
        return payment_error_response(400, exc.message, exc.code)

    @app.exception_handler(GatewayAPIException)
    async def gateway_error_handler(
        request: Request,
        exc: GatewayAPIException,
    ) -> JSONResponse:
        """Surface the gateway's own message to the caller."""
        logger.error(
            "gateway_api_error",
            message=exc.message,
            status_code=exc.status_code,
        )
        return payment_error_response(400, exc.message, exc.code)

    @app.exception_handler(TransactionNotFoundException)
    async def transaction_not_found_handler(
        request: Request,
        exc: TransactionNotFoundException,
    ) -> JSONResponse:
        return payment_error_response(404, exc.message, exc.code)

    @app.exception_handler(InvalidWebhookPayloadException)
    async def invalid_webhook_handler(
        request: Request,
        exc: InvalidWebhookPayloadException,
    ) -> JSONResponse:
        return payment_error_response(400, exc.message, exc.code)

    @app.exception_handler(ApplicationNotFoundException)
    async def application_not_found_handler(
        request: Request,
        exc: ApplicationNotFoundException,
    ) -> JSONResponse:
        return _error_response(404, exc.code, exc.message)

    @app.exception_handler(PlanNotFoundException)
    async def plan_not_found_handler(
        request: Request,
        exc: PlanNotFoundException,
    ) -> JSONResponse:
        return _error_response(404, exc.code, exc.message)

    @app.exception_handler(InvalidPlanUpdateException)
    async def invalid_plan_update_handler(
        request: Request,
        exc: InvalidPlanUpdateException,
    ) -> JSONResponse:
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed payment bodies are plain 400s; other routes keep FastAPI's 422."""
        if not request.url.path.startswith(PAYMENTS_PATH_PREFIX):
            return await request_validation_exception_handler(request, exc)

        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'][1:]) or 'body'}: {error['msg']}"
            for error in exc.errors()
        )
        return payment_error_response(
            400,
            f"Invalid request body: {details}",
            "INVALID_PAYMENT_REQUEST",
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        logger.warning(
            "domain_exception",
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        if request.url.path.startswith(PAYMENTS_PATH_PREFIX):
            return payment_error_response(500, "An unexpected error occurred.", "INTERNAL_ERROR")
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
