"""Payment API endpoints: initiation, verification and the gateway webhook."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse

from finance_gateway.application.dto import (
    PaymentInitiationRequest,
    PaymentVerificationRequest,
)
from finance_gateway.application.services import PaymentService, WebhookService
from finance_gateway.core.dependencies import get_payment_service, get_webhook_service
from finance_gateway.presentation.schemas import (
    PaymentErrorSchema,
    PaymentInitiationRequestSchema,
    PaymentInitiationResponseSchema,
    PaymentVerificationRequestSchema,
    PaymentVerificationResponseSchema,
    WebhookResponseSchema,
)

payment_router = APIRouter(
    prefix="/payments",
    responses={
        400: {"model": PaymentErrorSchema, "description": "Invalid request or gateway error"},
        500: {"model": PaymentErrorSchema, "description": "Gateway not configured"},
    },
)


@payment_router.post(
    "",
    response_model=PaymentInitiationResponseSchema,
    summary="Initiate Payment",
    description="""
    Create a hosted SkipCash card payment.

    Returns the URL the payer must be redirected to. A pending transaction
    is recorded under `transactionId`.
    """,
    responses={
        401: {"model": PaymentErrorSchema, "description": "Caller not authenticated"},
        403: {"model": PaymentErrorSchema, "description": "Payments disabled for the caller"},
        429: {"model": PaymentErrorSchema, "description": "Too many payment requests"},
    },
)
async def initiate_payment(
    request: PaymentInitiationRequestSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> PaymentInitiationResponseSchema:
    dto = PaymentInitiationRequest(
        amount=request.amount,
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
        email=request.email,
        transaction_id=request.transaction_id,
        street=request.street,
        city=request.city,
        state=request.state,
        country=request.country,
        postal_code=request.postal_code,
        subject=request.subject,
        description=request.description,
        return_url=request.return_url,
        webhook_url=request.webhook_url,
        only_debit_card=request.only_debit_card,
        custom1=request.custom1,
        application_id=request.application_id,
        payment_schedule_id=request.payment_schedule_id,
        is_settlement=request.is_settlement,
    )

    response = await payment_service.initiate_payment(dto, authorization=authorization)

    return PaymentInitiationResponseSchema(success=True, data=response.data)


async def _verify(
    payment_service: PaymentService,
    payment_id: Optional[str],
    transaction_id: Optional[str],
) -> PaymentVerificationResponseSchema:
    response = await payment_service.verify_payment(
        PaymentVerificationRequest(payment_id=payment_id, transaction_id=transaction_id)
    )
    return PaymentVerificationResponseSchema(success=True, data=response.to_payload())


@payment_router.post(
    "/verify",
    response_model=PaymentVerificationResponseSchema,
    summary="Verify Payment",
    description="""
    Resolve the current status of a payment.

    Resolved transactions are answered from storage. When the gateway
    reports completion the call waits, for a bounded time, until the
    webhook has recorded it; `webhookConfirmed` tells whether it did.
    """,
    responses={
        404: {"model": PaymentErrorSchema, "description": "Transaction not found"},
    },
)
async def verify_payment(
    request: PaymentVerificationRequestSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentVerificationResponseSchema:
    return await _verify(payment_service, request.payment_id, request.transaction_id)


@payment_router.get(
    "/verify",
    response_model=PaymentVerificationResponseSchema,
    summary="Poll Payment Status",
    description="Same as POST /payments/verify with the identifiers in the query string.",
    responses={
        404: {"model": PaymentErrorSchema, "description": "Transaction not found"},
    },
)
async def poll_payment(
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
    payment_id: Annotated[Optional[str], Query(alias="paymentId")] = None,
    transaction_id: Annotated[Optional[str], Query(alias="transactionId")] = None,
) -> PaymentVerificationResponseSchema:
    return await _verify(payment_service, payment_id, transaction_id)


@payment_router.post(
    "/webhook",
    response_model=WebhookResponseSchema,
    summary="SkipCash Webhook",
    description="""
    Payment notification sent by SkipCash.

    Authenticated with the HMAC signature in the Authorization header.
    Answers 401 when the signature does not match and 200 otherwise,
    including when the notification could not be applied.
    """,
    responses={
        401: {"model": WebhookResponseSchema, "description": "Invalid signature"},
    },
)
async def payment_webhook(
    request: Request,
    webhook_service: Annotated[WebhookService, Depends(get_webhook_service)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> JSONResponse:
    body = await request.body()
    result = await webhook_service.handle(body, authorization)
    return JSONResponse(result.to_body(), status_code=result.http_status)


@payment_router.options("", include_in_schema=False)
@payment_router.options("/verify", include_in_schema=False)
@payment_router.options("/webhook", include_in_schema=False)
async def payment_preflight() -> Response:
    """OPTIONS without CORS request headers; browsers are answered by the CORS middleware."""
    return Response(status_code=204)
