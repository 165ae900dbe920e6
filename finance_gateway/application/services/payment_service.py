"""Payment service - initiates and verifies SkipCash card payments."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional
from uuid import uuid4

import structlog

from finance_gateway.core.config import settings
from finance_gateway.core.logging import mask_email
from finance_gateway.core.metrics import record_payment_initiation, record_verify_poll
from finance_gateway.core.rate_limit import SlidingWindowRateLimiter
from finance_gateway.core.retry import RetryPolicy, poll_until
from finance_gateway.domain.entities import (
    GatewayPaymentRequest,
    PaymentCaller,
    PaymentTransaction,
    TransactionStatus,
)
from finance_gateway.domain.exceptions import (
    GatewayAPIException,
    GatewayConfigurationException,
    InvalidPaymentRequestException,
    PaymentNotPermittedException,
    PaymentUnauthorizedException,
    RateLimitExceededException,
    TransactionNotFoundException,
)
from finance_gateway.domain.interfaces import (
    PaymentGatewayClient,
    PaymentPermissionPolicy,
    UnitOfWork,
)
from finance_gateway.application.dto import (
    PaymentInitiationRequest,
    PaymentInitiationResponse,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
)
from finance_gateway.service.skipcash import (
    PaymentContext,
    SkipCashCredentials,
    compute_signature,
    format_amount,
    lookup_signature_fields,
    parse_custom1_json,
    payment_signature_fields,
    resolve_status,
    status_id_for,
)

logger = structlog.get_logger(__name__)

CREDIT_PRICE_TOLERANCE = Decimal("0.01")


class PaymentService:
    """
    Application service for payment initiation and verification.

    Verification never touches the installment plan; that is owned
    by webhook reconciliation.
    """

    def __init__(
        self,
        gateway_client: PaymentGatewayClient,
        unit_of_work: UnitOfWork,
        credentials: SkipCashCredentials,
        rate_limiter: SlidingWindowRateLimiter,
        poll_policy: RetryPolicy,
        permission_policy: PaymentPermissionPolicy,
        credit_price: Decimal | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._gateway = gateway_client
        self._uow = unit_of_work
        self._credentials = credentials
        self._rate_limiter = rate_limiter
        self._poll_policy = poll_policy
        self._permissions = permission_policy
        self._credit_price = credit_price if credit_price is not None else settings.credit_price
        self._sleep = sleep

    async def initiate_payment(
        self,
        request: PaymentInitiationRequest,
        authorization: Optional[str] = None,
    ) -> PaymentInitiationResponse:
        """
        Create a hosted payment and record it as pending.

        Checks run in order: caller, required fields, rate limit,
        permission, credentials, credit price. Malformed requests never
        count against the rate limit.

        Args:
            request: Payer details, amount and correlation context
            authorization: The caller's Authorization header

        Returns:
            PaymentInitiationResponse with the hosted payment URL

        Raises:
            PaymentUnauthorizedException: If no caller could be identified
            InvalidPaymentRequestException: If validation fails
            RateLimitExceededException: If the caller exceeded the rate limit
            PaymentNotPermittedException: If the caller may not pay
            GatewayConfigurationException: If credentials are missing
            GatewayAPIException: If the gateway rejects the request
        """
        caller = await self._permissions.identify(authorization)
        if caller is None:
            logger.warning("payment_caller_unidentified", has_authorization=bool(authorization))
            raise PaymentUnauthorizedException()

        errors = request.validate()
        if errors:
            record_payment_initiation("rejected")
            raise InvalidPaymentRequestException(
                "; ".join(errors),
                missing_fields=request.missing_fields(),
            )

        if not caller.is_admin:
            self._enforce_rate_limit(caller, request)
            await self._check_permission(caller, request)

        self._require_credentials()
        self._check_credit_topup_price(request)

        context = PaymentContext(
            application_id=request.application_id,
            payment_schedule_id=request.payment_schedule_id,
            is_settlement=request.is_settlement,
        )
        custom1 = request.custom1 or context.encode()
        context = context.merged_with(PaymentContext.from_custom1(custom1))

        gateway_request = GatewayPaymentRequest(
            uid=str(uuid4()),
            key_id=self._credentials.key_id,
            amount=format_amount(request.amount),
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
            email=request.email,
            street=request.street or "",
            city=request.city or "",
            state=request.state or "",
            country=request.country or "",
            postal_code=request.postal_code or "",
            transaction_id=request.transaction_id,
            custom1=custom1,
            subject=request.subject,
            description=request.description,
            return_url=request.return_url,
            webhook_url=request.webhook_url,
            only_debit_card=request.only_debit_card,
        )
        signature = compute_signature(
            payment_signature_fields(gateway_request),
            self._credentials.secret_key,
        )

        log = logger.bind(
            transaction_id=request.transaction_id,
            amount=gateway_request.amount,
            payer=mask_email(request.email),
            application_id=context.application_id,
        )
        log.info("payment_initiation_requested", sandbox=self._credentials.use_sandbox)

        try:
            body = await self._gateway.create_payment(gateway_request.to_payload(), signature)
        except GatewayAPIException:
            record_payment_initiation("gateway_error")
            raise

        response = PaymentInitiationResponse.from_gateway(body)
        record_payment_initiation("success")
        log.info("payment_initiated", payment_id=response.payment_id)

        await self._record_pending(request, response, context)

        return response

    async def verify_payment(
        self,
        request: PaymentVerificationRequest,
    ) -> PaymentVerificationResponse:
        """
        Report the current status of a payment.

        A resolved transaction, or one the gateway has not assigned an
        id to yet, is answered from storage. Otherwise the gateway is
        queried; when it reports completion the store is polled until
        the webhook has recorded it too, so clients do not race ahead
        of the schedule update.

        Raises:
            InvalidPaymentRequestException: If neither id is given
            TransactionNotFoundException: If only an unknown transaction id is given
            GatewayConfigurationException: If credentials are missing
            GatewayAPIException: If the gateway lookup fails
        """
        errors = request.validate()
        if errors:
            raise InvalidPaymentRequestException("; ".join(errors))

        transaction_id = request.transaction_id
        payment_id = request.payment_id

        stored: Optional[PaymentTransaction] = None
        if transaction_id:
            async with self._uow as uow:
                stored = await uow.transactions.get_by_transaction_id(transaction_id)

        if not payment_id:
            if stored is None:
                raise TransactionNotFoundException(transaction_id)
            if stored.is_resolved or not stored.payment_id:
                logger.info(
                    "payment_verified_from_storage",
                    transaction_id=transaction_id,
                    status=stored.status.value,
                )
                return self._from_storage(stored)
            payment_id = stored.payment_id

        self._require_credentials()

        signature = compute_signature(
            lookup_signature_fields(payment_id, self._credentials.key_id),
            self._credentials.secret_key,
        )
        body = await self._gateway.get_payment(payment_id, signature)
        result = body.get("resultObj") or body

        status = resolve_status(result)
        transaction_id = transaction_id or result.get("transactionId")

        log = logger.bind(
            payment_id=payment_id,
            transaction_id=transaction_id,
            status=status.value,
        )
        log.info("payment_status_fetched")

        webhook_confirmed = None
        if status == TransactionStatus.COMPLETED:
            webhook_confirmed = False
            if transaction_id:
                webhook_confirmed = await self._wait_for_webhook(transaction_id)
            if not webhook_confirmed:
                log.warning("webhook_not_confirmed", attempts=self._poll_policy.max_attempts)

        if transaction_id:
            await self._persist_status(transaction_id, status)

        return PaymentVerificationResponse(
            status=status,
            status_id=self._status_id(result, status),
            source="gateway",
            payment_id=payment_id,
            transaction_id=transaction_id,
            webhook_confirmed=webhook_confirmed,
            data=result,
        )

    def _enforce_rate_limit(self, caller: PaymentCaller, request: PaymentInitiationRequest) -> None:
        key = caller.user_id or (request.email or "").strip().lower()
        if self._rate_limiter.hit(key):
            return
        record_payment_initiation("rate_limited")
        logger.warning(
            "payment_rate_limited",
            user_id=caller.user_id,
            payer=mask_email(request.email),
        )
        raise RateLimitExceededException(
            self._rate_limiter.limit,
            self._rate_limiter.window_seconds,
        )

    async def _check_permission(
        self,
        caller: PaymentCaller,
        request: PaymentInitiationRequest,
    ) -> None:
        application_id = (
            request.application_id
            or PaymentContext.from_custom1(request.custom1).application_id
        )
        if await self._permissions.can_pay(caller, application_id):
            return
        record_payment_initiation("forbidden")
        logger.warning(
            "payment_not_permitted",
            user_id=caller.user_id,
            application_id=application_id,
        )
        raise PaymentNotPermittedException(application_id)

    def _require_credentials(self) -> None:
        missing = self._credentials.missing_for_payments()
        if missing:
            logger.error("skipcash_credentials_missing", missing=missing)
            raise GatewayConfigurationException(missing)

    def _check_credit_topup_price(self, request: PaymentInitiationRequest) -> None:
        """Reject credit top-ups whose amount does not match the credit price."""
        if request.application_id:
            return

        data = parse_custom1_json(request.custom1)
        if not data or data.get("type") != "credit_topup" or not data.get("credits"):
            return

        try:
            credits = Decimal(str(data["credits"]))
        except ArithmeticError:
            raise InvalidPaymentRequestException("Price validation failed: invalid credits value")

        expected = credits * self._credit_price
        if abs(request.amount - expected) > CREDIT_PRICE_TOLERANCE:
            logger.error(
                "credit_price_mismatch",
                credits=str(credits),
                expected_total=str(expected),
                actual_total=str(request.amount),
            )
            record_payment_initiation("rejected")
            raise InvalidPaymentRequestException(
                f"Price validation failed: expected {format_amount(expected)} QAR for "
                f"{format_amount(credits)} credits, got {format_amount(request.amount)} QAR"
            )

    async def _record_pending(
        self,
        request: PaymentInitiationRequest,
        response: PaymentInitiationResponse,
        context: PaymentContext,
    ) -> None:
        """Best effort: the payment already exists at the gateway."""
        transaction = PaymentTransaction(
            transaction_id=request.transaction_id,
            amount=request.amount,
            payment_id=response.payment_id,
            application_id=context.application_id,
            payment_schedule_id=context.payment_schedule_id,
            is_settlement=context.is_settlement,
        )

        try:
            async with self._uow as uow:
                inserted = await uow.transactions.create_pending(transaction)
        except Exception as e:
            logger.error(
                "pending_transaction_insert_failed",
                transaction_id=request.transaction_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        if not inserted:
            logger.info("pending_transaction_exists", transaction_id=request.transaction_id)

    async def _wait_for_webhook(self, transaction_id: str) -> bool:
        async def webhook_recorded() -> bool:
            async with self._uow as uow:
                transaction = await uow.transactions.get_by_transaction_id(transaction_id)
            return transaction is not None and transaction.is_completed

        confirmed = await poll_until(webhook_recorded, self._poll_policy, sleep=self._sleep)
        record_verify_poll(confirmed)
        return confirmed

    async def _persist_status(self, transaction_id: str, status: TransactionStatus) -> None:
        completed_at = (
            datetime.now(timezone.utc) if status == TransactionStatus.COMPLETED else None
        )
        async with self._uow as uow:
            existing = await uow.transactions.get_by_transaction_id(transaction_id)
            if existing is None or existing.status == status:
                return
            if not existing.can_transition_to(status):
                logger.info(
                    "verify_status_ignored",
                    transaction_id=transaction_id,
                    current_status=existing.status.value,
                    reported_status=status.value,
                )
                return
            await uow.transactions.update_status(
                transaction_id,
                status,
                completed_at=completed_at,
            )

    @staticmethod
    def _status_id(result: dict, status: TransactionStatus) -> int:
        raw = result.get("statusId", result.get("StatusId"))
        try:
            return int(raw)
        except (TypeError, ValueError):
            return status_id_for(status)

    @staticmethod
    def _from_storage(transaction: PaymentTransaction) -> PaymentVerificationResponse:
        return PaymentVerificationResponse(
            status=transaction.status,
            status_id=status_id_for(transaction.status),
            source="storage",
            payment_id=transaction.payment_id,
            transaction_id=transaction.transaction_id,
            data={
                "amount": float(transaction.amount),
                "applicationId": transaction.application_id,
                "completedAt": (
                    transaction.completed_at.isoformat()
                    if transaction.completed_at
                    else None
                ),
            },
        )
