"""Webhook service - reconciles SkipCash payment notifications."""

from datetime import date, datetime, timezone
from typing import Callable, Optional

import structlog

from finance_gateway.core.metrics import (
    record_schedule_payment,
    record_webhook_event,
    record_webhook_ignored,
    record_webhook_signature_failure,
)
from finance_gateway.domain.entities import (
    PaymentTransaction,
    ScheduleUpdateMode,
    TransactionStatus,
    WebhookNotification,
)
from finance_gateway.domain.exceptions import InvalidWebhookPayloadException
from finance_gateway.domain.interfaces import UnitOfWork
from finance_gateway.application.dto import WebhookResult
from finance_gateway.service.skipcash import (
    PaymentContext,
    SkipCashCredentials,
    map_status_id,
    verify_signature,
    webhook_signature_fields,
)

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WebhookService:
    """
    Application service for inbound gateway notifications.

    Never raises: every outcome becomes a WebhookResult. Only an invalid
    signature answers 401; everything else answers 200 so the gateway
    does not retry notifications that can never succeed.
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        credentials: SkipCashCredentials,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._uow = unit_of_work
        self._credentials = credentials
        self._clock = clock

    async def handle(self, body: bytes, authorization: Optional[str]) -> WebhookResult:
        """
        Authenticate and apply one notification.

        Args:
            body: Raw request body
            authorization: The Authorization header as sent by the gateway

        Returns:
            WebhookResult carrying the HTTP status and response body
        """
        if not self._credentials.webhook_key:
            logger.error("skipcash_webhook_key_missing")
            record_webhook_ignored("not_configured")
            return WebhookResult(
                http_status=200,
                success=False,
                error="Webhook key not configured",
            )

        try:
            notification = WebhookNotification.from_body(body)
        except InvalidWebhookPayloadException as e:
            logger.warning("webhook_payload_invalid", error=e.message)
            record_webhook_ignored("invalid_payload")
            return WebhookResult(http_status=200, success=False, error=e.message)

        fields = webhook_signature_fields(notification)
        if not verify_signature(fields, self._credentials.webhook_key, authorization):
            logger.error(
                "webhook_signature_invalid",
                security_event=True,
                has_authorization=bool(authorization),
            )
            record_webhook_signature_failure()
            return WebhookResult(
                http_status=401,
                success=False,
                error="Invalid webhook signature",
            )

        status = map_status_id(notification.status_id)
        record_webhook_event(status.value)

        log = logger.bind(
            payment_id=notification.payment_id,
            status_id=notification.status_id,
            status=status.value,
        )
        log.info("webhook_received")

        try:
            return await self._reconcile(notification, status, log)
        except Exception as e:
            log.exception(
                "webhook_processing_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            record_webhook_ignored("error")
            return WebhookResult(
                http_status=200,
                success=False,
                error=str(e) or "Webhook processing failed",
                payment_id=notification.payment_id,
                status_id=notification.status_id,
                status=status,
            )

    async def _reconcile(
        self,
        notification: WebhookNotification,
        status: TransactionStatus,
        log,
    ) -> WebhookResult:
        custom_context = PaymentContext.from_custom1(notification.custom1)
        transaction_id = notification.transaction_id or custom_context.transaction_id

        def result(message: str) -> WebhookResult:
            return WebhookResult(
                http_status=200,
                success=True,
                message=message,
                payment_id=notification.payment_id,
                status_id=notification.status_id,
                status=status,
            )

        if not transaction_id:
            log.warning("webhook_missing_transaction_id")
            record_webhook_ignored("missing_transaction_id")
            return result("Webhook received without a transaction ID; nothing to update")

        log = log.bind(transaction_id=transaction_id)
        now = self._clock()

        async with self._uow as uow:
            existing = await uow.transactions.get_by_transaction_id(transaction_id)

            if existing is not None and not existing.can_transition_to(status):
                log.info("webhook_status_ignored", current_status=existing.status.value)
                record_webhook_ignored("stale_status")
                return result("Webhook acknowledged; transaction already completed")

            context = self._stored_context(existing).merged_with(custom_context)

            saved = await uow.transactions.upsert(
                self._build_transaction(notification, status, transaction_id, context, existing, now)
            )

        if saved.status != status:
            # A concurrent delivery completed the payment first.
            log.info("webhook_status_ignored", current_status=saved.status.value)
            record_webhook_ignored("stale_status")
            return result("Webhook acknowledged; transaction already completed")

        if status == TransactionStatus.COMPLETED and context.application_id:
            try:
                await self._apply_to_schedule(transaction_id, context, now, log)
            except Exception as e:
                # The payment status is already committed; the claim rolls back
                # with the plan so a redelivery can apply it.
                log.exception(
                    "schedule_update_failed",
                    application_id=context.application_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                record_schedule_payment("failed")

        log.info("webhook_processed")
        return result("Webhook processed successfully")

    async def _apply_to_schedule(
        self,
        transaction_id: str,
        context: PaymentContext,
        now: datetime,
        log,
    ) -> None:
        async with self._uow as uow:
            application = await uow.applications.get_by_id(context.application_id)

            if application is None or application.installment_plan is None:
                log.warning(
                    "schedule_update_skipped",
                    application_id=context.application_id,
                    reason="application_not_found" if application is None else "no_plan",
                )
                return

            if not await uow.transactions.mark_schedule_applied(transaction_id, now):
                log.info("schedule_already_updated", application_id=context.application_id)
                return

            paid_on: date = now.date()
            mode = application.installment_plan.apply_payment(
                paid_on,
                settlement=context.is_settlement,
                schedule_entry_id=context.payment_schedule_id,
            )
            record_schedule_payment(mode.value)

            if mode == ScheduleUpdateMode.NONE:
                log.warning(
                    "schedule_entry_not_found",
                    application_id=context.application_id,
                    payment_schedule_id=context.payment_schedule_id,
                )
                return

            await uow.applications.update(application)
            log.info(
                "schedule_updated",
                application_id=context.application_id,
                mode=mode.value,
                paid_count=application.installment_plan.paid_count,
            )

    @staticmethod
    def _stored_context(existing: Optional[PaymentTransaction]) -> PaymentContext:
        if existing is None:
            return PaymentContext()
        return PaymentContext(
            application_id=existing.application_id,
            payment_schedule_id=existing.payment_schedule_id,
            is_settlement=existing.is_settlement,
        )

    @staticmethod
    def _failure_reason(
        notification: WebhookNotification,
        status: TransactionStatus,
    ) -> Optional[str]:
        if status not in (TransactionStatus.FAILED, TransactionStatus.CANCELLED):
            return None
        reason = f"StatusId: {notification.status_id}"
        if notification.card_type:
            reason += f", CardType: {notification.card_type}"
        return reason

    def _build_transaction(
        self,
        notification: WebhookNotification,
        status: TransactionStatus,
        transaction_id: str,
        context: PaymentContext,
        existing: Optional[PaymentTransaction],
        now: datetime,
    ) -> PaymentTransaction:
        completed_at = None
        if status == TransactionStatus.COMPLETED:
            completed_at = (existing.completed_at if existing else None) or now

        transaction = PaymentTransaction(
            transaction_id=transaction_id,
            amount=notification.amount_value,
            status=status,
            payment_id=notification.payment_id,
            application_id=context.application_id,
            payment_schedule_id=context.payment_schedule_id,
            is_settlement=context.is_settlement,
            failure_reason=self._failure_reason(notification, status),
            completed_at=completed_at,
            updated_at=now,
        )
        if existing is not None:
            transaction.id = existing.id
            transaction.created_at = existing.created_at
            transaction.schedule_applied_at = existing.schedule_applied_at
        return transaction
