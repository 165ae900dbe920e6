"""Data transfer objects for payment operations."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from finance_gateway.domain.entities import TransactionStatus


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float, Decimal)):
        return value == 0
    return False


@dataclass(frozen=True)
class PaymentInitiationRequest:
    """Input data for starting a hosted card payment."""

    REQUIRED_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("amount", "amount"),
        ("firstName", "first_name"),
        ("lastName", "last_name"),
        ("phone", "phone"),
        ("email", "email"),
        ("transactionId", "transaction_id"),
    )

    amount: Optional[Decimal] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    transaction_id: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    return_url: Optional[str] = None
    webhook_url: Optional[str] = None
    only_debit_card: Optional[bool] = None
    custom1: Optional[str] = None
    application_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None
    is_settlement: bool = False

    def missing_fields(self) -> List[str]:
        """Wire names of required fields that are absent, blank or zero."""
        return [
            wire_name
            for wire_name, attr in self.REQUIRED_FIELDS
            if _is_blank(getattr(self, attr))
        ]

    def validate(self) -> List[str]:
        errors = []

        missing = self.missing_fields()
        if missing:
            errors.append("Missing required payment fields: " + ", ".join(missing))

        if self.amount is not None and self.amount < 0:
            errors.append("amount must be positive")

        return errors


@dataclass(frozen=True)
class PaymentInitiationResponse:
    """Normalized gateway answer to a payment creation."""

    payment_url: Optional[str]
    payment_id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_gateway(cls, body: Dict[str, Any]) -> "PaymentInitiationResponse":
        """
        Normalize `payUrl`/`id` to `paymentUrl`/`paymentId`.

        The gateway's own field names are kept alongside.
        """
        result = body.get("resultObj") or {}
        payment_url = result.get("payUrl") or result.get("paymentUrl")
        payment_id = result.get("id") or result.get("paymentId")

        data = dict(result)
        data.update(
            {
                "paymentUrl": payment_url,
                "paymentId": payment_id,
                "payUrl": result.get("payUrl"),
                "id": result.get("id"),
            }
        )

        return cls(
            payment_url=payment_url,
            payment_id=str(payment_id) if payment_id is not None else None,
            data=data,
        )


@dataclass(frozen=True)
class PaymentVerificationRequest:
    payment_id: Optional[str] = None
    transaction_id: Optional[str] = None

    def validate(self) -> List[str]:
        if _is_blank(self.payment_id) and _is_blank(self.transaction_id):
            return ["Payment ID or Transaction ID is required"]
        return []


@dataclass(frozen=True)
class PaymentVerificationResponse:
    """
    Current state of a payment.

    `source` is "gateway" when the gateway was queried and "storage"
    when the stored transaction answered. `webhook_confirmed` is only
    set when the gateway reported completion.
    """

    status: TransactionStatus
    status_id: int
    source: str
    payment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    webhook_confirmed: Optional[bool] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload = dict(self.data)
        payload.update(
            {
                "status": self.status.value,
                "statusId": self.status_id,
                "paymentId": self.payment_id,
                "transactionId": self.transaction_id,
                "source": self.source,
            }
        )
        if self.webhook_confirmed is not None:
            payload["webhookConfirmed"] = self.webhook_confirmed
        return payload


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of a webhook delivery; always rendered as an HTTP response."""

    http_status: int
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    payment_id: Optional[str] = None
    status_id: Optional[str] = None
    status: Optional[TransactionStatus] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.message is not None:
            body["message"] = self.message
        if self.error is not None:
            body["error"] = self.error
        if self.payment_id is not None:
            body["paymentId"] = self.payment_id
        if self.status_id is not None:
            body["statusId"] = self.status_id
        if self.status is not None:
            body["status"] = self.status.value
        return body
