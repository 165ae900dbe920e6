"""Value objects exchanged with the SkipCash payment gateway."""

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from finance_gateway.domain.exceptions import InvalidWebhookPayloadException


def wire_text(value: Any) -> str:
    """
    Render a JSON value the way the gateway renders it when signing.

    Integral numbers lose their fraction (100.0 -> "100") and
    booleans are lowercase.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class GatewayPaymentRequest:
    """A signed payment creation request in the gateway's field order."""

    uid: str
    key_id: str
    amount: str
    first_name: str
    last_name: str
    phone: str
    email: str
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    transaction_id: str = ""
    custom1: str = ""
    subject: Optional[str] = None
    description: Optional[str] = None
    return_url: Optional[str] = None
    webhook_url: Optional[str] = None
    only_debit_card: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "Uid": self.uid,
            "KeyId": self.key_id,
            "Amount": self.amount,
            "FirstName": self.first_name,
            "LastName": self.last_name,
            "Phone": self.phone,
            "Email": self.email,
            "Street": self.street,
            "City": self.city,
            "State": self.state,
            "Country": self.country,
            "PostalCode": self.postal_code,
            "TransactionId": self.transaction_id,
            "Custom1": self.custom1,
        }
        optional = {
            "Subject": self.subject,
            "Description": self.description,
            "ReturnUrl": self.return_url,
            "WebhookUrl": self.webhook_url,
            "OnlyDebitCard": self.only_debit_card,
        }
        payload.update({k: v for k, v in optional.items() if v is not None and v != ""})
        return payload


@dataclass(frozen=True)
class WebhookNotification:
    """
    A payment status notification pushed by the gateway.

    Text fields keep the exact rendering used for signature checks.
    """

    payment_id: str
    amount: str
    status_id: str
    transaction_id: Optional[str] = None
    custom1: Optional[str] = None
    visa_id: Optional[str] = None
    card_type: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def status_code(self) -> Optional[int]:
        try:
            return int(self.status_id)
        except ValueError:
            return None

    @property
    def amount_value(self) -> Decimal:
        try:
            return Decimal(self.amount)
        except InvalidOperation:
            return Decimal("0")

    @classmethod
    def from_body(cls, body: bytes | str) -> "WebhookNotification":
        """
        Parse a raw request body.

        Raises:
            InvalidWebhookPayloadException: If the body is not a JSON object
                or lacks PaymentId, Amount or StatusId
        """
        try:
            payload = json.loads(body)
        except (ValueError, TypeError) as e:
            raise InvalidWebhookPayloadException(f"Invalid JSON payload: {e}") from e

        if not isinstance(payload, dict):
            raise InvalidWebhookPayloadException("Webhook payload must be a JSON object")

        return cls.from_payload(payload)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WebhookNotification":
        missing = [
            name
            for name in ("PaymentId", "Amount", "StatusId")
            if payload.get(name) is None or payload.get(name) == ""
        ]
        if missing:
            raise InvalidWebhookPayloadException(
                "Missing required fields in webhook payload: " + ", ".join(missing)
            )

        def optional(name: str) -> Optional[str]:
            value = payload.get(name)
            if value is None or value == "":
                return None
            return wire_text(value)

        return cls(
            payment_id=wire_text(payload["PaymentId"]),
            amount=wire_text(payload["Amount"]),
            status_id=wire_text(payload["StatusId"]),
            transaction_id=optional("TransactionId"),
            custom1=optional("Custom1"),
            visa_id=optional("VisaId"),
            card_type=optional("CardType"),
            raw=payload,
        )
