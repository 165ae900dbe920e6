"""
HMAC-SHA256 request signing for the SkipCash API.

The gateway signs a comma-joined list of `Key=Value` pairs in a fixed
field order with the merchant secret and expects the base64 digest,
unprefixed, in the Authorization header.
"""

import base64
import hashlib
import hmac
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from finance_gateway.domain.entities import GatewayPaymentRequest, WebhookNotification

SignatureFields = List[Tuple[str, str]]


def build_signature_string(fields: Sequence[Tuple[str, str]]) -> str:
    return ",".join(f"{key}={value}" for key, value in fields)


def compute_signature(fields: Sequence[Tuple[str, str]], secret: str) -> str:
    """
    Sign ordered fields with the secret's raw UTF-8 bytes.

    Returns:
        Base64-encoded HMAC-SHA256 digest
    """
    message = build_signature_string(fields)
    digest = hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(
    fields: Sequence[Tuple[str, str]],
    secret: str,
    presented: Optional[str],
) -> bool:
    """Constant-time comparison of a presented signature against the recomputed one."""
    if not presented or not secret:
        return False

    expected = compute_signature(fields, secret)
    return hmac.compare_digest(
        expected.encode("utf-8"),
        presented.encode("utf-8"),
    )


def format_amount(amount: Decimal | int | float | str) -> str:
    """Plain decimal notation without trailing zeros: 1000.00 -> "1000", 10.50 -> "10.5"."""
    value = Decimal(str(amount)).normalize()
    if value == value.to_integral_value():
        value = value.quantize(Decimal("1"))
    return format(value, "f")


def payment_signature_fields(request: GatewayPaymentRequest) -> SignatureFields:
    """Fields signed on payment creation; address and display fields are excluded."""
    fields: SignatureFields = [
        ("Uid", request.uid),
        ("KeyId", request.key_id),
        ("Amount", request.amount),
        ("FirstName", request.first_name),
        ("LastName", request.last_name),
        ("Phone", request.phone),
        ("Email", request.email),
    ]
    if request.transaction_id and request.transaction_id.strip():
        fields.append(("TransactionId", request.transaction_id))
    if request.custom1 and request.custom1.strip():
        fields.append(("Custom1", request.custom1))
    return fields


def lookup_signature_fields(payment_id: str, key_id: str) -> SignatureFields:
    return [("PaymentId", payment_id), ("KeyId", key_id)]


def webhook_signature_fields(notification: WebhookNotification) -> SignatureFields:
    fields: SignatureFields = [
        ("PaymentId", notification.payment_id),
        ("Amount", notification.amount),
        ("StatusId", notification.status_id),
    ]
    if notification.transaction_id:
        fields.append(("TransactionId", notification.transaction_id))
    if notification.custom1:
        fields.append(("Custom1", notification.custom1))
    if notification.visa_id:
        fields.append(("VisaId", notification.visa_id))
    return fields
