"""
Unit Tests for SkipCash request signing.

These tests verify:
1. Signatures are deterministic base64 HMAC-SHA256 over ordered Key=Value pairs
2. Payment signatures exclude address fields and include optional fields only when set
3. Webhook fields keep the gateway's rendering of JSON values
4. Amounts are formatted without trailing zeros
"""

import base64
import hashlib
import hmac
import json

import pytest

from finance_gateway.domain.entities import GatewayPaymentRequest, WebhookNotification
from finance_gateway.domain.exceptions import InvalidWebhookPayloadException
from finance_gateway.service.skipcash import (
    build_signature_string,
    compute_signature,
    format_amount,
    lookup_signature_fields,
    payment_signature_fields,
    verify_signature,
    webhook_signature_fields,
)


SECRET = "merchant-secret"


def make_request(**overrides) -> GatewayPaymentRequest:
    fields = {
        "uid": "5f0c7f0e-0000-4000-8000-000000000001",
        "key_id": "key-1",
        "amount": "1000",
        "first_name": "Sara",
        "last_name": "Haddad",
        "phone": "+97455512345",
        "email": "sara@example.com",
    }
    fields.update(overrides)
    return GatewayPaymentRequest(**fields)


# =============================================================================
# HMAC Tests
# =============================================================================

class TestComputeSignature:
    """Tests for compute_signature() and verify_signature()."""

    def test_signature_matches_reference_hmac(self):
        fields = [("PaymentId", "pay-1"), ("KeyId", "key-1")]
        expected = base64.b64encode(
            hmac.new(
                SECRET.encode("utf-8"),
                b"PaymentId=pay-1,KeyId=key-1",
                hashlib.sha256,
            ).digest()
        ).decode("ascii")

        assert compute_signature(fields, SECRET) == expected

    def test_signature_is_deterministic(self):
        fields = [("A", "1"), ("B", "2")]

        assert compute_signature(fields, SECRET) == compute_signature(fields, SECRET)

    def test_field_order_changes_signature(self):
        assert compute_signature([("A", "1"), ("B", "2")], SECRET) != compute_signature(
            [("B", "2"), ("A", "1")], SECRET
        )

    def test_build_signature_string(self):
        assert build_signature_string([("A", "1"), ("B", "")]) == "A=1,B="

    def test_verify_accepts_matching_signature(self):
        fields = [("A", "1")]
        signature = compute_signature(fields, SECRET)

        assert verify_signature(fields, SECRET, signature) is True

    def test_verify_compares_the_presented_bytes_exactly(self):
        fields = [("A", "1")]
        signature = compute_signature(fields, SECRET)

        assert verify_signature(fields, SECRET, f" {signature}") is False
        assert verify_signature(fields, SECRET, f"{signature}\n") is False
        assert verify_signature(fields, SECRET, signature.swapcase()) is False

    def test_verify_rejects_other_key(self):
        fields = [("A", "1")]
        signature = compute_signature(fields, "other-secret")

        assert verify_signature(fields, SECRET, signature) is False

    @pytest.mark.parametrize("presented", [None, ""])
    def test_verify_rejects_missing_signature(self, presented):
        assert verify_signature([("A", "1")], SECRET, presented) is False

    def test_verify_without_secret_is_rejected(self):
        fields = [("A", "1")]

        assert verify_signature(fields, "", compute_signature(fields, "")) is False


# =============================================================================
# Field Selection Tests
# =============================================================================

class TestSignatureFields:
    """Tests for the signed field lists."""

    def test_payment_fields_in_gateway_order(self):
        fields = payment_signature_fields(make_request(street="1 Main St", city="Doha"))

        assert [key for key, _ in fields] == [
            "Uid",
            "KeyId",
            "Amount",
            "FirstName",
            "LastName",
            "Phone",
            "Email",
        ]

    def test_payment_fields_include_optional_values_when_set(self):
        fields = payment_signature_fields(
            make_request(transaction_id="txn-1", custom1='{"applicationId":"a"}')
        )

        assert fields[-2:] == [
            ("TransactionId", "txn-1"),
            ("Custom1", '{"applicationId":"a"}'),
        ]

    def test_payment_fields_skip_blank_optional_values(self):
        fields = payment_signature_fields(make_request(transaction_id="  ", custom1=""))

        assert "TransactionId" not in dict(fields)
        assert "Custom1" not in dict(fields)

    def test_lookup_fields(self):
        assert lookup_signature_fields("pay-1", "key-1") == [
            ("PaymentId", "pay-1"),
            ("KeyId", "key-1"),
        ]

    def test_webhook_fields_render_json_values(self):
        notification = WebhookNotification.from_payload(
            {
                "PaymentId": "pay-1",
                "Amount": 100.0,
                "StatusId": 2,
                "TransactionId": "txn-1",
                "VisaId": "visa-9",
            }
        )

        assert webhook_signature_fields(notification) == [
            ("PaymentId", "pay-1"),
            ("Amount", "100"),
            ("StatusId", "2"),
            ("TransactionId", "txn-1"),
            ("VisaId", "visa-9"),
        ]

    def test_webhook_fields_keep_textual_amount(self):
        notification = WebhookNotification.from_payload(
            {"PaymentId": "pay-1", "Amount": "100.00", "StatusId": "2"}
        )

        assert webhook_signature_fields(notification) == [
            ("PaymentId", "pay-1"),
            ("Amount", "100.00"),
            ("StatusId", "2"),
        ]

    def test_webhook_body_requires_core_fields(self):
        with pytest.raises(InvalidWebhookPayloadException) as exc:
            WebhookNotification.from_body(json.dumps({"Amount": "1"}))

        assert exc.value.message == (
            "Missing required fields in webhook payload: PaymentId, StatusId"
        )

    def test_webhook_body_must_be_an_object(self):
        with pytest.raises(InvalidWebhookPayloadException):
            WebhookNotification.from_body("[1, 2]")


# =============================================================================
# Amount Formatting Tests
# =============================================================================

class TestFormatAmount:
    """Tests for format_amount()."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("1000.00", "1000"),
            ("10.50", "10.5"),
            (10, "10"),
            ("0.25", "0.25"),
            ("1E+3", "1000"),
        ],
    )
    def test_format_amount(self, amount, expected):
        assert format_amount(amount) == expected
