"""
Integration tests for POST /v1/payments.

These tests verify:
1. A valid request is signed, sent to SkipCash and normalized
2. Missing fields are all reported before the gateway is called
3. Missing credentials and rate limits are rejected up front
4. Unidentified or unpermitted callers never reach the gateway
5. The pending transaction is recorded, best effort
6. CORS preflight answers without a body
"""

import json

import pytest
from httpx import AsyncClient

from finance_gateway.domain.entities import PaymentCaller, TransactionStatus
from finance_gateway.domain.exceptions import GatewayAPIException
from finance_gateway.service.skipcash import compute_signature


# =============================================================================
# Successful Initiation
# =============================================================================

class TestPaymentInitiation:
    """Tests for the happy path of POST /v1/payments."""

    @pytest.mark.asyncio
    async def test_returns_normalized_payment_url_and_id(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
    ):
        response = await client.post("/v1/payments", json=payment_request)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True

        payment_id = data["data"]["paymentId"]
        assert payment_id in mock_skipcash_client.payments
        assert data["data"]["paymentUrl"] == f"https://skipcash.test/pay/{payment_id}"
        # Gateway field names are kept alongside the normalized ones.
        assert data["data"]["payUrl"] == data["data"]["paymentUrl"]

    @pytest.mark.asyncio
    async def test_request_is_signed_over_the_ordered_fields(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
        credentials,
    ):
        await client.post("/v1/payments", json=payment_request)

        payload, signature = mock_skipcash_client.created[0]
        expected = compute_signature(
            [
                ("Uid", payload["Uid"]),
                ("KeyId", credentials.key_id),
                ("Amount", "1000"),
                ("FirstName", "Sara"),
                ("LastName", "Haddad"),
                ("Phone", "+97455512345"),
                ("Email", "sara@example.com"),
                ("TransactionId", payment_request["transactionId"]),
            ],
            credentials.secret_key,
        )

        assert signature == expected
        assert payload["KeyId"] == credentials.key_id
        assert payload["Street"] == ""
        assert "ReturnUrl" not in payload

    @pytest.mark.asyncio
    async def test_every_request_gets_a_fresh_uid(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
    ):
        await client.post("/v1/payments", json=payment_request)
        await client.post(
            "/v1/payments",
            json={**payment_request, "transactionId": "txn-second"},
        )

        uids = {payload["Uid"] for payload, _ in mock_skipcash_client.created}
        assert len(uids) == 2

    @pytest.mark.asyncio
    async def test_records_pending_transaction_with_context(
        self,
        client: AsyncClient,
        payment_request: dict,
        load_transaction,
        mock_skipcash_client,
    ):
        body = {
            **payment_request,
            "applicationId": "550e8400-e29b-41d4-a716-446655440000",
            "paymentScheduleId": "entry-2",
        }

        response = await client.post("/v1/payments", json=body)
        assert response.status_code == 200

        stored = await load_transaction(payment_request["transactionId"])
        assert stored is not None
        assert stored.status == TransactionStatus.PENDING
        assert stored.payment_id == response.json()["data"]["paymentId"]
        assert stored.application_id == "550e8400-e29b-41d4-a716-446655440000"
        assert stored.payment_schedule_id == "entry-2"

        payload, _ = mock_skipcash_client.created[0]
        assert json.loads(payload["Custom1"]) == {
            "applicationId": "550e8400-e29b-41d4-a716-446655440000",
            "paymentScheduleId": "entry-2",
        }

    @pytest.mark.asyncio
    async def test_database_failure_does_not_block_redirect(
        self,
        client_with_failing_database: AsyncClient,
        payment_request: dict,
    ):
        """The payment already exists at the gateway; the payer must still be redirected."""
        response = await client_with_failing_database.post(
            "/v1/payments",
            json=payment_request,
        )

        assert response.status_code == 200
        assert response.json()["data"]["paymentUrl"]


# =============================================================================
# Rejected Requests
# =============================================================================

class TestPaymentValidation:
    """Tests for requests rejected before or by the gateway."""

    @pytest.mark.asyncio
    async def test_missing_fields_are_listed_together(
        self,
        client: AsyncClient,
        mock_skipcash_client,
    ):
        response = await client.post(
            "/v1/payments",
            json={
                "amount": 1000,
                "firstName": "Sara",
                "lastName": "Haddad",
                "transactionId": "txn-missing",
            },
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Missing required payment fields: phone, email"
        assert data["code"] == "INVALID_PAYMENT_REQUEST"
        assert mock_skipcash_client.created == []

    @pytest.mark.asyncio
    async def test_zero_amount_counts_as_missing(
        self,
        client: AsyncClient,
        payment_request: dict,
    ):
        response = await client.post(
            "/v1/payments",
            json={**payment_request, "amount": 0},
        )

        assert response.status_code == 400
        assert "amount" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_malformed_amount_is_a_bad_request(
        self,
        client: AsyncClient,
        payment_request: dict,
    ):
        response = await client.post(
            "/v1/payments",
            json={**payment_request, "amount": "lots"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_before_any_request(
        self,
        unconfigured_client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
    ):
        response = await unconfigured_client.post("/v1/payments", json=payment_request)

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "GATEWAY_NOT_CONFIGURED"
        assert "SKIPCASH_SECRET_KEY" in data["error"]
        assert "SKIPCASH_KEY_ID" in data["error"]
        assert "SKIPCASH_CLIENT_ID" in data["error"]
        assert mock_skipcash_client.created == []

    @pytest.mark.asyncio
    async def test_gateway_error_message_is_surfaced(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
        load_transaction,
    ):
        mock_skipcash_client.fail_with = GatewayAPIException(
            message="Invalid phone number",
            status_code=400,
        )

        response = await client.post("/v1/payments", json=payment_request)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid phone number"
        assert await load_transaction(payment_request["transactionId"]) is None

    @pytest.mark.asyncio
    async def test_fourth_request_within_a_minute_is_rate_limited(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
    ):
        for index in range(3):
            response = await client.post(
                "/v1/payments",
                json={**payment_request, "transactionId": f"txn-limit-{index}"},
            )
            assert response.status_code == 200

        response = await client.post(
            "/v1/payments",
            json={**payment_request, "transactionId": "txn-limit-3"},
        )

        assert response.status_code == 429
        assert response.json()["error"] == (
            "Too many payment requests. Please wait a minute before trying again."
        )
        assert len(mock_skipcash_client.created) == 3

    @pytest.mark.asyncio
    async def test_credit_topup_price_mismatch_is_rejected(
        self,
        client: AsyncClient,
        payment_request: dict,
    ):
        response = await client.post(
            "/v1/payments",
            json={
                **payment_request,
                "amount": 12,
                "custom1": json.dumps({"type": "credit_topup", "credits": 10}),
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Price validation failed: expected 10 QAR for 10 credits, got 12 QAR"
        )

    @pytest.mark.asyncio
    async def test_credit_topup_at_list_price_is_accepted(
        self,
        client: AsyncClient,
        payment_request: dict,
        mock_skipcash_client,
    ):
        custom1 = json.dumps({"type": "credit_topup", "credits": 10})

        response = await client.post(
            "/v1/payments",
            json={**payment_request, "amount": 10, "custom1": custom1},
        )

        assert response.status_code == 200
        payload, _ = mock_skipcash_client.created[0]
        assert payload["Custom1"] == custom1


# =============================================================================
# Caller and Permission Checks
# =============================================================================

class TestPaymentPermissions:
    """Tests for caller identification, rate limiting and the permission gate."""

    @pytest.mark.asyncio
    async def test_unidentified_caller_is_rejected(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
        mock_skipcash_client,
    ):
        permission_policy.caller = None

        response = await client.post("/v1/payments", json=payment_request)

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "UNAUTHORIZED"
        assert data["error"] == "Unauthorized: missing Authorization header"
        assert mock_skipcash_client.created == []

    @pytest.mark.asyncio
    async def test_authorization_header_reaches_the_policy(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
    ):
        response = await client.post(
            "/v1/payments",
            json=payment_request,
            headers={"Authorization": "Bearer session-token"},
        )

        assert response.status_code == 200
        assert permission_policy.authorizations == ["Bearer session-token"]

    @pytest.mark.asyncio
    async def test_disabled_application_is_forbidden(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
        mock_skipcash_client,
        load_transaction,
    ):
        permission_policy.allowed = False

        response = await client.post(
            "/v1/payments",
            json={**payment_request, "applicationId": "app-1"},
        )

        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "PAYMENTS_DISABLED"
        assert data["error"].startswith("Payments are disabled for this application")
        assert permission_policy.checked == ["app-1"]
        assert mock_skipcash_client.created == []
        assert await load_transaction(payment_request["transactionId"]) is None

    @pytest.mark.asyncio
    async def test_application_from_custom1_is_checked(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
    ):
        permission_policy.allowed = False

        response = await client.post(
            "/v1/payments",
            json={**payment_request, "custom1": json.dumps({"applicationId": "app-9"})},
        )

        assert response.status_code == 403
        assert permission_policy.checked == ["app-9"]

    @pytest.mark.asyncio
    async def test_top_up_without_payable_application_is_forbidden(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
    ):
        permission_policy.allowed = False

        response = await client.post("/v1/payments", json=payment_request)

        assert response.status_code == 403
        assert response.json()["error"] == (
            "Payments are disabled (no payable application/company found for this user)."
        )
        assert permission_policy.checked == [None]

    @pytest.mark.asyncio
    async def test_admins_skip_rate_limit_and_permission(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
        mock_skipcash_client,
    ):
        permission_policy.caller = PaymentCaller(user_id="admin-1", is_admin=True)
        permission_policy.allowed = False

        for index in range(5):
            response = await client.post(
                "/v1/payments",
                json={**payment_request, "transactionId": f"txn-admin-{index}"},
            )
            assert response.status_code == 200

        assert permission_policy.checked == []
        assert len(mock_skipcash_client.created) == 5

    @pytest.mark.asyncio
    async def test_rate_limit_is_keyed_by_caller(
        self,
        client: AsyncClient,
        permission_policy,
        payment_request: dict,
    ):
        for index in range(3):
            await client.post(
                "/v1/payments",
                json={
                    **payment_request,
                    "email": f"payer{index}@example.com",
                    "transactionId": f"txn-caller-{index}",
                },
            )

        response = await client.post(
            "/v1/payments",
            json={**payment_request, "email": "new@example.com", "transactionId": "txn-caller-3"},
        )
        assert response.status_code == 429

        permission_policy.caller = PaymentCaller(user_id="user-2")
        response = await client.post(
            "/v1/payments",
            json={**payment_request, "transactionId": "txn-caller-4"},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_requests_do_not_count_against_the_limit(
        self,
        client: AsyncClient,
        payment_request: dict,
    ):
        incomplete = {k: v for k, v in payment_request.items() if k != "email"}

        statuses = [
            (await client.post("/v1/payments", json=incomplete)).status_code
            for _ in range(5)
        ]

        assert statuses == [400] * 5
        response = await client.post("/v1/payments", json=incomplete)
        assert response.json()["error"] == "Missing required payment fields: email"

        response = await client.post("/v1/payments", json=payment_request)
        assert response.status_code == 200


# =============================================================================
# CORS
# =============================================================================

class TestPaymentCors:
    """Tests for browser preflight handling."""

    @pytest.mark.asyncio
    async def test_preflight_returns_204_without_body(
        self,
        client: AsyncClient,
    ):
        response = await client.options(
            "/v1/payments",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-max-age"] == "86400"
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.asyncio
    async def test_plain_options_returns_204(
        self,
        client: AsyncClient,
    ):
        response = await client.options("/v1/payments/webhook")

        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_responses_allow_any_origin(
        self,
        client: AsyncClient,
        payment_request: dict,
    ):
        response = await client.post(
            "/v1/payments",
            json=payment_request,
            headers={"Origin": "https://app.example.com"},
        )

        assert response.headers["access-control-allow-origin"] == "*"
