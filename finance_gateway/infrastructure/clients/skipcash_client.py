"""HTTP implementation of PaymentGatewayClient for the SkipCash API."""

import asyncio
import json
from typing import Any, Dict, Optional

import httpx
import structlog

from finance_gateway.core.config import settings
from finance_gateway.core.metrics import record_gateway_failure, track_gateway_latency
from finance_gateway.core.retry import RetryPolicy
from finance_gateway.domain.exceptions import GatewayAPIException, GatewayTimeoutException
from finance_gateway.domain.interfaces import PaymentGatewayClient

logger = structlog.get_logger(__name__)

PAYMENTS_PATH = "/api/v1/payments"


def extract_error_message(body: Any) -> Optional[str]:
    """Pull a human-readable message out of a SkipCash error body."""
    if not isinstance(body, dict):
        return None

    message = body.get("message")
    if isinstance(message, str) and message:
        return message

    error = body.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict):
        for key in ("message", "error", "errorMessage", "Message", "Error"):
            nested = error.get(key)
            if nested:
                return str(nested)
        return json.dumps(error)

    error_message = body.get("errorMessage")
    if isinstance(error_message, str) and error_message:
        return error_message

    return None


class HttpSkipCashClient(PaymentGatewayClient):
    """
    HTTP client for the SkipCash API.

    Every call carries an explicit timeout. Payment look-ups are
    idempotent and retried on timeout with exponential backoff;
    payment creation is never retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout or settings.skipcash_timeout
        self._retry_policy = RetryPolicy(
            max_attempts=max_retries or settings.skipcash_max_retries,
            delay=0.1,
            backoff=2.0,
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def create_payment(
        self,
        payload: Dict[str, Any],
        signature: str,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{PAYMENTS_PATH}"
        headers = {"Authorization": signature, "Content-Type": "application/json"}

        try:
            with track_gateway_latency("create_payment"):
                async with self._client() as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException:
            record_gateway_failure("create_payment", "timeout")
            logger.warning("skipcash_create_payment_timeout", timeout=self._timeout)
            raise GatewayTimeoutException()
        except httpx.HTTPError as e:
            record_gateway_failure("create_payment", "error")
            raise GatewayAPIException(f"SkipCash API request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            record_gateway_failure("create_payment", "invalid_response")
            raise GatewayAPIException(
                message=(
                    "SkipCash API returned invalid response: "
                    f"{response.status_code} {response.reason_phrase}"
                ),
                status_code=response.status_code,
            )

        if response.is_error:
            record_gateway_failure("create_payment", "error")
            message = (
                extract_error_message(body)
                or f"Payment request failed: {response.status_code} {response.reason_phrase}"
            )
            logger.error(
                "skipcash_create_payment_failed",
                status_code=response.status_code,
                message=message,
            )
            raise GatewayAPIException(message=message, status_code=response.status_code)

        return body if isinstance(body, dict) else {}

    async def get_payment(
        self,
        payment_id: str,
        signature: str,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{PAYMENTS_PATH}/{payment_id}"
        headers = {"Authorization": signature, "Content-Type": "application/json"}

        delays = list(self._retry_policy.delays())

        for attempt in range(self._retry_policy.max_attempts):
            try:
                with track_gateway_latency("get_payment"):
                    async with self._client() as client:
                        response = await client.get(url, headers=headers)
                return self._parse_lookup(response, payment_id)

            except httpx.TimeoutException:
                record_gateway_failure("get_payment", "timeout")
                logger.warning(
                    "skipcash_get_payment_timeout",
                    payment_id=payment_id,
                    attempt=attempt + 1,
                    max_retries=self._retry_policy.max_attempts,
                )
            except httpx.HTTPError as e:
                record_gateway_failure("get_payment", "error")
                raise GatewayAPIException(f"SkipCash API request failed: {e}") from e

            if attempt < len(delays):
                await asyncio.sleep(delays[attempt])

        raise GatewayTimeoutException()

    def _parse_lookup(self, response: httpx.Response, payment_id: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            record_gateway_failure("get_payment", "invalid_response")
            raise GatewayAPIException(
                message=(
                    "Invalid response from SkipCash API: "
                    f"{response.status_code} {response.reason_phrase}"
                ),
                status_code=response.status_code,
            )

        if not response.is_error:
            return body if isinstance(body, dict) else {}

        record_gateway_failure("get_payment", "error")
        extracted = extract_error_message(body)

        if response.status_code == 403 or (extracted or "").lower() == "forbidden":
            message = (
                "Payment verification failed: Access denied. This may mean the "
                "payment ID doesn't exist, has expired, or belongs to a different "
                f"account. Payment ID: {payment_id}"
            )
        elif response.status_code == 404:
            message = (
                "Payment not found. The payment ID may be invalid or the payment "
                f"may have been deleted. Payment ID: {payment_id}"
            )
        elif response.status_code == 401:
            message = "Authentication failed. Please check SkipCash credentials."
        else:
            message = extracted or (
                f"SkipCash API error ({response.status_code}): {json.dumps(body)}"
            )

        logger.error(
            "skipcash_get_payment_failed",
            payment_id=payment_id,
            status_code=response.status_code,
            message=message,
        )
        raise GatewayAPIException(message=message, status_code=response.status_code)
