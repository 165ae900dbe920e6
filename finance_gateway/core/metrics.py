"""Prometheus metrics for the Finance Gateway service.

Metrics are organized into two categories:

Business Metrics (for Product/Finance):
- finance_payment_initiations_total: Payment initiations by outcome
- finance_webhook_events_total: Gateway notifications by canonical status
- finance_schedule_payments_total: Installment plan mutations by mode
- finance_plan_updates_total: Administrative plan edits by mode

Technical Metrics (for Engineering/SRE):
- finance_gateway_latency_seconds: SkipCash API latency by operation
- finance_gateway_failures_total: SkipCash API failures by type
- finance_webhook_signature_failures_total: Rejected webhook signatures
- finance_webhook_ignored_total: Acknowledged but unprocessed webhooks
- finance_verify_poll_total: Race-guard poll outcomes
- finance_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Product/Finance dashboards)
# =============================================================================

payment_initiations_total = Counter(
    "finance_payment_initiations_total",
    "Total number of payment initiations",
    ["outcome"],  # success, rejected, rate_limited, forbidden, gateway_error
)

webhook_events_total = Counter(
    "finance_webhook_events_total",
    "Gateway webhook notifications processed by canonical status",
    ["status"],
)

schedule_payments_total = Counter(
    "finance_schedule_payments_total",
    "Installment plan mutations triggered by completed payments",
    ["mode"],  # settlement, targeted, next_due, none
)

plan_updates_total = Counter(
    "finance_plan_updates_total",
    "Installment plan edits by mode",
    ["mode"],  # regenerate, shift, keep
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

gateway_latency = Histogram(
    "finance_gateway_latency_seconds",
    "SkipCash API latency in seconds",
    ["operation"],  # create_payment, get_payment
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failures = Counter(
    "finance_gateway_failures_total",
    "Total number of SkipCash API failures",
    ["operation", "error_type"],  # timeout, error, invalid_response
)

webhook_signature_failures = Counter(
    "finance_webhook_signature_failures_total",
    "Webhook notifications rejected for an invalid signature",
)

webhook_ignored_total = Counter(
    "finance_webhook_ignored_total",
    "Webhook notifications acknowledged without mutation",
    ["reason"],  # stale_status, missing_transaction_id, invalid_payload, not_configured, error
)

verify_poll_total = Counter(
    "finance_verify_poll_total",
    "Verification race-guard outcomes",
    ["outcome"],  # confirmed, timeout
)

http_requests_total = Counter(
    "finance_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "finance_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

@contextmanager
def track_gateway_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track SkipCash API latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        gateway_latency.labels(operation=operation).observe(duration)


def record_payment_initiation(outcome: str) -> None:
    payment_initiations_total.labels(outcome=outcome).inc()


def record_gateway_failure(operation: str, error_type: str) -> None:
    """Record a SkipCash API failure."""
    gateway_failures.labels(operation=operation, error_type=error_type).inc()


def record_webhook_event(status: str) -> None:
    webhook_events_total.labels(status=status).inc()


def record_webhook_signature_failure() -> None:
    webhook_signature_failures.inc()


def record_webhook_ignored(reason: str) -> None:
    """Record a webhook that was acknowledged but not applied."""
    webhook_ignored_total.labels(reason=reason).inc()


def record_verify_poll(confirmed: bool) -> None:
    verify_poll_total.labels(outcome="confirmed" if confirmed else "timeout").inc()


def record_schedule_payment(mode: str) -> None:
    schedule_payments_total.labels(mode=mode).inc()


def record_plan_update(mode: str) -> None:
    plan_updates_total.labels(mode=mode).inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
