"""Payment gateway domain exceptions."""

from typing import Iterable

from .base import DomainException


class GatewayConfigurationException(DomainException):
    """Raised when required gateway settings are not configured."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(
            message=(
                "SkipCash credentials not configured. Missing: "
                + ", ".join(self.missing)
            ),
            code="GATEWAY_NOT_CONFIGURED",
        )


class InvalidPaymentRequestException(DomainException):
    """Raised when a payment request fails validation."""

    def __init__(self, message: str, missing_fields: Iterable[str] = ()):
        super().__init__(message=message, code="INVALID_PAYMENT_REQUEST")
        self.missing_fields = list(missing_fields)


class RateLimitExceededException(DomainException):
    """Raised when a payer initiates too many payments in the window."""

    def __init__(self, limit: int, window_seconds: float):
        super().__init__(
            message="Too many payment requests. Please wait a minute before trying again.",
            code="RATE_LIMIT_EXCEEDED",
        )
        self.limit = limit
        self.window_seconds = window_seconds


class GatewayAPIException(DomainException):
    """Raised when the SkipCash API returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="GATEWAY_API_ERROR",
        )
        self.status_code = status_code


class GatewayTimeoutException(GatewayAPIException):
    """Raised when the SkipCash API times out."""

    def __init__(self):
        super().__init__(
            message="SkipCash API request timed out",
            status_code=None,
        )
        self.code = "GATEWAY_TIMEOUT"


class TransactionNotFoundException(DomainException):
    """Raised when a payment transaction is not found."""

    def __init__(self, transaction_id: str):
        super().__init__(
            message=f"Transaction not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
        )
        self.transaction_id = transaction_id


class InvalidWebhookPayloadException(DomainException):
    """Raised when a gateway notification cannot be read."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_WEBHOOK_PAYLOAD")


class PaymentUnauthorizedException(DomainException):
    """Raised when a payment is initiated without an authenticated caller."""

    def __init__(self, message: str = "Unauthorized: missing Authorization header"):
        super().__init__(message=message, code="UNAUTHORIZED")


class PaymentNotPermittedException(DomainException):
    """Raised when the caller may not pay for the application."""

    def __init__(self, application_id: str | None = None):
        if application_id:
            message = (
                "Payments are disabled for this application "
                "(company not assigned / canPay disabled / inactive)."
            )
        else:
            message = "Payments are disabled (no payable application/company found for this user)."
        super().__init__(message=message, code="PAYMENTS_DISABLED")
        self.application_id = application_id
