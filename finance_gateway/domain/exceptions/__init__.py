"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .payment import (
    GatewayAPIException,
    GatewayConfigurationException,
    GatewayTimeoutException,
    InvalidPaymentRequestException,
    InvalidWebhookPayloadException,
    PaymentNotPermittedException,
    PaymentUnauthorizedException,
    RateLimitExceededException,
    TransactionNotFoundException,
)
from .plan import (
    ApplicationNotFoundException,
    InvalidPlanUpdateException,
    PlanNotFoundException,
)

__all__ = [
    "DomainException",
    "GatewayAPIException",
    "GatewayConfigurationException",
    "GatewayTimeoutException",
    "InvalidPaymentRequestException",
    "InvalidWebhookPayloadException",
    "PaymentNotPermittedException",
    "PaymentUnauthorizedException",
    "RateLimitExceededException",
    "TransactionNotFoundException",
    "ApplicationNotFoundException",
    "InvalidPlanUpdateException",
    "PlanNotFoundException",
]
