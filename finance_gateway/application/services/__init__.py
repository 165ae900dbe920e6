"""Application services (use cases)."""

from .payment_service import PaymentService
from .plan_service import PlanService
from .webhook_service import WebhookService

__all__ = [
    "PaymentService",
    "PlanService",
    "WebhookService",
]
