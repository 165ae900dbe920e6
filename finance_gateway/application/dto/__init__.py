"""Data Transfer Objects for the application layer."""

from .payment import (
    PaymentInitiationRequest,
    PaymentInitiationResponse,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
    WebhookResult,
)
from .plan import (
    PlanResponse,
    PlanUpdateRequest,
    ScheduleEntryDTO,
    SchedulePreviewResponse,
    ScheduleRequest,
)

__all__ = [
    "PaymentInitiationRequest",
    "PaymentInitiationResponse",
    "PaymentVerificationRequest",
    "PaymentVerificationResponse",
    "WebhookResult",
    "PlanResponse",
    "PlanUpdateRequest",
    "ScheduleEntryDTO",
    "SchedulePreviewResponse",
    "ScheduleRequest",
]
