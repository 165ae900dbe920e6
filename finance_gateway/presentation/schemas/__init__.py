"""Pydantic schemas for API request/response validation."""

from .error import ErrorResponseSchema, PaymentErrorSchema
from .payment import (
    PaymentInitiationRequestSchema,
    PaymentInitiationResponseSchema,
    PaymentVerificationRequestSchema,
    PaymentVerificationResponseSchema,
    WebhookResponseSchema,
)
from .plan import (
    PlanResponseSchema,
    PlanUpdateRequestSchema,
    ScheduleEntrySchema,
    SchedulePreviewRequestSchema,
    SchedulePreviewResponseSchema,
)

__all__ = [
    "ErrorResponseSchema",
    "PaymentErrorSchema",
    "PaymentInitiationRequestSchema",
    "PaymentInitiationResponseSchema",
    "PaymentVerificationRequestSchema",
    "PaymentVerificationResponseSchema",
    "WebhookResponseSchema",
    "PlanResponseSchema",
    "PlanUpdateRequestSchema",
    "ScheduleEntrySchema",
    "SchedulePreviewRequestSchema",
    "SchedulePreviewResponseSchema",
]
