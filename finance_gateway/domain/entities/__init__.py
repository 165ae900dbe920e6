"""Domain Entities - Core business objects."""

from .application import Application
from .caller import PaymentCaller
from .gateway import GatewayPaymentRequest, WebhookNotification
from .schedule import (
    InstallmentPlan,
    PaymentScheduleEntry,
    PaymentStatus,
    ScheduleInterval,
    ScheduleUpdateMode,
)
from .transaction import PaymentMethod, PaymentTransaction, TransactionStatus

__all__ = [
    "Application",
    "PaymentCaller",
    "GatewayPaymentRequest",
    "WebhookNotification",
    "InstallmentPlan",
    "PaymentScheduleEntry",
    "PaymentStatus",
    "ScheduleInterval",
    "ScheduleUpdateMode",
    "PaymentMethod",
    "PaymentTransaction",
    "TransactionStatus",
]
