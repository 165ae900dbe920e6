"""Domain Interfaces - Abstract contracts for infrastructure."""

from .clients import PaymentGatewayClient
from .permissions import PaymentPermissionPolicy
from .repositories import (
    ApplicationRepository,
    PaymentTransactionRepository,
    UnitOfWork,
)

__all__ = [
    "PaymentGatewayClient",
    "PaymentPermissionPolicy",
    "ApplicationRepository",
    "PaymentTransactionRepository",
    "UnitOfWork",
]
