"""Permission policy for deployments without an identity provider."""

from typing import Optional

from finance_gateway.domain.entities import PaymentCaller
from finance_gateway.domain.interfaces import PaymentPermissionPolicy


class AllowAllPaymentPolicy(PaymentPermissionPolicy):
    """Every request is an anonymous caller allowed to pay for anything."""

    async def identify(self, authorization: Optional[str]) -> Optional[PaymentCaller]:
        return PaymentCaller()

    async def can_pay(self, caller: PaymentCaller, application_id: Optional[str]) -> bool:
        return True
