"""Payment permission contract."""

from abc import ABC, abstractmethod
from typing import Optional

from finance_gateway.domain.entities import PaymentCaller


class PaymentPermissionPolicy(ABC):
    """Decides who may initiate payments, and for which applications."""

    @abstractmethod
    async def identify(self, authorization: Optional[str]) -> Optional[PaymentCaller]:
        """
        Resolve the caller behind an Authorization header.

        Returns:
            The caller, or None when the request is not authenticated
        """
        ...

    @abstractmethod
    async def can_pay(self, caller: PaymentCaller, application_id: Optional[str]) -> bool:
        """
        Whether the caller may pay for the application.

        Without an application id (credit top-ups) the question is whether
        the caller may pay for any application at all.
        """
        ...
