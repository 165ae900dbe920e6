"""External client interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class PaymentGatewayClient(ABC):
    """
    Abstract client for the SkipCash payment API.

    Requests are signed by the caller; the client only transports
    the payload and the Authorization header.
    """

    @abstractmethod
    async def create_payment(
        self,
        payload: Dict[str, Any],
        signature: str,
    ) -> Dict[str, Any]:
        """
        Create a hosted payment.

        Args:
            payload: PascalCase request body
            signature: Base64 HMAC-SHA256 signature of the request

        Returns:
            The decoded JSON response body

        Raises:
            GatewayAPIException: If the API returns an error
            GatewayTimeoutException: If the request times out
        """
        ...

    @abstractmethod
    async def get_payment(
        self,
        payment_id: str,
        signature: str,
    ) -> Dict[str, Any]:
        """
        Look up the current state of a payment.

        Args:
            payment_id: The gateway's payment identifier
            signature: Base64 HMAC-SHA256 signature of the lookup

        Returns:
            The decoded JSON response body

        Raises:
            GatewayAPIException: If the API returns an error
            GatewayTimeoutException: If every attempt times out
        """
        ...
