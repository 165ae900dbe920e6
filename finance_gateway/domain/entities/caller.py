"""The party initiating a payment."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PaymentCaller:
    """
    Identity resolved from the request's Authorization header.

    An anonymous caller has no `user_id`; rate limiting then falls back
    to the payer email. Admins are exempt from the rate limit and the
    payment permission check.
    """

    user_id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
