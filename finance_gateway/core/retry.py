"""Bounded retry policies for polling and idempotent outbound calls."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator


@dataclass(frozen=True)
class RetryPolicy:
    """
    A bounded number of attempts separated by (optionally growing) delays.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        delay: Seconds to wait after the first failed attempt
        backoff: Multiplier applied to the delay after every attempt;
            1.0 gives a fixed interval, 2.0 exponential backoff
    """

    max_attempts: int
    delay: float
    backoff: float = 1.0

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry (max_attempts - 1 values)."""
        current = self.delay
        for _ in range(max(self.max_attempts - 1, 0)):
            yield current
            current *= self.backoff


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bool:
    """
    Call `check` until it returns True or the policy is exhausted.

    Returns:
        True if the condition was observed, False on exhaustion
    """
    if policy.max_attempts <= 0:
        return False

    if await check():
        return True

    for wait in policy.delays():
        await sleep(wait)
        if await check():
            return True

    return False
