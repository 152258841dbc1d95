"""Retry policy for rate-limited completion calls.

Exponential backoff: the delay before retry n (0-based) is base * 2**n,
so successive delays strictly increase. Only rate-limit signals are
retried; every other error propagates on the first attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from backend.tenderwriter.errors import RateLimitedError
from backend.tenderwriter.utils.metrics import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limited(exc: BaseException) -> bool:
    """True for RateLimitedError or anything carrying HTTP status 429."""
    if isinstance(exc, RateLimitedError):
        return True
    return getattr(exc, "status_code", None) == 429 or getattr(exc, "status", None) == 429


@dataclass
class RetryPolicy:
    """Bounded exponential backoff for retryable completion failures."""

    max_retries: int = 3
    base_delay_s: float = 1.0
    is_retryable: Callable[[BaseException], bool] = is_rate_limited
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def delay_for(self, retry: int) -> float:
        """Delay in seconds before the given 0-based retry."""
        return self.base_delay_s * (2**retry)

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Call fn, retrying retryable failures up to max_retries times.

        Args:
            fn: Zero-argument coroutine factory; called once per attempt

        Returns:
            The first successful result

        Raises:
            The last retryable error once retries are exhausted, or any
            non-retryable error immediately
        """
        retry = 0
        while True:
            try:
                return await fn()
            except Exception as e:
                if not self.is_retryable(e) or retry >= self.max_retries:
                    raise
                delay = self.delay_for(retry)
                retry += 1
                metrics.inc_retry()
                logger.warning(
                    f"Rate limit hit. Retrying in {delay * 1000:.0f}ms "
                    f"(attempt {retry}/{self.max_retries})"
                )
                await self.sleep(delay)

    @classmethod
    def from_settings(cls, max_retries: int, base_delay_ms: int) -> "RetryPolicy":
        return cls(max_retries=max_retries, base_delay_s=base_delay_ms / 1000)
