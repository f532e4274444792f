"""Exponential backoff for oracle calls."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from ..errors import OracleError
from ..logging import get_logger

T = TypeVar("T")

_logger = get_logger("oracle.retry")


@dataclass(frozen=True)
class RetryPolicy:
    """``retries`` extra attempts after the first, delay doubling from ``initial_delay``."""

    retries: int = 3
    initial_delay: float = 1.0
    retry_on: Tuple[Type[BaseException], ...] = (OracleError,)

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (2**attempt)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await ``operation`` until it succeeds or the policy is exhausted.

    Only exceptions listed in ``policy.retry_on`` are retried; anything else
    propagates immediately. The last failure is re-raised unchanged.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await operation()
        except policy.retry_on as exc:
            if attempt >= policy.retries:
                raise
            delay = policy.delay_for(attempt)
            _logger.warning(
                "Attempt %d failed (%s), retrying in %.1fs", attempt + 1, exc, delay
            )
            await sleep(delay)
            attempt += 1


__all__ = ["RetryPolicy", "with_retry"]
