"""
Bounded retry for AI provider calls.

Rate limits, timeouts, provider 5xx and network failures are retried with
exponential backoff; authentication, quota and invalid-request failures are
raised immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from advancia_pay.core.logging_config import get_logger

from .errors import AIProviderError

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits; delays are in seconds."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0

    def should_retry(self, exc: BaseException) -> bool:
        return isinstance(exc, AIProviderError) and exc.retryable

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return min(self.initial_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


def build_retrying(policy: RetryPolicy = DEFAULT_RETRY_POLICY, *, sleep: Optional[Callable] = None) -> AsyncRetrying:
    kwargs: dict[str, Any] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(
            multiplier=policy.initial_delay, exp_base=policy.backoff_multiplier, max=policy.max_delay
        ),
        retry=retry_if_exception(policy.should_retry),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
        **kwargs,
    )


async def call_with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Optional[Callable] = None,
    **kwargs: Any,
) -> T:
    """Await ``fn(*args, **kwargs)``, retrying retryable provider failures per ``policy``."""
    return await build_retrying(policy, sleep=sleep)(fn, *args, **kwargs)
