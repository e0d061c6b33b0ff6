"""Shared retry/backoff policy for provider calls (tenacity)."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from chainprice.exceptions import RateLimitedError, TransientProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (RateLimitedError, TransientProviderError)


@dataclass(frozen=True)
class RetryPolicy:
    """Up to `attempts` tries, waiting initial_wait * factor**n seconds (capped) in between.

    Only RETRYABLE_ERRORS trigger another attempt; anything else propagates at once.
    After the last attempt the final error is re-raised unchanged.
    """

    attempts: int = 3
    initial_wait: float = 1.0
    factor: float = 2.0
    max_wait: float = 5.0

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            attempts=settings.retry_attempts,
            initial_wait=settings.retry_initial_wait,
            factor=settings.retry_backoff_factor,
            max_wait=settings.retry_max_wait,
        )

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return min(self.initial_wait * self.factor ** (attempt - 1), self.max_wait)

    def retrying(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.initial_wait, exp_base=self.factor, max=self.max_wait),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
            sleep=sleep,
        )

    async def call(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        **kwargs: Any,
    ) -> T:
        return await self.retrying(sleep)(fn, *args, **kwargs)


DEFAULT_RETRY_POLICY = RetryPolicy()
