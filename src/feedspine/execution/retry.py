"""Fixed-backoff retry strategies for live fetches.

Several domains retry their live upstream before the fallback ladder moves
on (commodities: 3 attempts 20s apart; UCDP events: 3 attempts 15s apart).
Those policies come from ``FeedSpineSettings.retry_policies`` and run here,
inside the ladder, never in the caller.

Example:
    >>> strategy = ConstantBackoff(max_attempts=3, delay=20.0)
    >>> [strategy.should_retry(n) for n in (1, 2, 3)]
    [True, True, False]
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from feedspine.core.errors import FeedSpineError
from feedspine.core.logging import get_logger
from feedspine.core.settings import RetryPolicy
from feedspine.core.timestamps import utc_now

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number ``attempt`` (1-based)."""
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        """Whether another attempt may follow attempt number ``attempt``."""
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Same delay between every attempt, bounded total attempts.

    A ``FeedSpineError`` marked non-retryable (missing config, an open
    circuit) ends the run at once.
    """

    max_attempts: int = 3
    delay: float = 20.0

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        if isinstance(error, FeedSpineError) and not error.retryable:
            return False
        return attempt < self.max_attempts


@dataclass
class NoRetry(RetryStrategy):
    """Single attempt."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        return False


def strategy_for(policy: RetryPolicy | None) -> RetryStrategy:
    """Build the strategy a configured ``RetryPolicy`` describes."""
    if policy is None or policy.attempts <= 1:
        return NoRetry()
    return ConstantBackoff(max_attempts=policy.attempts, delay=policy.delay_seconds)


@dataclass
class RetryContext:
    """
    Runs an async operation under a strategy, tracking attempts.

    A result can also trigger a retry: ``retry_on_result`` lets an empty
    or rate-limited outcome be treated like a failure. When attempts run
    out, the last result is returned (or the last error re-raised).

    Example:
        >>> ctx = RetryContext(ConstantBackoff(3, 20.0), name="commodities")
        >>> outcome = await ctx.run_async(fetch, retry_on_result=lambda o: o.is_empty)
    """

    strategy: RetryStrategy
    name: str = ""
    sleep: Sleep = asyncio.sleep
    on_retry: Callable[[int, BaseException | None, float], None] | None = None
    attempt: int = field(default=0, init=False)
    last_error: BaseException | None = field(default=None, init=False)
    started_at: datetime = field(default_factory=utc_now, init=False)

    @property
    def attempts(self) -> int:
        return self.attempt

    async def run_async(
        self,
        func: Callable[[], Awaitable[T]],
        *,
        retry_on_result: Callable[[T], bool] | None = None,
    ) -> T:
        while True:
            self.attempt += 1
            try:
                result = await func()
            except Exception as exc:
                self.last_error = exc
                if not self.strategy.should_retry(self.attempt, exc):
                    raise
                await self._wait(exc)
                continue

            if retry_on_result is None or not retry_on_result(result):
                return result
            if not self.strategy.should_retry(self.attempt):
                return result
            await self._wait(None)

    async def _wait(self, error: BaseException | None) -> None:
        delay = self.strategy.next_delay(self.attempt)
        logger.info(
            "retry.scheduled",
            operation=self.name,
            attempt=self.attempt,
            delay_seconds=delay,
            error=error,
        )
        if self.on_retry:
            self.on_retry(self.attempt, error, delay)
        await self.sleep(delay)


__all__ = [
    "RetryStrategy",
    "ConstantBackoff",
    "NoRetry",
    "RetryContext",
    "strategy_for",
    "Sleep",
]
