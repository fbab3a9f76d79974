"""Per-call deadlines for external fetches.

Every live fetch and every generative-provider call runs under its own
hard timeout (12-30s depending on the domain). Expiry cancels the awaited
coroutine cooperatively and surfaces as ``TimeoutExpired``, which the
fallback ladder classifies as a ``timeout`` failure and moves past.

Example:
    >>> outcome = await run_with_timeout_async(fetch("weather"), 15.0, operation="weather")
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TypeVar

from feedspine.core.errors import FetchTimeoutError

T = TypeVar("T")


class TimeoutExpired(FetchTimeoutError):
    """A deadline passed before the fetch finished.

    ``timeout`` is the budget in seconds, ``elapsed`` the measured wall
    time, and ``operation`` a label such as ``"weather:live"``.
    """

    def __init__(self, timeout: float, elapsed: float | None = None, operation: str | None = None):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation or "operation"
        detail = "" if elapsed is None else f" (ran for {elapsed:.2f}s)"
        super().__init__(f"Operation '{self.operation}' timed out after {timeout}s{detail}")


@asynccontextmanager
async def with_deadline_async(seconds: float, operation: str | None = None) -> AsyncIterator[None]:
    """Run the block under ``asyncio.timeout``; expiry becomes ``TimeoutExpired``.

    Example:
        async with with_deadline_async(20.0, operation="generative:layers"):
            response = await client.post(url, json=body)
    """
    if seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {seconds}")
    began = time.monotonic()
    try:
        async with asyncio.timeout(seconds):
            yield
    except TimeoutError as exc:
        # A nested deadline already produced our own error type.
        if isinstance(exc, FetchTimeoutError):
            raise
        raise TimeoutExpired(seconds, time.monotonic() - began, operation) from None


async def run_with_timeout_async(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    operation: str | None = None,
) -> T:
    """Await ``awaitable`` for at most ``timeout_seconds``.

    Errors raised by the awaitable itself propagate unchanged. A
    non-positive timeout is rejected and a coroutine passed in is closed.
    """
    if timeout_seconds <= 0:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")
    async with with_deadline_async(timeout_seconds, operation):
        return await awaitable


__all__ = ["TimeoutExpired", "run_with_timeout_async", "with_deadline_async"]
