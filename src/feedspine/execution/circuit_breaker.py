"""Circuit breaker for flaky live upstreams.

After ``failure_threshold`` consecutive failures the breaker opens and the
live rung fails fast with ``UpstreamUnavailableError`` ("Temporarily
unavailable (retry in Ns)") until ``recovery_timeout`` has passed. The next
call is then let through as a probe (half-open); success closes the
breaker, failure re-opens it.

States:
    CLOSED: Normal operation, requests pass through
    OPEN: Failing fast, requests rejected immediately
    HALF_OPEN: One probe request allowed

Example:
    >>> breaker = CircuitBreaker(name="economic", failure_threshold=3, recovery_timeout=300)
    >>> outcome = await breaker.call_async(fetch_fred)
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from feedspine.core.errors import UpstreamUnavailableError
from feedspine.core.logging import get_logger
from feedspine.core.timestamps import Clock, monotonic

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Consecutive-failure circuit breaker.

    Attributes:
        name: Identifier for this circuit (usually the domain)
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds to stay open before probing
    """

    name: str = "default"
    failure_threshold: int = 3
    recovery_timeout: float = 300.0
    clock: Clock = monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _opened_at: float | None = field(default=None, init=False)

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self.retry_in() <= 0:
            self._transition_to(CircuitState.HALF_OPEN)
        return self._state

    def retry_in(self) -> float:
        """Seconds until an open circuit lets a probe through."""
        if self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (self.clock() - self._opened_at))

    def allow_request(self) -> bool:
        return self.state is not CircuitState.OPEN

    def record_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0

    def record_failure(self) -> None:
        self._failure_count += 1
        if self._state is CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._opened_at = self.clock()
            self._transition_to(CircuitState.OPEN)

    def reset(self) -> None:
        self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0
        self._opened_at = None

    def _transition_to(self, new_state: CircuitState) -> None:
        if new_state is self._state:
            return
        logger.info("circuit.state_change", circuit=self.name, old=self._state.value, new=new_state.value)
        self._state = new_state
        if new_state is CircuitState.CLOSED:
            self._opened_at = None

    async def call_async(
        self,
        func: Callable[[], Awaitable[T]],
        *,
        is_failure: Callable[[T], bool] | None = None,
    ) -> T:
        """Run ``func`` through the breaker.

        ``is_failure`` lets a returned value (e.g. an empty outcome) count
        as a failure without raising.

        Raises:
            UpstreamUnavailableError: If the circuit is open
        """
        if not self.allow_request():
            seconds = math.ceil(self.retry_in())
            raise UpstreamUnavailableError(
                f"Temporarily unavailable (retry in {seconds}s)", retryable=False
            ).with_context(source=self.name)
        try:
            result = await func()
        except Exception:
            self.record_failure()
            raise
        if is_failure is not None and is_failure(result):
            self.record_failure()
        else:
            self.record_success()
        return result


__all__ = ["CircuitState", "CircuitBreaker"]
