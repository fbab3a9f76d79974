"""
Fallback ladder: ordered rungs tried until one yields data.

Manifesto:
    A domain's recovery path is data, not branching code. Each domain is
    an ordered list of rungs with one uniform signature, and one driver
    owns the try/advance logic for all of them. Every failure is resolved
    here: nothing escapes ``resolve()``.

Architecture:
    ::

        FallbackLadder("weather", [live, generative:layers, static])
              │
              ▼
        for rung in rungs:
            outcome = RetryContext(rung.retry).run_async(
                          run_with_timeout_async(rung.fetch(), rung.timeout))
            ├─ raised            → Attempt(failure=classify_failure(exc)) → next
            ├─ rate_limited      → next
            ├─ upstream_unavailable → next
            ├─ skipped           → next (or stop when rung.halt_on_skip)
            ├─ empty             → next
            └─ items             → LadderResult(tier=rung.tier)
        exhausted                → LadderResult(tier=NONE, items=[])

Features:
    - **Per-rung retry:** fixed-backoff policies run inside the ladder,
      empty outcomes count as a retryable result
    - **Per-rung timeout:** hard deadline on every live call
    - **Attempt trail:** ``LadderResult.attempts`` records what happened
      on each rung for logs and status lines

Tags:
    fallback, ladder, retry, timeout, resilience
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from feedspine.core.errors import FailureKind, classify_failure
from feedspine.core.logging import get_logger
from feedspine.core.models import FetchOutcome
from feedspine.core.settings import RetryPolicy
from feedspine.execution.retry import RetryContext, Sleep, strategy_for
from feedspine.execution.timeout import run_with_timeout_async
from feedspine.fallback.generative import GenerativeSource

logger = get_logger(__name__)

RungFetch = Callable[[], Awaitable[FetchOutcome]]


class Tier(str, Enum):
    """Which kind of rung produced a result."""

    LIVE = "live"
    GENERATIVE = "generative"
    STATIC = "static"
    NONE = "none"


@dataclass(frozen=True)
class Rung:
    """One step of a ladder.

    Attributes:
        name: Rung label for logs (``"live:fred"``, ``"generative:market"``)
        tier: Kind of provider
        fetch: Zero-argument coroutine factory returning a ``FetchOutcome``
        timeout_seconds: Hard deadline per call; None for rungs that bound
            their own calls
        retry: Fixed-backoff policy for this rung
        halt_on_skip: Stop the ladder when the rung reports ``skipped``
    """

    name: str
    tier: Tier
    fetch: RungFetch
    timeout_seconds: float | None = None
    retry: RetryPolicy | None = None
    halt_on_skip: bool = False


@dataclass(frozen=True)
class Attempt:
    rung: str
    tier: Tier
    ok: bool
    failure: FailureKind | None = None
    message: str | None = None
    calls: int = 1


@dataclass
class LadderResult:
    """What a ladder settled on."""

    domain: str
    items: list[Any]
    tier: Tier
    rung: str | None = None
    provider: str | None = None
    skipped: bool = False
    message: str | None = None
    attempts: list[Attempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.items)

    @property
    def from_fallback(self) -> bool:
        return self.tier in (Tier.GENERATIVE, Tier.STATIC)

    @property
    def failures(self) -> list[Attempt]:
        return [a for a in self.attempts if not a.ok]


def outcome_failure(outcome: FetchOutcome) -> FailureKind | None:
    """Failure kind an outcome represents, or None when it carries data."""
    if outcome.rate_limited:
        return FailureKind.RATE_LIMITED
    if outcome.upstream_unavailable:
        return FailureKind.UPSTREAM_UNAVAILABLE
    if outcome.skipped:
        return FailureKind.CONFIG
    if outcome.is_empty:
        return FailureKind.EMPTY
    return None


def _retry_on_outcome(outcome: FetchOutcome) -> bool:
    return outcome.is_empty and not outcome.skipped and not outcome.upstream_unavailable


class FallbackLadder:
    """
    Evaluates a domain's rungs in order.

    Example:
        ladder = FallbackLadder("weather", [live_rung(...), static_rung(static_data.weather_alerts)])
        result = await ladder.resolve()
        result.tier  # Tier.STATIC when the live feed came back empty
    """

    def __init__(self, domain: str, rungs: Sequence[Rung], *, sleep: Sleep = asyncio.sleep):
        self.domain = domain
        self.rungs = list(rungs)
        self._sleep = sleep

    async def resolve(self) -> LadderResult:
        attempts: list[Attempt] = []
        for rung in self.rungs:
            ctx = RetryContext(strategy_for(rung.retry), name=f"{self.domain}:{rung.name}", sleep=self._sleep)
            try:
                outcome = await ctx.run_async(
                    lambda rung=rung: self._call(rung), retry_on_result=_retry_on_outcome
                )
            except Exception as exc:
                kind = classify_failure(exc)
                attempts.append(
                    Attempt(rung.name, rung.tier, ok=False, failure=kind, message=str(exc), calls=ctx.attempts)
                )
                logger.warning(
                    "ladder.advance",
                    domain=self.domain,
                    rung=rung.name,
                    failure=kind.value,
                    error=exc,
                )
                continue

            failure = outcome_failure(outcome)
            if failure is None:
                attempts.append(Attempt(rung.name, rung.tier, ok=True, calls=ctx.attempts))
                logger.debug(
                    "ladder.resolved",
                    domain=self.domain,
                    rung=rung.name,
                    tier=rung.tier.value,
                    count=len(outcome.items),
                )
                return LadderResult(
                    domain=self.domain,
                    items=list(outcome.items),
                    tier=rung.tier,
                    rung=rung.name,
                    provider=outcome.provider,
                    message=outcome.message,
                    attempts=attempts,
                )

            attempts.append(
                Attempt(rung.name, rung.tier, ok=False, failure=failure, message=outcome.message, calls=ctx.attempts)
            )
            if outcome.skipped and rung.halt_on_skip:
                logger.info("ladder.halted", domain=self.domain, rung=rung.name, message=outcome.message)
                return LadderResult(
                    domain=self.domain,
                    items=[],
                    tier=Tier.NONE,
                    skipped=True,
                    message=outcome.message,
                    attempts=attempts,
                )
            logger.info("ladder.advance", domain=self.domain, rung=rung.name, failure=failure.value)

        logger.warning("ladder.exhausted", domain=self.domain, rungs=len(self.rungs))
        return LadderResult(
            domain=self.domain,
            items=[],
            tier=Tier.NONE,
            message="unavailable",
            attempts=attempts,
        )

    async def _call(self, rung: Rung) -> FetchOutcome:
        if rung.timeout_seconds is None:
            return await rung.fetch()
        return await run_with_timeout_async(
            rung.fetch(), rung.timeout_seconds, operation=f"{self.domain}:{rung.name}"
        )


# =============================================================================
# RUNG HELPERS
# =============================================================================


def live_rung(
    name: str,
    fetch: RungFetch,
    *,
    timeout_seconds: float | None = 15.0,
    retry: RetryPolicy | None = None,
    halt_on_skip: bool = False,
) -> Rung:
    return Rung(
        name=f"live:{name}",
        tier=Tier.LIVE,
        fetch=fetch,
        timeout_seconds=timeout_seconds,
        retry=retry,
        halt_on_skip=halt_on_skip,
    )


def generative_rung(source: GenerativeSource, bundle: str, section: str | None) -> Rung:
    """Rung reading one section of a cached generative bundle.

    Provider calls carry their own per-call deadline, so the rung has none.
    """

    async def fetch() -> FetchOutcome:
        return await source.section(bundle, section)

    return Rung(name=f"generative:{bundle}", tier=Tier.GENERATIVE, fetch=fetch)


def static_rung(dataset: Callable[[], list[Any]]) -> Rung:
    async def fetch() -> FetchOutcome:
        return FetchOutcome.of(dataset())

    return Rung(name="static", tier=Tier.STATIC, fetch=fetch)


__all__ = [
    "Tier",
    "Rung",
    "RungFetch",
    "Attempt",
    "LadderResult",
    "FallbackLadder",
    "outcome_failure",
    "live_rung",
    "generative_rung",
    "static_rung",
]
