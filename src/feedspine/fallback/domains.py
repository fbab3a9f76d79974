"""
Per-domain ladder definitions and the factory that builds them.

Each ``DomainSpec`` names the pieces of one domain's ladder: the live
source, the generative bundle section, the embedded dataset, the retry
policy key and whether a circuit breaker guards the live call.
``DomainLadders`` turns a spec into a ``FallbackLadder`` and de-duplicates
concurrent resolutions of the same domain.

Architecture:
    ::

        DOMAINS["economic"]
          retry(2 × 20s) ─► CircuitBreaker ─► timeout(15s) ─► live:fred
          generative:fred  (section "series")
          static           (static_data.economic_series)

Tags:
    fallback, registry, domains, circuit-breaker
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from feedspine.core.cache import SingleFlight
from feedspine.core.models import FetchOutcome
from feedspine.core.settings import FeedSpineSettings
from feedspine.core.timestamps import Clock, monotonic
from feedspine.execution.circuit_breaker import CircuitBreaker
from feedspine.execution.retry import Sleep
from feedspine.execution.timeout import run_with_timeout_async
from feedspine.fallback import static_data
from feedspine.fallback.generative import GenerativeSource
from feedspine.fallback.ladder import (
    FallbackLadder,
    LadderResult,
    Rung,
    generative_rung,
    live_rung,
    static_rung,
)
from feedspine.fallback.sources import SourceRegistry


@dataclass(frozen=True)
class DomainSpec:
    """Ingredients of one domain's ladder.

    Attributes:
        domain: Domain name (also the ladder's log name)
        live_source: Name in the ``SourceRegistry``; None for no live rung
        bundle: Generative bundle key; None for no generative rung
        section: Bundle section; None takes the whole bundle as one item
        static: Embedded dataset factory; None for no static rung
        retry_domain: Key into ``settings.retry_policies`` (defaults to domain)
        live_timeout: Per-call deadline override for the live rung
        breaker: Guard the live rung with a circuit breaker
        halt_on_skip: A skipped live fetch ends the ladder
        layer: Map layer gating this domain, if any
    """

    domain: str
    live_source: str | None = None
    bundle: str | None = None
    section: str | None = None
    static: Callable[[], list[Any]] | None = None
    retry_domain: str | None = None
    live_timeout: float | None = None
    breaker: bool = False
    halt_on_skip: bool = False
    layer: str | None = None

    @property
    def has_fallback(self) -> bool:
        return self.bundle is not None or self.static is not None


def _layer(domain: str, section: str, static: Callable[[], list[Any]], layer: str) -> DomainSpec:
    return DomainSpec(domain, domain, "layers", section, static, layer=layer)


DOMAINS: dict[str, DomainSpec] = {
    spec.domain: spec
    for spec in (
        # Markets
        DomainSpec("stocks", "stocks", "market", "stocks", static_data.stocks, halt_on_skip=True),
        DomainSpec("commodities", "commodities", "market", "commodities", static_data.commodities),
        DomainSpec("sectors", "sectors", "market", "sectors", static_data.sectors),
        DomainSpec("crypto", "crypto", "market", "crypto", static_data.crypto),
        # Map layers
        _layer("weather", "weather", static_data.weather_alerts, "weather"),
        _layer("protests", "protests", static_data.protests, "protests"),
        _layer("military", "military", static_data.military_flights, "military"),
        _layer("cyber_threats", "cyber", static_data.cyber_threats, "cyber_threats"),
        _layer("hunger", "hunger", static_data.hunger_zones, "hunger"),
        _layer("outages", "outages", static_data.outages, "outages"),
        _layer("flights", "flights", static_data.flight_delays, "flights"),
        _layer("natural_resources", "naturalResources", static_data.natural_resources, "natural_resources"),
        DomainSpec("fires", "firms", static=static_data.fires, layer="fires"),
        DomainSpec("earthquakes", "earthquakes", static=static_data.earthquakes, layer="natural"),
        DomainSpec("population", "population", static=static_data.population_exposure, layer="population"),
        # Panels
        DomainSpec("economic", "fred", "fred", "series", static_data.economic_series, breaker=True),
        DomainSpec("trade_policy", "trade_policy", "trade", None, static_data.trade_policy),
        DomainSpec("supply_chain", "supply_chain", "supply_chain", None, static_data.supply_chain),
        # Live only
        DomainSpec("ucdp_events", "ucdp_events", live_timeout=30.0),
        DomainSpec("conflicts", "conflicts"),
        DomainSpec("vessels", "vessels", layer="ais"),
        DomainSpec("predictions", "predictions"),
    )
}


def _breaker_failure(outcome: FetchOutcome) -> bool:
    return outcome.is_empty and not outcome.skipped


class DomainLadders:
    """
    Builds and resolves ladders for the registered domains.

    A domain whose live source is administratively disabled gets no live
    rung. Circuit breakers are created once per domain and kept for the
    life of the factory.

    Example:
        ladders = DomainLadders(settings, sources, generative)
        result = await ladders.resolve("weather")
        sweep = await ladders.resolve("weather", include_live=False)
    """

    def __init__(
        self,
        settings: FeedSpineSettings,
        sources: SourceRegistry,
        generative: GenerativeSource,
        *,
        domains: dict[str, DomainSpec] | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = monotonic,
    ):
        self.settings = settings
        self.sources = sources
        self.generative = generative
        self.domains = dict(domains or DOMAINS)
        self._sleep = sleep
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._flight: SingleFlight[LadderResult] = SingleFlight()

    def spec(self, domain: str) -> DomainSpec:
        return self.domains[domain]

    def has_fallback(self, domain: str) -> bool:
        return self.spec(domain).has_fallback

    def breaker(self, domain: str) -> CircuitBreaker:
        breaker = self._breakers.get(domain)
        if breaker is None:
            breaker = self._breakers[domain] = CircuitBreaker(
                name=domain, failure_threshold=3, recovery_timeout=300.0, clock=self._clock
            )
        return breaker

    def rungs(self, domain: str, *, include_live: bool = True) -> list[Rung]:
        spec = self.spec(domain)
        rungs: list[Rung] = []
        if include_live and spec.live_source and self.settings.source_enabled(spec.live_source):
            rungs.append(self._live(spec, spec.live_source))
        if spec.bundle is not None:
            rungs.append(generative_rung(self.generative, spec.bundle, spec.section))
        if spec.static is not None:
            rungs.append(static_rung(spec.static))
        return rungs

    def ladder(self, domain: str, *, include_live: bool = True) -> FallbackLadder:
        return FallbackLadder(domain, self.rungs(domain, include_live=include_live), sleep=self._sleep)

    async def resolve(self, domain: str, *, include_live: bool = True) -> LadderResult:
        """Resolve ``domain``; concurrent calls share one evaluation."""
        key = domain if include_live else f"{domain}:fallback"
        return await self._flight.do(key, self.ladder(domain, include_live=include_live).resolve)

    def _live(self, spec: DomainSpec, source: str) -> Rung:
        timeout = spec.live_timeout or self.settings.live_timeout_seconds
        retry = self.settings.retry_policy(spec.retry_domain or spec.domain)

        async def fetch() -> FetchOutcome:
            return await self.sources.fetch(source)

        if not spec.breaker:
            return live_rung(
                source, fetch, timeout_seconds=timeout, retry=retry, halt_on_skip=spec.halt_on_skip
            )

        breaker = self.breaker(spec.domain)

        # The deadline sits inside the breaker so timeouts count as failures.
        async def guarded() -> FetchOutcome:
            return await breaker.call_async(
                lambda: run_with_timeout_async(fetch(), timeout, operation=f"{spec.domain}:live"),
                is_failure=_breaker_failure,
            )

        return live_rung(
            source, guarded, timeout_seconds=None, retry=retry, halt_on_skip=spec.halt_on_skip
        )


__all__ = ["DOMAINS", "DomainSpec", "DomainLadders"]
