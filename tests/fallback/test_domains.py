"""Tests for per-domain ladders."""

from __future__ import annotations

import asyncio
import json

import pytest

from feedspine.core.errors import FailureKind
from feedspine.core.models import FetchOutcome
from feedspine.core.settings import FeedSpineSettings
from feedspine.fallback import static_data
from feedspine.fallback.domains import DOMAINS, DomainLadders
from feedspine.fallback.generative import GenerativeSource
from feedspine.fallback.ladder import Tier
from feedspine.fallback.providers import MockProvider
from feedspine.fallback.sources import SourceRegistry


# ── Helpers ──────────────────────────────────────────────────────────────

MARKET = json.dumps(
    {
        "stocks": [{"symbol": "^GSPC", "name": "S&P 500", "price": 5800}],
        "commodities": [{"symbol": "GC=F", "name": "Gold", "price": 2950}],
        "crypto": [{"name": "Bitcoin", "symbol": "BTC", "price": 87000}],
        "sectors": [{"name": "Tech", "change": 0.5}],
    }
)


class _Source:
    def __init__(self, outcome, *, delay: float = 0.0):
        self.outcome = outcome
        self.delay = delay
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.outcome


def _ladders(settings, sources=None, providers=(), *, sleep, clock) -> DomainLadders:
    return DomainLadders(
        settings,
        SourceRegistry(sources or {}),
        GenerativeSource(list(providers), clock=clock),
        sleep=sleep,
        clock=clock,
    )


FALLBACK_DOMAINS = sorted(name for name, spec in DOMAINS.items() if spec.has_fallback)


# ── Tests ────────────────────────────────────────────────────────────────


class TestFallbackAlwaysPopulates:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain", FALLBACK_DOMAINS)
    async def test_nothing_configured_still_yields_data(self, settings, sleep, clock, domain):
        result = await _ladders(settings, sleep=sleep, clock=clock).resolve(domain)
        assert result.ok
        assert result.tier is Tier.STATIC

    @pytest.mark.asyncio
    async def test_empty_weather_feed_yields_static_alerts(self, settings, sleep, clock):
        weather = _Source([])
        result = await _ladders(settings, {"weather": weather}, sleep=sleep, clock=clock).resolve("weather")

        assert weather.calls == 1
        assert result.tier is Tier.STATIC
        assert len(result.items) == 8
        assert [a.failure for a in result.failures] == [FailureKind.EMPTY, FailureKind.EMPTY]

    @pytest.mark.asyncio
    async def test_live_only_domain_reports_unavailable(self, settings, sleep, clock):
        result = await _ladders(settings, sleep=sleep, clock=clock).resolve("predictions")
        assert result.tier is Tier.NONE
        assert result.message == "unavailable"
        assert result.failures[0].failure is FailureKind.CONFIG


class TestMarkets:
    @pytest.mark.asyncio
    async def test_skipped_stocks_halt_before_generative(self, settings, sleep, clock):
        provider = MockProvider(default_response=MARKET)
        stocks = _Source(FetchOutcome(skipped=True, message="FINNHUB_API_KEY not set"))
        ladders = _ladders(settings, {"stocks": stocks}, [provider], sleep=sleep, clock=clock)

        result = await ladders.resolve("stocks")

        assert result.skipped
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_rate_limited_stocks_use_shared_market_bundle(self, settings, sleep, clock):
        provider = MockProvider(default_response=MARKET)
        stocks = _Source(FetchOutcome(rate_limited=True))
        ladders = _ladders(settings, {"stocks": stocks}, [provider], sleep=sleep, clock=clock)

        results = await asyncio.gather(
            ladders.resolve("stocks"), ladders.resolve("commodities"), ladders.resolve("sectors")
        )

        assert all(r.tier is Tier.GENERATIVE for r in results)
        assert provider.call_count == 1
        assert results[0].failures[0].failure is FailureKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_crypto_retries_before_falling_back(self, settings, sleep, clock):
        crypto = _Source(FetchOutcome())
        ladders = _ladders(settings, {"crypto": crypto}, sleep=sleep, clock=clock)

        result = await ladders.resolve("crypto")

        assert crypto.calls == 2
        assert sleep.calls == [20]
        assert result.items == static_data.crypto()


class TestLiveRung:
    @pytest.mark.asyncio
    async def test_disabled_source_has_no_live_rung(self, sleep, clock):
        settings = FeedSpineSettings(disabled_sources={"weather"})
        weather = _Source(FetchOutcome.of([{"id": "live"}]))
        ladders = _ladders(settings, {"weather": weather}, sleep=sleep, clock=clock)

        assert [r.name for r in ladders.rungs("weather")] == ["generative:layers", "static"]
        result = await ladders.resolve("weather")
        assert weather.calls == 0
        assert result.tier is Tier.STATIC

    @pytest.mark.asyncio
    async def test_live_timeout_falls_back(self, sleep, clock):
        settings = FeedSpineSettings(live_timeout_seconds=0.01)
        weather = _Source(FetchOutcome.of([{"id": "late"}]), delay=1.0)
        ladders = _ladders(settings, {"weather": weather}, sleep=sleep, clock=clock)

        result = await ladders.resolve("weather")

        assert result.tier is Tier.STATIC
        assert result.failures[0].failure is FailureKind.TIMEOUT

    def test_live_rung_named_after_source(self, settings, sleep, clock):
        ladders = _ladders(settings, sleep=sleep, clock=clock)
        assert [r.name for r in ladders.rungs("economic")][0] == "live:fred"
        assert [r.name for r in ladders.rungs("protests")][0] == "live:protests"

    def test_include_live_false_omits_live(self, settings, sleep, clock):
        ladders = _ladders(settings, sleep=sleep, clock=clock)
        assert [r.name for r in ladders.rungs("protests", include_live=False)] == ["generative:layers", "static"]

    @pytest.mark.asyncio
    async def test_concurrent_resolves_share_one_live_call(self, settings, sleep, clock):
        weather = _Source(FetchOutcome.of([{"id": "w"}]), delay=0.01)
        ladders = _ladders(settings, {"weather": weather}, sleep=sleep, clock=clock)

        a, b = await asyncio.gather(ladders.resolve("weather"), ladders.resolve("weather"))

        assert weather.calls == 1
        assert a is b


class TestEconomicBreaker:
    @pytest.mark.asyncio
    async def test_breaker_opens_after_three_empty_fetches(self, sleep, clock):
        settings = FeedSpineSettings(retry_policies={})
        fred = _Source(FetchOutcome())
        ladders = _ladders(settings, {"fred": fred}, sleep=sleep, clock=clock)

        for _ in range(3):
            await ladders.resolve("economic")
        result = await ladders.resolve("economic")

        assert fred.calls == 3
        assert result.tier is Tier.STATIC
        first = result.failures[0]
        assert first.failure is FailureKind.UPSTREAM_UNAVAILABLE
        assert "retry in 300s" in (first.message or "")

    @pytest.mark.asyncio
    async def test_breaker_open_is_not_retried(self, settings, sleep, clock):
        fred = _Source(FetchOutcome())
        ladders = _ladders(settings, {"fred": fred}, sleep=sleep, clock=clock)
        for _ in range(3):
            ladders.breaker("economic").record_failure()

        await ladders.resolve("economic")

        assert fred.calls == 0
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_breaker_recovers_after_timeout(self, settings, sleep, clock):
        fred = _Source(FetchOutcome.of([{"id": "WALCL", "value": 1}]))
        ladders = _ladders(settings, {"fred": fred}, sleep=sleep, clock=clock)
        for _ in range(3):
            ladders.breaker("economic").record_failure()

        clock.advance(300)
        result = await ladders.resolve("economic")

        assert result.tier is Tier.LIVE
        assert fred.calls == 1
