"""Tests for generative payload parsing and the bundle-caching source."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from feedspine.core.errors import ParseError, RateLimitError
from feedspine.fallback.generative import (
    BUNDLES,
    BundleSpec,
    GenerativeSource,
    parse_generative_payload,
    satisfies,
    strip_fences,
)
from feedspine.fallback.prompts import PROMPTS
from feedspine.fallback.providers import ChatCompletionsProvider, MockProvider


# ── Helpers ──────────────────────────────────────────────────────────────

MARKET = {
    "stocks": [{"symbol": "^GSPC", "name": "S&P 500", "display": "SPX", "price": 5800, "change": 0.3}],
    "commodities": [{"symbol": "GC=F", "name": "Gold", "display": "GOLD", "price": 2950, "change": 0.3}],
    "crypto": [{"name": "Bitcoin", "symbol": "BTC", "price": 87000, "change": 1.5}],
    "sectors": [{"name": "Tech", "change": 0.5}],
}

LAYERS = {
    "weather": [
        {"id": "w-1", "event": "Heat Wave", "lat": 28.6, "lon": 77.2},
        {"id": "w-bad", "event": "Off the map", "lat": 200, "lon": 77.2},
    ],
    "protests": [],
}


def _market(**overrides) -> str:
    return json.dumps({**MARKET, **overrides})


def _fast_bundle(key: str, timeout: float) -> dict[str, BundleSpec]:
    spec = BUNDLES[key]
    return {
        key: BundleSpec(
            key=spec.key,
            sections=spec.sections,
            required=spec.required,
            require_all=spec.require_all,
            ttl_seconds=spec.ttl_seconds,
            timeout_seconds=timeout,
            max_tokens=spec.max_tokens,
            temperature=spec.temperature,
            prompt=spec.prompt,
        )
    }


# ── Parsing ──────────────────────────────────────────────────────────────


class TestParsing:
    def test_strip_fences(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_fences('{"a": 1}') == '{"a": 1}'

    def test_chatter_around_object(self):
        raw = 'Here is the data you asked for:\n{"series": [{"id": "X"}]}\nLet me know!'
        assert parse_generative_payload(raw, ["series"]) == {"series": [{"id": "X"}]}

    def test_fenced_object(self):
        assert parse_generative_payload('```\n{"a": [1]}\n```', ["a"]) == {"a": [1]}

    @pytest.mark.parametrize("raw", ["no json here", "{broken: ", "[1, 2, 3]"])
    def test_not_an_object(self, raw):
        with pytest.raises(ParseError):
            parse_generative_payload(raw)

    def test_required_all(self):
        with pytest.raises(ParseError, match="all of"):
            parse_generative_payload('{"stocks": [1], "crypto": []}', ["stocks", "crypto"])

    def test_required_any(self):
        payload = parse_generative_payload('{"weather": [1], "protests": []}', ["weather", "protests"], require_all=False)
        assert payload["weather"] == [1]
        with pytest.raises(ParseError, match="any of"):
            parse_generative_payload('{"weather": []}', ["weather", "protests"], require_all=False)

    def test_satisfies_treats_empty_containers_as_missing(self):
        assert not satisfies({"a": "", "b": {}}, ["a", "b"], require_all=False)
        assert satisfies({"a": 0}, ["a"], require_all=True)

    def test_every_bundle_has_a_prompt(self):
        from datetime import date

        for key, spec in BUNDLES.items():
            prompt = spec.prompt(date(2025, 6, 1))
            assert "2025-06-01" in prompt
            assert PROMPTS[key] is spec.prompt


# ── GenerativeSource ─────────────────────────────────────────────────────


class TestGenerativeSource:
    @pytest.mark.asyncio
    async def test_section_from_first_provider(self, clock):
        provider = MockProvider(name="xai", default_response=_market())
        source = GenerativeSource([provider], clock=clock)

        outcome = await source.section("market", "crypto")

        assert outcome.items == [{"name": "Bitcoin", "symbol": "BTC", "price": 87000.0, "change": 1.5}]
        assert outcome.provider == "xai"
        assert provider.calls[0]["max_tokens"] == 3000

    @pytest.mark.asyncio
    async def test_bundle_cached_across_sections(self, clock):
        provider = MockProvider(default_response=_market())
        source = GenerativeSource([provider], clock=clock)

        await source.section("market", "stocks")
        clock.advance(2)
        await source.section("market", "commodities")
        await source.section("market", "sectors")

        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires_after_ttl(self, clock):
        provider = MockProvider(default_response=_market())
        source = GenerativeSource([provider], clock=clock)

        await source.section("market", "crypto")
        clock.advance(BUNDLES["market"].ttl_seconds + 0.001)
        await source.section("market", "crypto")

        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_crypto_twice_makes_one_https_call(self, clock):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json={"model": "grok-3-mini-fast", "choices": [{"message": {"content": _market()}}]}
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = ChatCompletionsProvider("xai", "https://api.x.ai/v1/chat/completions", "grok-3-mini-fast", "key", client=client)
            source = GenerativeSource([provider], clock=clock)

            first = await source.section("market", "crypto")
            clock.advance(2)
            second = await source.section("market", "crypto")

        assert len(requests) == 1
        assert first.items == second.items
        assert first.items[0]["symbol"] == "BTC"

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_generation(self, clock):
        provider = MockProvider(default_response=_market(), delay=0.01)
        source = GenerativeSource([provider], clock=clock)

        results = await asyncio.gather(
            source.section("market", "stocks"),
            source.section("market", "commodities"),
            source.section("market", "crypto"),
        )

        assert provider.call_count == 1
        assert all(r.items for r in results)

    @pytest.mark.asyncio
    async def test_second_provider_after_failure(self, clock):
        xai = MockProvider(name="xai", error=RateLimitError("429"))
        openai = MockProvider(name="openai", default_response=_market())
        source = GenerativeSource([xai, openai], clock=clock)

        outcome = await source.section("market", "stocks")

        assert outcome.provider == "openai"
        assert xai.call_count == openai.call_count == 1

    @pytest.mark.asyncio
    async def test_unconfigured_provider_is_skipped(self, clock):
        xai = MockProvider(name="xai", is_configured=False)
        openai = MockProvider(name="openai", default_response=_market())
        source = GenerativeSource([xai, openai], clock=clock)

        await source.section("market", "stocks")

        assert xai.call_count == 0
        assert source.configured

    @pytest.mark.asyncio
    async def test_invalid_payload_not_cached(self, clock):
        provider = MockProvider(sequence=[_market(crypto=[]), _market()])
        source = GenerativeSource([provider], clock=clock)

        miss = await source.section("market", "crypto")
        assert miss.is_empty
        assert "market" in (miss.message or "")

        hit = await source.section("market", "crypto")
        assert hit.items
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_items_failing_validation_are_dropped(self, clock):
        provider = MockProvider(default_response=json.dumps(LAYERS))
        source = GenerativeSource([provider], clock=clock)

        outcome = await source.section("layers", "weather")

        assert [item["id"] for item in outcome.items] == ["w-1"]
        assert (await source.section("layers", "protests")).is_empty

    @pytest.mark.asyncio
    async def test_all_items_invalid_counts_as_missing(self, clock):
        provider = MockProvider(default_response=json.dumps({"weather": [{"id": "x", "lat": 999, "lon": 0}]}))
        source = GenerativeSource([provider], clock=clock)
        assert (await source.section("layers", "weather")).is_empty

    @pytest.mark.asyncio
    async def test_whole_bundle_as_one_item(self, clock):
        payload = {"restrictions": [{"country": "China", "measure": "Rare Earth Export Controls"}]}
        provider = MockProvider(default_response=json.dumps(payload))
        source = GenerativeSource([provider], clock=clock)

        outcome = await source.section("trade", None)

        assert len(outcome.items) == 1
        assert set(outcome.items[0]) == {"restrictions", "tariffs", "flows", "barriers"}
        assert outcome.items[0]["restrictions"][0]["country"] == "China"

    @pytest.mark.asyncio
    async def test_slow_provider_times_out_and_falls_through(self, clock):
        slow = MockProvider(name="xai", default_response=_market(), delay=1.0)
        fast = MockProvider(name="openai", default_response=_market())
        source = GenerativeSource([slow, fast], bundles=_fast_bundle("market", 0.01), clock=clock)

        outcome = await source.section("market", "stocks")

        assert outcome.provider == "openai"

    @pytest.mark.asyncio
    async def test_no_providers(self, clock):
        source = GenerativeSource([], clock=clock)
        assert not source.configured
        assert (await source.section("layers", "weather")).is_empty
