"""
Generative approximation rung: provider chain, bundle cache and parsing.

WHY
───
When a live upstream is down, a chat-completion model can produce a
plausible approximation of the data. One call covers a whole *bundle*
(every market section, or every map layer), so the result is cached per
bundle and shared by every domain that reads from it. Concurrent readers
join the pending call instead of issuing their own.

ARCHITECTURE
────────────
::

    GenerativeSource.section("market", "crypto")
      └── fetch_bundle("market")
            ├── DomainCache hit (age < TTL)        → cached payload
            └── SingleFlight.do("market", …)
                  └── for provider in [xai, openai]:
                        ├── skip when not configured
                        ├── complete() under a hard timeout
                        ├── parse_generative_payload()  (fail closed)
                        └── first success → cache.set(ttl) and return
                  all failed → None (nothing cached)

Guardrails:
    - Only successful payloads are cached.
    - Malformed output is a provider failure, never an exception to the
      caller.

Tags:
    generative, cache, single-flight, parsing, fallback
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from feedspine.core.cache import DomainCache, SingleFlight
from feedspine.core.errors import ParseError, classify_failure
from feedspine.core.logging import get_logger
from feedspine.core.models import FetchOutcome
from feedspine.core.timestamps import Clock, monotonic, utc_now
from feedspine.execution.timeout import run_with_timeout_async
from feedspine.fallback.prompts import (
    PromptBuilder,
    fred_prompt,
    layers_prompt,
    market_prompt,
    supply_chain_prompt,
    trade_prompt,
)
from feedspine.fallback.providers import GenerativeProvider, Message
from feedspine.fallback.schemas import validate_section

logger = get_logger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*|\s*```$")


# =============================================================================
# PARSING
# =============================================================================


def strip_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    return _FENCE.sub("", raw.strip()).strip()


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, dict, str)):
        return len(value) > 0
    return True


def satisfies(payload: dict[str, Any], required: Sequence[str], *, require_all: bool) -> bool:
    """Whether ``payload`` carries the required top-level keys with content."""
    if not required:
        return True
    hits = [_present(payload.get(key)) for key in required]
    return all(hits) if require_all else any(hits)


def parse_generative_payload(
    raw: str,
    required: Sequence[str] = (),
    *,
    require_all: bool = True,
) -> dict[str, Any]:
    """
    Parse model output into a JSON object.

    Tolerates a markdown fence and chatter around the object: if the
    cleaned text is not valid JSON, the span from the first ``{`` to the
    last ``}`` is tried.

    Raises:
        ParseError: Not a JSON object, or required keys missing/empty.
    """
    text = strip_fences(raw)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ParseError("No JSON object in generative response") from None
        try:
            payload = json.loads(text[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ParseError("Malformed JSON in generative response", cause=exc) from exc

    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    if not satisfies(payload, required, require_all=require_all):
        mode = "all of" if require_all else "any of"
        raise ParseError(f"Generative response lacks {mode} {list(required)}")
    return payload


# =============================================================================
# BUNDLES
# =============================================================================


@dataclass(frozen=True)
class BundleSpec:
    """One cached generative call and how to judge its output."""

    key: str
    sections: tuple[str, ...]
    required: tuple[str, ...]
    require_all: bool
    ttl_seconds: float
    timeout_seconds: float
    max_tokens: int
    temperature: float
    prompt: PromptBuilder


LAYER_SECTIONS = (
    "protests",
    "military",
    "weather",
    "cyber",
    "hunger",
    "outages",
    "flights",
    "naturalResources",
)

BUNDLES: dict[str, BundleSpec] = {
    "market": BundleSpec(
        key="market",
        sections=("stocks", "commodities", "crypto", "sectors"),
        required=("stocks", "commodities", "crypto", "sectors"),
        require_all=True,
        ttl_seconds=10 * 60,
        timeout_seconds=15,
        max_tokens=3000,
        temperature=0.2,
        prompt=market_prompt,
    ),
    "layers": BundleSpec(
        key="layers",
        sections=LAYER_SECTIONS,
        required=LAYER_SECTIONS,
        require_all=False,
        ttl_seconds=15 * 60,
        timeout_seconds=20,
        max_tokens=4000,
        temperature=0.3,
        prompt=layers_prompt,
    ),
    "fred": BundleSpec(
        key="fred",
        sections=("series",),
        required=("series",),
        require_all=True,
        ttl_seconds=10 * 60,
        timeout_seconds=30,
        max_tokens=2000,
        temperature=0.2,
        prompt=fred_prompt,
    ),
    "trade": BundleSpec(
        key="trade",
        sections=("restrictions", "tariffs", "flows", "barriers"),
        required=("restrictions",),
        require_all=True,
        ttl_seconds=10 * 60,
        timeout_seconds=30,
        max_tokens=2500,
        temperature=0.2,
        prompt=trade_prompt,
    ),
    "supply_chain": BundleSpec(
        key="supply_chain",
        sections=("shipping", "chokepoints", "minerals"),
        required=("shipping", "chokepoints", "minerals"),
        require_all=False,
        ttl_seconds=10 * 60,
        timeout_seconds=30,
        max_tokens=2500,
        temperature=0.2,
        prompt=supply_chain_prompt,
    ),
}


@dataclass(frozen=True)
class GenerativePayload:
    """A validated bundle: section name → list of item dicts."""

    bundle: str
    provider: str
    model: str
    sections: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    def section(self, name: str) -> list[dict[str, Any]]:
        return list(self.sections.get(name, []))


# =============================================================================
# SOURCE
# =============================================================================


class GenerativeSource:
    """
    Provider chain behind one cache slot per bundle.

    Example:
        source = GenerativeSource(build_providers(settings, client=client))
        outcome = await source.section("market", "crypto")
    """

    def __init__(
        self,
        providers: Sequence[GenerativeProvider],
        *,
        bundles: dict[str, BundleSpec] | None = None,
        cache: DomainCache[GenerativePayload] | None = None,
        clock: Clock = monotonic,
    ):
        self.providers = list(providers)
        self.bundles = dict(bundles or BUNDLES)
        self.cache: DomainCache[GenerativePayload] = cache if cache is not None else DomainCache(clock=clock)
        self._flight: SingleFlight[GenerativePayload | None] = SingleFlight()

    @property
    def configured(self) -> bool:
        return any(p.configured for p in self.providers)

    async def fetch_bundle(self, key: str) -> GenerativePayload | None:
        """Cached payload for ``key``, or one provider-chain run shared by all callers."""
        spec = self.bundles[key]
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("generative.cache_hit", bundle=key, age=self.cache.age(key))
            return cached
        return await self._flight.do(key, lambda: self._generate(spec))

    async def section(self, bundle: str, section: str | None) -> FetchOutcome:
        """One section of a bundle as a ladder outcome.

        ``section=None`` hands back the whole bundle as a single item, for
        panels (trade policy, supply chain) that render every section together.
        """
        payload = await self.fetch_bundle(bundle)
        if payload is None:
            return FetchOutcome(message=f"No generative provider produced '{bundle}'")
        if section is None:
            items: list[Any] = [dict(payload.sections)]
        else:
            items = payload.section(section)
        return FetchOutcome(items=items, provider=payload.provider)

    async def _generate(self, spec: BundleSpec) -> GenerativePayload | None:
        prompt = spec.prompt(self._today())
        for provider in self.providers:
            if not provider.configured:
                logger.debug("generative.provider_skipped", bundle=spec.key, provider=provider.name)
                continue
            try:
                response = await run_with_timeout_async(
                    provider.complete(
                        [Message.user(prompt)],
                        temperature=spec.temperature,
                        max_tokens=spec.max_tokens,
                    ),
                    spec.timeout_seconds,
                    operation=f"generative:{spec.key}:{provider.name}",
                )
                payload = self._accept(spec, response.content, provider.name, response.model)
            except Exception as exc:
                logger.warning(
                    "generative.provider_failed",
                    bundle=spec.key,
                    provider=provider.name,
                    kind=classify_failure(exc).value,
                    error=exc,
                )
                continue

            self.cache.set(spec.key, payload, ttl_seconds=spec.ttl_seconds)
            logger.info(
                "generative.bundle_ready",
                bundle=spec.key,
                provider=provider.name,
                sections={name: len(items) for name, items in payload.sections.items()},
            )
            return payload

        logger.warning("generative.chain_exhausted", bundle=spec.key)
        return None

    def _accept(self, spec: BundleSpec, content: str, provider: str, model: str) -> GenerativePayload:
        raw = parse_generative_payload(content, spec.required, require_all=spec.require_all)
        sections = {name: validate_section(name, raw.get(name)) for name in spec.sections}
        # A section whose items were all invalid counts as missing.
        if not satisfies(sections, spec.required, require_all=spec.require_all):
            raise ParseError(f"No valid items in required sections of '{spec.key}'")
        return GenerativePayload(bundle=spec.key, provider=provider, model=model, sections=sections)

    @staticmethod
    def _today() -> date:
        return utc_now().date()


__all__ = [
    "BUNDLES",
    "LAYER_SECTIONS",
    "BundleSpec",
    "GenerativePayload",
    "GenerativeSource",
    "parse_generative_payload",
    "satisfies",
    "strip_fences",
]
