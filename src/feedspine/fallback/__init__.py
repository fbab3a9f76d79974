"""Fallback ladders: live source → generative approximation → embedded dataset."""

from feedspine.fallback.domains import DOMAINS, DomainLadders, DomainSpec
from feedspine.fallback.generative import (
    BUNDLES,
    BundleSpec,
    GenerativePayload,
    GenerativeSource,
    parse_generative_payload,
    strip_fences,
)
from feedspine.fallback.ladder import (
    Attempt,
    FallbackLadder,
    LadderResult,
    Rung,
    Tier,
    generative_rung,
    live_rung,
    static_rung,
)
from feedspine.fallback.providers import (
    ChatCompletionsProvider,
    GenerativeProvider,
    LLMResponse,
    Message,
    MockProvider,
    build_providers,
)
from feedspine.fallback.sources import SourceRegistry

__all__ = [
    "DOMAINS",
    "DomainLadders",
    "DomainSpec",
    "BUNDLES",
    "BundleSpec",
    "GenerativePayload",
    "GenerativeSource",
    "parse_generative_payload",
    "strip_fences",
    "Attempt",
    "FallbackLadder",
    "LadderResult",
    "Rung",
    "Tier",
    "generative_rung",
    "live_rung",
    "static_rung",
    "ChatCompletionsProvider",
    "GenerativeProvider",
    "LLMResponse",
    "Message",
    "MockProvider",
    "build_providers",
    "SourceRegistry",
]
