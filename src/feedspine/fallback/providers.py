"""Generative provider protocol and the OpenAI-compatible HTTP backend.

ARCHITECTURE
────────────
::

    GenerativeProvider (Protocol)
      ├── .name / .configured
      └── async .complete(messages, temperature=, max_tokens=) → LLMResponse

    ChatCompletionsProvider   : POST {model, max_tokens, temperature, messages}
                                to an OpenAI-compatible endpoint via httpx
    MockProvider              : deterministic provider for tests

    build_providers(settings) → [xai, openai]   (order = ladder order)

A provider without an API key reports ``configured = False`` and is
skipped by the generative source without making a request.

Tags:
    generative, llm, provider-interface, httpx
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import SecretStr

from feedspine.core.errors import MissingConfigError, NetworkError, ParseError, RateLimitError
from feedspine.core.logging import get_logger
from feedspine.core.settings import FeedSpineSettings

logger = get_logger(__name__)


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class LLMResponse:
    """Response from a generative provider.

    Attributes:
        content: Generated text (expected to hold a JSON object).
        model: Model identifier used.
        provider: Provider name (``"xai"``, ``"openai"``).
        usage: Token usage statistics.
    """

    content: str
    model: str
    provider: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)


@runtime_checkable
class GenerativeProvider(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ) -> LLMResponse: ...


class ChatCompletionsProvider:
    """OpenAI-compatible ``/chat/completions`` client.

    Example:
        provider = ChatCompletionsProvider("xai", XAI_URL, "grok-3-mini-fast", api_key)
        response = await provider.complete([Message.user(prompt)], max_tokens=3000)
    """

    def __init__(
        self,
        name: str,
        url: str,
        model: str,
        api_key: SecretStr | str | None,
        *,
        enabled: bool = True,
        client: httpx.AsyncClient | None = None,
    ):
        self.name = name
        self.url = url
        self.model = model
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self.enabled = enabled
        self._client = client

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self._api_key)

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        if not self.configured:
            raise MissingConfigError(f"{self.name}_api_key").with_context(provider=self.name)

        body = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        if self._client is not None:
            resp = await self._client.post(self.url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient() as client:
                resp = await client.post(self.url, json=body, headers=headers)

        if resp.status_code == 429:
            raise RateLimitError(f"{self.name} rate limited").with_context(
                provider=self.name, url=self.url
            )
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"{self.name} returned HTTP {resp.status_code}", cause=exc
            ).with_context(provider=self.name, url=self.url) from exc

        return self._parse_response(resp)

    def _parse_response(self, resp: httpx.Response) -> LLMResponse:
        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ParseError(f"{self.name} returned an unexpected body", cause=exc).with_context(
                provider=self.name
            ) from exc
        if not isinstance(content, str) or not content.strip():
            raise ParseError(f"{self.name} returned empty content").with_context(provider=self.name)

        usage = data.get("usage") or {}
        return LLMResponse(
            content=content.strip(),
            model=data.get("model", self.model),
            provider=self.name,
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            ),
        )


@dataclass
class MockProvider:
    """Deterministic provider for tests.

    Resolution order: ``error`` (raised), next ``sequence`` entry, then
    ``default_response``. ``delay`` simulates a slow upstream.
    """

    name: str = "mock"
    default_response: str = "{}"
    sequence: list[str] = field(default_factory=list)
    error: Exception | None = None
    delay: float = 0.0
    is_configured: bool = True
    calls: list[dict[str, Any]] = field(default_factory=list, repr=False)

    @property
    def configured(self) -> bool:
        return self.is_configured

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        self.calls.append(
            {"prompt": messages[-1].content if messages else "", "max_tokens": max_tokens}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        content = self.sequence.pop(0) if self.sequence else self.default_response
        return LLMResponse(content=content, model="mock-model", provider=self.name)


def build_providers(
    settings: FeedSpineSettings, *, client: httpx.AsyncClient | None = None
) -> list[ChatCompletionsProvider]:
    """Provider chain in ladder order: xAI first, then OpenAI."""
    return [
        ChatCompletionsProvider(
            "xai",
            settings.xai_url,
            settings.xai_model,
            settings.xai_api_key,
            enabled=settings.xai_enabled,
            client=client,
        ),
        ChatCompletionsProvider(
            "openai",
            settings.openai_url,
            settings.openai_model,
            settings.openai_api_key,
            client=client,
        ),
    ]


__all__ = [
    "Role",
    "Message",
    "TokenUsage",
    "LLMResponse",
    "GenerativeProvider",
    "ChatCompletionsProvider",
    "MockProvider",
    "build_providers",
]
