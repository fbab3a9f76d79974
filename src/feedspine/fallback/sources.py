"""Registry of live source fetchers, keyed by source name.

Fetchers live outside this package (one per upstream API). The core only
needs a zero-argument coroutine returning a ``FetchOutcome`` or a plain
sequence of items, and wraps the latter.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from feedspine.core.errors import MissingConfigError
from feedspine.core.models import FetchOutcome

SourceFetcher = Callable[[], Awaitable[FetchOutcome | Sequence[Any]]]


class SourceRegistry:
    """Name → live fetcher.

    Example:
        sources = SourceRegistry({"weather": fetch_weather_alerts})
        outcome = await sources.fetch("weather")
    """

    def __init__(self, fetchers: Mapping[str, SourceFetcher] | None = None):
        self._fetchers: dict[str, SourceFetcher] = dict(fetchers or {})

    def register(self, name: str, fetcher: SourceFetcher) -> None:
        self._fetchers[name] = fetcher

    def names(self) -> list[str]:
        return sorted(self._fetchers)

    def __contains__(self, name: object) -> bool:
        return name in self._fetchers

    async def fetch(self, name: str) -> FetchOutcome:
        """Run the fetcher for ``name``.

        Raises:
            MissingConfigError: No fetcher is registered under ``name``.
        """
        fetcher = self._fetchers.get(name)
        if fetcher is None:
            raise MissingConfigError(f"source:{name}", f"No fetcher registered for source '{name}'")
        result = await fetcher()
        if isinstance(result, FetchOutcome):
            return result
        return FetchOutcome.of(result)


__all__ = ["SourceFetcher", "SourceRegistry"]
