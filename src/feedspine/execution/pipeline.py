"""Category-chunked fetch pipeline: bounded fan-out over news categories.

WHY
───
The news load touches dozens of feeds spread over ~15 categories. Firing
them all at once floods the feed proxy; fetching them one by one leaves
the dashboard blank for a minute. Categories are therefore processed in
chunks of ``max_concurrency``: chunks run sequentially, categories inside
a chunk run concurrently, and partial results stream to the UI through a
``RenderFlushGate`` per category.

ARCHITECTURE
────────────
::

    CategoryFetchPipeline.run(categories)
      ├── chunk 1: [politics, tech, finance, gov, intel]   asyncio.gather
      ├── chunk 2: [energy, africa, ...]                   asyncio.gather
      └── …
            fetch_category(name, feeds)
              ├── drop disabled feeds   (0 left → DISABLED, no network)
              ├── fetcher(enabled, on_batch=gate.offer)
              ├── gate.close(final items)  trailing flush
              └── status: OK | EMPTY | FAILED

    ConcurrentFeedFetcher(fetch_feed)
      └── one task per feed, per-feed timeout, failures collected by name

Example::

    pipeline = CategoryFetchPipeline(ConcurrentFeedFetcher(fetch_rss), max_concurrency=5)
    results = await pipeline.run(FEEDS, on_render=sink.render_news)
    results["politics"].status  # CategoryStatus.OK
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Collection, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from feedspine.core.logging import get_logger
from feedspine.core.models import CategoryResult, CategoryStatus, FeedDescriptor, NewsItem
from feedspine.execution.render_gate import RenderFlushGate
from feedspine.execution.timeout import run_with_timeout_async

logger = get_logger(__name__)

BatchObserver = Callable[[list[NewsItem]], None]
RenderCallback = Callable[[str, list[NewsItem]], None]
FeedFetch = Callable[[FeedDescriptor], Awaitable[list[NewsItem]]]


@dataclass
class FeedBatchResult:
    """Union of a category's feed items plus the names of feeds that failed."""

    items: list[NewsItem] = field(default_factory=list)
    failures: set[str] = field(default_factory=set)


class CategoryFeedFetcher(Protocol):
    async def __call__(
        self,
        feeds: Sequence[FeedDescriptor],
        on_batch: BatchObserver | None = None,
    ) -> FeedBatchResult: ...


def newest_first(items: Sequence[NewsItem]) -> list[NewsItem]:
    return sorted(items, key=lambda item: item.pub_date, reverse=True)


class ConcurrentFeedFetcher:
    """Fetches every feed of one category concurrently.

    After each feed lands, the observer receives the union so far (newest
    first). A feed that raises or times out is recorded by name.
    """

    def __init__(
        self,
        fetch_feed: FeedFetch,
        *,
        timeout_seconds: float = 12.0,
        max_concurrency: int = 10,
    ):
        self._fetch_feed = fetch_feed
        self._timeout = timeout_seconds
        self._max_concurrency = max_concurrency

    async def __call__(
        self,
        feeds: Sequence[FeedDescriptor],
        on_batch: BatchObserver | None = None,
    ) -> FeedBatchResult:
        sem = asyncio.Semaphore(self._max_concurrency)
        result = FeedBatchResult()

        async def _run_one(feed: FeedDescriptor) -> None:
            async with sem:
                try:
                    items = await run_with_timeout_async(
                        self._fetch_feed(feed), self._timeout, operation=f"feed:{feed.name}"
                    )
                except Exception as exc:
                    result.failures.add(feed.name)
                    logger.warning("feed.fetch_failed", feed=feed.name, error=exc)
                    return
            if items:
                result.items.extend(items)
                if on_batch is not None:
                    on_batch(newest_first(result.items))

        await asyncio.gather(*(_run_one(feed) for feed in feeds))
        result.items = newest_first(result.items)
        return result


class CategoryFetchPipeline:
    """Chunked, concurrency-bounded fetch across news categories."""

    def __init__(
        self,
        fetcher: CategoryFeedFetcher,
        *,
        disabled_sources: Collection[str] = frozenset(),
        max_concurrency: int = 5,
        render_interval_seconds: float = 0.1,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._fetcher = fetcher
        self._disabled = disabled_sources
        self.max_concurrency = max_concurrency
        self.render_interval_seconds = render_interval_seconds

    def enabled_feeds(self, feeds: Sequence[FeedDescriptor]) -> list[FeedDescriptor]:
        return [feed for feed in feeds if feed.name not in self._disabled]

    def chunks(self, categories: Sequence[str]) -> list[list[str]]:
        """Split categories into consecutive chunks of at most ``max_concurrency``."""
        names = list(categories)
        return [
            names[start : start + self.max_concurrency]
            for start in range(0, len(names), self.max_concurrency)
        ]

    async def fetch_category(
        self,
        category: str,
        feeds: Sequence[FeedDescriptor],
        on_render: RenderCallback | None = None,
    ) -> CategoryResult:
        enabled = self.enabled_feeds(feeds)
        if not enabled:
            logger.info("pipeline.category_disabled", category=category, feeds=len(feeds))
            return CategoryResult(category=category, items=[], status=CategoryStatus.DISABLED)

        gate: RenderFlushGate[list[NewsItem]] | None = None
        if on_render is not None:
            gate = RenderFlushGate(
                lambda items: on_render(category, items),
                interval_seconds=self.render_interval_seconds,
            )

        try:
            batch = await self._fetcher(enabled, on_batch=gate.offer if gate else None)
        except Exception as exc:
            if gate is not None:
                gate.close()
            logger.error("pipeline.category_failed", category=category, error=exc)
            return CategoryResult(
                category=category,
                items=[],
                status=CategoryStatus.FAILED,
                failed_feeds=tuple(sorted(f.name for f in enabled)),
                fetched_feeds=len(enabled),
                error=str(exc),
            )

        if gate is not None:
            gate.close(batch.items)

        if batch.items:
            status = CategoryStatus.OK
        elif batch.failures:
            status = CategoryStatus.FAILED
        else:
            status = CategoryStatus.EMPTY

        return CategoryResult(
            category=category,
            items=batch.items,
            status=status,
            failed_feeds=tuple(sorted(batch.failures)),
            fetched_feeds=len(enabled),
        )

    async def run(
        self,
        categories: Mapping[str, Sequence[FeedDescriptor]],
        on_render: RenderCallback | None = None,
    ) -> dict[str, CategoryResult]:
        results: dict[str, CategoryResult] = {}
        chunks = self.chunks(list(categories))

        logger.info(
            "pipeline.start",
            categories=len(categories),
            chunks=len(chunks),
            max_concurrency=self.max_concurrency,
        )

        for chunk in chunks:
            settled = await asyncio.gather(
                *(self.fetch_category(name, categories[name], on_render) for name in chunk),
                return_exceptions=True,
            )
            for name, outcome in zip(chunk, settled):
                if isinstance(outcome, BaseException):
                    logger.error("pipeline.category_crashed", category=name, error=outcome)
                    outcome = CategoryResult(
                        category=name, items=[], status=CategoryStatus.FAILED, error=str(outcome)
                    )
                results[name] = outcome

        logger.info(
            "pipeline.complete",
            ok=sum(r.status is CategoryStatus.OK for r in results.values()),
            failed=[n for n, r in results.items() if r.status is CategoryStatus.FAILED],
        )
        return results


__all__ = [
    "BatchObserver",
    "RenderCallback",
    "FeedFetch",
    "FeedBatchResult",
    "CategoryFeedFetcher",
    "ConcurrentFeedFetcher",
    "CategoryFetchPipeline",
    "newest_first",
]
