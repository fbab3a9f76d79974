"""
Load driver: composes scheduler, pipeline, ladders and correlation into one cycle.

WHY
───
The dashboard subscribes to dozens of domains, each with its own upstream
and failure modes. The driver decides *which* domains a variant loads,
runs each as a guarded task, pushes whatever each ladder settled on to
the render sink, and finally makes sure no enabled layer is left blank.

ARCHITECTURE
────────────
::

    load_all_data()
      ├── build_tasks()              variant + enabled layers → [SourceTask]
      ├── GuardedScheduler.run_all   fan-out / fan-in, failures isolated
      │     ├── news          CategoryFetchPipeline → render_news, baselines,
      │     │                 keyword tracker, flash map
      │     ├── markets       stocks (halts on skipped) → commodities/sectors/crypto
      │     ├── intelligence  outages, protests, conflicts, military → UCDP
      │     │                 → population exposure enrichment
      │     └── <domain>      DomainLadders.resolve → _apply
      ├── run_correlation_analysis()   geo-convergence + keyword spikes
      └── ensure_populated()           after populate_delay_seconds
                                       generative + static for empty layers

    _apply(domain, LadderResult)
      ├── items   → set_dataset, set_layer_ready(True), freshness update/error
      ├── skipped → show_error("API key not configured")
      └── none    → show_error("unavailable"), set_layer_ready(False)

BEST PRACTICES
──────────────
- Every loader is safe to call on its own (per-layer reload) and inside
  a full cycle; the scheduler guard name is the domain or layer name.
- Loaders never raise for upstream failures; the ladder resolves them.

Tags:
    orchestration, driver, load-cycle, variants
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from feedspine.core.baseline import BaselineStore
from feedspine.core.cache import PersistentCache
from feedspine.core.errors import MissingConfigError
from feedspine.core.flash_cache import FlashCache
from feedspine.core.logging import cycle_context, get_logger
from feedspine.core.models import (
    CategoryResult,
    CategoryStatus,
    FeedDescriptor,
    GeoEvent,
    MilitaryTrack,
    NewsItem,
    SourceTask,
)
from feedspine.core.settings import FeedSpineSettings, SiteVariant
from feedspine.core.timestamps import Clock, monotonic, parse_timestamp
from feedspine.correlation.engine import CorrelationEngine
from feedspine.correlation.geo import GeoConvergenceDetector, dedupe_nearby
from feedspine.correlation.signals import SignalHistory
from feedspine.execution.pipeline import CategoryFetchPipeline, ConcurrentFeedFetcher, FeedFetch
from feedspine.execution.retry import Sleep
from feedspine.execution.scheduler import CycleReport, GuardedScheduler, TaskReport
from feedspine.fallback.domains import DomainLadders
from feedspine.fallback.generative import GenerativeSource
from feedspine.fallback.ladder import LadderResult, Tier
from feedspine.fallback.providers import GenerativeProvider
from feedspine.fallback.sources import SourceRegistry
from feedspine.orchestration.hotspots import find_flash_location
from feedspine.orchestration.sinks import (
    FreshnessSink,
    RecordingFreshnessSink,
    RecordingRenderSink,
    RenderSink,
)
from feedspine.orchestration.state import LoaderState

logger = get_logger(__name__)

ExposureEnricher = Callable[[list[GeoEvent]], Awaitable[list[Any]]]

# Layer-gated tasks scheduled for every variant except ``happy``.
LAYER_TASKS: tuple[tuple[str, str], ...] = (
    ("natural", "earthquakes"),
    ("weather", "weather"),
    ("outages", "outages"),
    ("flights", "flights"),
    ("cyber_threats", "cyber_threats"),
    ("hunger", "hunger"),
    ("natural_resources", "natural_resources"),
    ("population", "population"),
)

# Layer-backed domains the ensure-populated sweep fills when still empty.
SWEEP_DOMAINS: tuple[str, ...] = (
    "protests",
    "military",
    "weather",
    "cyber_threats",
    "outages",
    "flights",
    "hunger",
    "natural_resources",
    "fires",
)

MAX_EXPOSURE_EVENTS = 10


async def _no_feed_fetcher(feed: FeedDescriptor) -> list[NewsItem]:
    raise MissingConfigError("fetch_feed", f"No feed fetcher configured (feed '{feed.name}')")


def to_geo_events(items: Iterable[Any], event_type: str) -> list[GeoEvent]:
    """Normalize dataset items into GeoEvents; items without coordinates are skipped."""
    events = []
    for index, item in enumerate(items):
        if isinstance(item, GeoEvent):
            events.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        try:
            lat, lon = float(item["lat"]), float(item["lon"])
        except (KeyError, TypeError, ValueError):
            continue
        when = next(
            (item[k] for k in ("time", "date", "pubDate", "occurredAt", "timestamp") if item.get(k)),
            None,
        )
        events.append(
            GeoEvent(
                id=str(item.get("id") or f"{event_type}-{index}"),
                lat=lat,
                lon=lon,
                type=event_type,
                time=parse_timestamp(when),
                title=str(item.get("title") or item.get("name") or ""),
            )
        )
    return events


def to_tracks(items: Iterable[Any], kind: str = "aircraft") -> list[MilitaryTrack]:
    tracks = []
    for index, item in enumerate(items):
        if isinstance(item, MilitaryTrack):
            tracks.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        try:
            lat, lon = float(item["lat"]), float(item["lon"])
        except (KeyError, TypeError, ValueError):
            continue
        tracks.append(
            MilitaryTrack(
                id=str(item.get("id") or f"{kind}-{index}"),
                callsign=str(item.get("callsign") or item.get("name") or ""),
                lat=lat,
                lon=lon,
                origin=str(item.get("origin") or item.get("country") or ""),
                kind=kind,
                platform=str(item.get("type") or ""),
                observed_at=parse_timestamp(item.get("timestamp")),
            )
        )
    return tracks


class LoadDriver:
    """
    Runs the dashboard's load cycle for one site variant.

    Example:
        driver = LoadDriver(
            settings,
            sources=SourceRegistry({"weather": fetch_weather}),
            feeds=FEEDS,
            fetch_feed=fetch_rss,
            providers=build_providers(settings, client=client),
            render=dashboard,
        )
        await driver.load_all_data()
    """

    def __init__(
        self,
        settings: FeedSpineSettings,
        *,
        sources: SourceRegistry | None = None,
        feeds: Mapping[str, Sequence[FeedDescriptor]] | None = None,
        intel_feeds: Sequence[FeedDescriptor] = (),
        fetch_feed: FeedFetch | None = None,
        providers: Sequence[GenerativeProvider] = (),
        render: RenderSink | None = None,
        freshness: FreshnessSink | None = None,
        state: LoaderState | None = None,
        persistent: PersistentCache | None = None,
        enrich_exposure: ExposureEnricher | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = monotonic,
    ):
        self.settings = settings
        self.state = state if state is not None else LoaderState(learning_mode=settings.learning_mode)
        self.render: RenderSink = render if render is not None else RecordingRenderSink()
        self.freshness: FreshnessSink = freshness if freshness is not None else RecordingFreshnessSink()
        self.feeds = dict(feeds or {})
        self.intel_feeds = list(intel_feeds)
        self._sleep = sleep
        self._enrich_exposure = enrich_exposure

        self.scheduler = GuardedScheduler(self.state.in_flight)
        self.baselines = BaselineStore(
            window_size=settings.baseline_window,
            min_samples=settings.baseline_min_samples,
            persistent=persistent,
        )
        self.flash_cache = FlashCache(settings.flash_cooldown_seconds, clock=clock)
        self.generative = GenerativeSource(providers, clock=clock)
        self.ladders = DomainLadders(
            settings, sources if sources is not None else SourceRegistry(), self.generative, sleep=sleep, clock=clock
        )
        self.pipeline = CategoryFetchPipeline(
            ConcurrentFeedFetcher(fetch_feed or _no_feed_fetcher, timeout_seconds=settings.feed_timeout_seconds),
            disabled_sources=settings.disabled_sources,
            max_concurrency=settings.category_cap,
            render_interval_seconds=settings.render_interval_ms / 1000,
        )
        self.history = SignalHistory()
        self.history.subscribe(self.render.show_signals)
        self.engine = CorrelationEngine(
            self.baselines,
            history=self.history,
            convergence=GeoConvergenceDetector(
                settings.convergence_radius_km, settings.convergence_window_hours
            ),
            learning_mode=lambda: self.state.learning_mode,
        )

        self._layer_loaders: dict[str, Callable[[], Awaitable[Any]]] = {
            "natural": self.load_earthquakes,
            "fires": self.load_fires,
            "weather": self.load_weather,
            "outages": self.load_outages,
            "cyber_threats": self.load_cyber_threats,
            "protests": self.load_protests,
            "flights": self.load_flights,
            "military": self.load_military,
            "ais": self.load_vessels,
            "hunger": self.load_hunger,
            "natural_resources": self.load_natural_resources,
            "population": self.load_population,
        }

    @property
    def destroyed(self) -> bool:
        return self.scheduler.destroyed

    def destroy(self) -> None:
        self.scheduler.destroy()

    # =========================================================================
    # CYCLE
    # =========================================================================

    def build_tasks(self) -> list[SourceTask]:
        """Named tasks for the configured variant and enabled layers."""
        variant = self.settings.site_variant
        tasks = [SourceTask("news", self.load_news)]

        if variant is not SiteVariant.HAPPY:
            tasks += [
                SourceTask("markets", self.load_markets),
                SourceTask("predictions", self.load_predictions),
                SourceTask("economic", self.load_economic),
            ]
        if variant in (SiteVariant.FULL, SiteVariant.FINANCE):
            tasks += [
                SourceTask("trade_policy", self.load_trade_policy),
                SourceTask("supply_chain", self.load_supply_chain),
            ]
        if variant is SiteVariant.FULL:
            tasks.append(SourceTask("intelligence", self.load_intelligence))
            if self.settings.layer_enabled("fires"):
                tasks.append(SourceTask("firms", self.load_fires))
        if variant is not SiteVariant.HAPPY:
            tasks += [
                SourceTask(layer, self._layer_loaders[layer])
                for layer, _ in LAYER_TASKS
                if self.settings.layer_enabled(layer)
            ]
        return tasks

    async def load_all_data(self) -> CycleReport:
        variant = self.settings.site_variant
        with cycle_context(variant.value):
            report = await self.scheduler.run_all(self.build_tasks())
            await self.run_correlation_analysis()

            if variant is not SiteVariant.HAPPY and not self.destroyed:
                await self._sleep(self.settings.populate_delay_seconds)
                if not self.destroyed:
                    await self.ensure_populated()
        return report

    async def load_data_for_layer(self, layer: str) -> TaskReport:
        """Reload one map layer under the layer's own guard."""
        loader = self._layer_loaders[layer]

        async def run() -> None:
            self.render.set_layer_loading(layer, True)
            try:
                await loader()
            finally:
                self.render.set_layer_loading(layer, False)

        return await self.scheduler.run_guarded(layer, run)

    async def run_correlation_analysis(self) -> list[Any]:
        try:
            return await self.engine.run_pass(self.state.seen_cluster_keys)
        except Exception as exc:
            logger.error("correlation.pass_failed", error=exc, exc_info=True)
            return []

    async def ensure_populated(self) -> list[str]:
        """Fill every enabled, still-empty sweep domain from its fallback rungs."""
        pending = []
        for domain in SWEEP_DOMAINS:
            spec = self.ladders.spec(domain)
            if spec.layer and not self.settings.layer_enabled(spec.layer):
                continue
            if self.state.is_empty(domain):
                pending.append(domain)
        if not pending:
            return []

        logger.info("driver.ensure_populated", domains=pending)
        results = await asyncio.gather(
            *(self.ladders.resolve(domain, include_live=False) for domain in pending)
        )
        filled = []
        for domain, result in zip(pending, results):
            self._apply(domain, result)
            if result.ok:
                filled.append(domain)
        return filled

    # =========================================================================
    # NEWS
    # =========================================================================

    async def load_news(self) -> None:
        results = await self.pipeline.run(self.feeds, on_render=self._render_news_batch)
        for result in results.values():
            await self._finish_category(result)

        if self.settings.site_variant is SiteVariant.FULL and self.intel_feeds:
            intel = await self.pipeline.fetch_category(
                "intel", self.intel_feeds, on_render=self._render_news_batch
            )
            await self._finish_category(intel)

        headlines = [item.title for item in self.state.all_news]
        self.engine.ingest_headlines(headlines)
        await self.engine.observe_counts({"news": len(headlines)})

    def flash_map_for_news(self, items: Iterable[NewsItem]) -> int:
        """Flash the hotspot each new headline points at; returns flashes made."""
        flashed = 0
        for item in items:
            hotspot = find_flash_location(item.title)
            if hotspot is None:
                continue
            if not self.flash_cache.should_flash(item.source, item.link, item.title):
                continue
            self.render.flash_location(hotspot.lat, hotspot.lon, hotspot.name)
            flashed += 1
        return flashed

    def _render_news_batch(self, category: str, items: list[NewsItem]) -> None:
        self.render.render_news(category, items)
        self.flash_map_for_news(items)

    async def _finish_category(self, result: CategoryResult) -> None:
        category = result.category
        source_id = f"news:{category}"

        if result.status is CategoryStatus.DISABLED:
            self.state.news_by_category.pop(category, None)
            self.render.show_error(source_id, "All sources disabled")
            self.render.update_status(category, "ok", count=0)
            return

        if result.status is CategoryStatus.FAILED:
            self.state.news_by_category.pop(category, None)
            names = ", ".join(result.failed_feeds) or result.error or "unknown"
            message = f"Failed to load ({names})"
            self.render.show_error(source_id, message)
            self.render.update_status(category, "error")
            self.freshness.record_error(source_id, message)
        else:
            self.state.news_by_category[category] = result.items
            self.render.update_status(category, "ok", count=result.item_count)
            self.freshness.record_update(source_id, result.item_count)

        deviation = await self.baselines.observe(source_id, result.item_count)
        self.render.set_deviation(source_id, deviation)

    # =========================================================================
    # MARKETS & PANELS
    # =========================================================================

    async def load_markets(self) -> None:
        stocks = await self.ladders.resolve("stocks")
        self._apply("stocks", stocks)
        if stocks.skipped:
            return
        await asyncio.gather(
            self._load_domain("commodities"),
            self._load_domain("sectors"),
            self._load_domain("crypto"),
        )

    async def load_predictions(self) -> LadderResult:
        return await self._load_domain("predictions")

    async def load_economic(self) -> LadderResult:
        return await self._load_domain("economic")

    async def load_trade_policy(self) -> LadderResult:
        return await self._load_domain("trade_policy")

    async def load_supply_chain(self) -> LadderResult:
        return await self._load_domain("supply_chain")

    # =========================================================================
    # LAYERS
    # =========================================================================

    async def load_weather(self) -> LadderResult:
        return await self._load_domain("weather")

    async def load_flights(self) -> LadderResult:
        return await self._load_domain("flights")

    async def load_cyber_threats(self) -> LadderResult:
        return await self._load_domain("cyber_threats")

    async def load_hunger(self) -> LadderResult:
        return await self._load_domain("hunger")

    async def load_natural_resources(self) -> LadderResult:
        return await self._load_domain("natural_resources")

    async def load_population(self) -> LadderResult:
        return await self._load_domain("population")

    async def load_earthquakes(self) -> LadderResult:
        result = await self._load_domain("earthquakes")
        self._ingest_live(result, to_geo_events(result.items, "earthquake"))
        return result

    async def load_fires(self) -> LadderResult:
        result = await self._load_domain("fires")
        if result.tier is Tier.LIVE:
            await self.engine.observe_counts({"satellite_fires": len(result.items)})
        return result

    async def load_outages(self) -> LadderResult:
        result = await self._load_domain("outages")
        events = to_geo_events(result.items, "outage")
        self.state.intelligence.outages = events
        self._ingest_live(result, events)
        return result

    async def load_protests(self) -> LadderResult:
        result = await self._load_domain("protests")
        events = to_geo_events(result.items, "protest")
        self.state.intelligence.protests = events
        self._ingest_live(result, events)
        return result

    async def load_conflicts(self) -> LadderResult:
        result = await self._load_domain("conflicts")
        events = to_geo_events(result.items, "conflict")
        self.state.intelligence.conflicts = events
        self._ingest_live(result, events)
        return result

    async def load_vessels(self) -> LadderResult:
        result = await self._load_domain("vessels")
        self.state.intelligence.vessels = to_tracks(result.items, kind="vessel")
        return result

    async def load_military(self) -> None:
        flights, vessels = await asyncio.gather(
            self._load_domain("military"), self._load_domain("vessels")
        )
        intel = self.state.intelligence
        intel.military = to_tracks(flights.items)
        intel.vessels = to_tracks(vessels.items, kind="vessel")
        await self.engine.analyze_military(
            intel.military if flights.tier is Tier.LIVE else None,
            intel.vessels if vessels.tier is Tier.LIVE else None,
        )

    def _ingest_live(self, result: LadderResult, events: list[GeoEvent]) -> None:
        """Only live data feeds correlation; fallback tiers are for display."""
        if result.tier is Tier.LIVE:
            self.engine.ingest_geo(events)

    async def load_ucdp_events(self) -> LadderResult:
        result = await self._load_domain("ucdp_events")
        intel = self.state.intelligence
        events = dedupe_nearby(
            to_geo_events(result.items, "conflict"),
            intel.protests + intel.conflicts,
        )
        intel.ucdp_events = events
        self._ingest_live(result, events)
        return result

    # =========================================================================
    # INTELLIGENCE
    # =========================================================================

    async def load_intelligence(self) -> None:
        """Full-variant fan-out; each sub-load runs under its own guard."""
        await asyncio.gather(
            self.scheduler.run_guarded("outages", self.load_outages),
            self.scheduler.run_guarded("protests", self.load_protests),
            self.scheduler.run_guarded("conflicts", self.load_conflicts),
            self.scheduler.run_guarded("military", self.load_military),
        )
        if self.destroyed:
            return
        # Runs after protests and conflicts so it can be deduplicated against them.
        await self.scheduler.run_guarded("ucdp_events", self.load_ucdp_events)
        await self.engine.enrich("population_exposure", self._population_exposure(), default=[])

    async def _population_exposure(self) -> list[Any]:
        if self._enrich_exposure is None:
            return []
        intel = self.state.intelligence
        events = intel.protests[:MAX_EXPOSURE_EVENTS] + intel.ucdp_events[:MAX_EXPOSURE_EVENTS]
        if not events:
            self.render.set_dataset("population_exposure", [])
            return []
        exposures = await self._enrich_exposure(events)
        self.render.set_dataset("population_exposure", exposures)
        if exposures:
            self.freshness.record_update("worldpop", len(exposures))
        return exposures

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _load_domain(self, domain: str) -> LadderResult:
        result = await self.ladders.resolve(domain)
        self._apply(domain, result)
        return result

    def _apply(self, domain: str, result: LadderResult) -> None:
        """Push a ladder result to the sinks; exactly one freshness call."""
        spec = self.ladders.spec(domain)
        source_id = spec.live_source or domain

        if result.ok:
            self.state.set_dataset(domain, result.items)
            self.render.set_dataset(domain, result.items, tier=result.tier.value)
            if spec.layer:
                self.state.ready_layers.add(spec.layer)
                self.render.set_layer_ready(spec.layer, True)
            if result.tier is Tier.LIVE:
                self.render.update_status(source_id, "ok", count=len(result.items))
                self.freshness.record_update(source_id, len(result.items))
            else:
                self.render.update_status(source_id, "fallback", count=len(result.items))
                self.freshness.record_error(source_id, _failure_summary(result))
            return

        if result.skipped:
            message = "API key not configured"
        else:
            message = "No data available" if spec.has_fallback else "Unavailable"
        logger.warning("driver.domain_empty", domain=domain, failures=_failure_summary(result))
        self.render.show_error(domain, message)
        self.render.update_status(source_id, "error")
        if spec.layer and spec.layer not in self.state.ready_layers:
            self.render.set_layer_ready(spec.layer, False)
        self.freshness.record_error(source_id, _failure_summary(result) or message)


def _failure_summary(result: LadderResult) -> str:
    return "; ".join(
        f"{a.rung}: {a.message or (a.failure.value if a.failure else 'failed')}" for a in result.failures
    )


__all__ = [
    "LAYER_TASKS",
    "SWEEP_DOMAINS",
    "LoadDriver",
    "to_geo_events",
    "to_tracks",
]
