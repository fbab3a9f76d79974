"""
Correlation engine: heterogeneous streams in, deduplicated signals out.

Manifesto:
    Baselines always learn; signals are only emitted when learning mode
    is off. An enrichment step that fails is dropped from the cycle's
    output instead of aborting the pass.

Architecture:
    ::

        observe_counts({"news:politics": 42, "vessels": 310})
            └── BaselineStore.observe → anomalous? → temporal_anomaly signal

        analyze_military(tracks)
            ├── ingest into GeoConvergenceDetector
            ├── "military_flights" / "vessels" temporal counts
            ├── MilitaryAnalyzer.surges            → surge signals
            └── MilitaryAnalyzer.foreign_presence  → foreign_presence signals

        ingest_geo(events) / ingest_headlines(titles)

        run_pass(seen_keys)
            ├── GeoConvergenceDetector.detect  → geo_convergence signals
            └── KeywordSpikeTracker.evaluate + drain → keyword_spike signals

        _emit(signals)
            ├── learning mode → suppressed (logged), []
            └── SignalHistory.publish → subscribers

Tags:
    correlation, signals, anomaly, learning-mode
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, MutableSet, Sequence
from typing import TypeVar

from feedspine.core.baseline import BaselineStore
from feedspine.core.errors import classify_failure
from feedspine.core.logging import get_logger
from feedspine.core.models import GeoEvent, MilitaryTrack, Signal
from feedspine.correlation.geo import ConvergenceCluster, GeoConvergenceDetector
from feedspine.correlation.keywords import KeywordSpikeTracker
from feedspine.correlation.military import MilitaryAnalyzer
from feedspine.correlation.signals import (
    SignalHistory,
    convergence_signal,
    foreign_presence_signal,
    keyword_spike_signal,
    surge_signal,
    temporal_anomaly_signal,
)

logger = get_logger(__name__)

T = TypeVar("T")


class CorrelationEngine:
    """
    Turns ingested entities into Signals.

    ``learning_mode`` is read on every emission, so toggling the loader
    state takes effect on the next pass.

    Example:
        engine = CorrelationEngine(baselines, history=history, learning_mode=lambda: state.learning_mode)
        await engine.analyze_military(tracks)
        signals = await engine.run_pass(state.seen_cluster_keys)
    """

    def __init__(
        self,
        baselines: BaselineStore,
        *,
        history: SignalHistory | None = None,
        convergence: GeoConvergenceDetector | None = None,
        military: MilitaryAnalyzer | None = None,
        keywords: KeywordSpikeTracker | None = None,
        learning_mode: Callable[[], bool] = lambda: False,
    ):
        self.baselines = baselines
        self.history = history if history is not None else SignalHistory()
        self.convergence = convergence if convergence is not None else GeoConvergenceDetector()
        self.military = military if military is not None else MilitaryAnalyzer(baselines)
        self.keywords = keywords if keywords is not None else KeywordSpikeTracker(baselines)
        self._learning_mode = learning_mode

    @property
    def learning(self) -> bool:
        return self._learning_mode()

    # ── Ingestion ───────────────────────────────────────────────

    def ingest_geo(self, events: Iterable[GeoEvent]) -> int:
        return self.convergence.ingest(events)

    def ingest_headlines(self, headlines: Iterable[str]) -> int:
        return self.keywords.ingest_headlines(headlines)

    # ── Detection ───────────────────────────────────────────────

    async def observe_counts(self, counts: Mapping[str, float]) -> list[Signal]:
        """Record each metric's count; emit temporal anomalies."""
        signals = []
        for metric, count in counts.items():
            deviation = await self.baselines.observe(metric, count)
            if deviation.is_anomalous:
                signals.append(temporal_anomaly_signal(metric, count, deviation))
        return self._emit(signals)

    async def analyze_military(
        self,
        flights: Sequence[MilitaryTrack] | None,
        vessels: Sequence[MilitaryTrack] | None = None,
    ) -> list[Signal]:
        """Counts, surges and foreign presence; ``None`` means the stream has no live data."""
        counts: dict[str, float] = {}
        if flights is not None:
            counts["military_flights"] = len(flights)
        if vessels is not None:
            counts["vessels"] = len(vessels)
        self.ingest_geo(t.to_geo_event() for t in (*(flights or ()), *(vessels or ())))
        emitted = await self.observe_counts(counts)
        if flights is None:
            return emitted

        surges = await self.military.surges(flights)
        presence = self.military.foreign_presence(flights)
        signals = [surge_signal(a) for a in surges] + [foreign_presence_signal(p) for p in presence]
        return emitted + self._emit(signals)

    async def run_pass(self, seen_cluster_keys: MutableSet[str]) -> list[Signal]:
        """Geo-convergence and keyword spikes for one correlation pass."""
        signals: list[Signal] = []
        if not self.learning:
            clusters = await self.enrich(
                "geo_convergence", self._detect_clusters(seen_cluster_keys), default=[]
            )
            signals.extend(convergence_signal(c) for c in clusters)

        await self.enrich("keyword_spikes", self.keywords.evaluate(), default=[])
        signals.extend(keyword_spike_signal(s) for s in self.keywords.drain())
        return self._emit(signals)

    async def enrich(self, name: str, step: Awaitable[T], *, default: T) -> T:
        """Await one enrichment step; a failure is logged and yields ``default``."""
        try:
            return await step
        except Exception as exc:
            logger.warning(
                "correlation.enrichment_failed",
                step=name,
                kind=classify_failure(exc).value,
                error=exc,
            )
            return default

    async def _detect_clusters(self, seen: MutableSet[str]) -> list[ConvergenceCluster]:
        return self.convergence.detect(seen)

    def _emit(self, signals: list[Signal]) -> list[Signal]:
        if not signals:
            return []
        if self.learning:
            logger.info("correlation.suppressed", count=len(signals), reason="learning_mode")
            return []
        return self.history.publish(signals)


__all__ = ["CorrelationEngine"]
