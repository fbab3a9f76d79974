"""
Outward interfaces: render sink and freshness sink.

The loader only pushes; nothing it calls here returns a value it acts on.
``RecordingRenderSink`` and ``RecordingFreshnessSink`` keep every call
for inspection and double as headless sinks.

Tags:
    sinks, observer, render, freshness
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from feedspine.core.models import Deviation, NewsItem, Signal


@runtime_checkable
class RenderSink(Protocol):
    """Setters the dashboard exposes to the loader."""

    def set_dataset(self, domain: str, items: Sequence[Any], *, tier: str = "live") -> None: ...

    def set_layer_ready(self, layer: str, ready: bool) -> None: ...

    def set_layer_loading(self, layer: str, loading: bool) -> None: ...

    def render_news(self, category: str, items: Sequence[NewsItem]) -> None: ...

    def show_error(self, domain: str, message: str) -> None: ...

    def set_deviation(self, metric: str, deviation: Deviation) -> None: ...

    def flash_location(self, lat: float, lon: float, label: str) -> None: ...

    def show_signals(self, signals: Sequence[Signal]) -> None: ...

    def update_status(self, source: str, status: str, *, count: int | None = None) -> None: ...


@runtime_checkable
class FreshnessSink(Protocol):
    """Per-source freshness telemetry, one call per completed task outcome."""

    def record_update(self, source_id: str, count: int) -> None: ...

    def record_error(self, source_id: str, message: str) -> None: ...


@dataclass
class RecordingRenderSink:
    """Render sink that stores what it was told."""

    datasets: dict[str, list[Any]] = field(default_factory=dict)
    tiers: dict[str, str] = field(default_factory=dict)
    ready: dict[str, bool] = field(default_factory=dict)
    loading_events: list[tuple[str, bool]] = field(default_factory=list)
    news: dict[str, list[NewsItem]] = field(default_factory=dict)
    news_renders: list[tuple[str, int]] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    deviations: dict[str, Deviation] = field(default_factory=dict)
    flashes: list[tuple[float, float, str]] = field(default_factory=list)
    signals: list[Signal] = field(default_factory=list)
    statuses: dict[str, str] = field(default_factory=dict)

    def set_dataset(self, domain: str, items: Sequence[Any], *, tier: str = "live") -> None:
        self.datasets[domain] = list(items)
        self.tiers[domain] = tier

    def set_layer_ready(self, layer: str, ready: bool) -> None:
        self.ready[layer] = ready

    def set_layer_loading(self, layer: str, loading: bool) -> None:
        self.loading_events.append((layer, loading))

    def render_news(self, category: str, items: Sequence[NewsItem]) -> None:
        self.news[category] = list(items)
        self.news_renders.append((category, len(items)))

    def show_error(self, domain: str, message: str) -> None:
        self.errors[domain] = message

    def set_deviation(self, metric: str, deviation: Deviation) -> None:
        self.deviations[metric] = deviation

    def flash_location(self, lat: float, lon: float, label: str) -> None:
        self.flashes.append((lat, lon, label))

    def show_signals(self, signals: Sequence[Signal]) -> None:
        self.signals.extend(signals)

    def update_status(self, source: str, status: str, *, count: int | None = None) -> None:
        self.statuses[source] = status


@dataclass
class RecordingFreshnessSink:
    updates: list[tuple[str, int]] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)

    def record_update(self, source_id: str, count: int) -> None:
        self.updates.append((source_id, count))

    def record_error(self, source_id: str, message: str) -> None:
        self.errors.append((source_id, message))

    def sources_updated(self) -> set[str]:
        return {source for source, _ in self.updates}


__all__ = [
    "RenderSink",
    "FreshnessSink",
    "RecordingRenderSink",
    "RecordingFreshnessSink",
]
