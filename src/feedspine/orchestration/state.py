"""Mutable loader state, owned by the driver and passed to components.

Everything that outlives a single task (the in-flight registry, the
learning-mode flag, the last datasets per domain, the intelligence cache,
convergence keys already signalled) lives on one ``LoaderState`` so tests
can build an isolated instance instead of resetting globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from feedspine.core.models import GeoEvent, MilitaryTrack, NewsItem
from feedspine.execution.scheduler import InFlightRegistry


@dataclass
class IntelligenceCache:
    """Latest intelligence datasets, read by the correlation pass and exposure enrichment."""

    protests: list[GeoEvent] = field(default_factory=list)
    conflicts: list[GeoEvent] = field(default_factory=list)
    ucdp_events: list[GeoEvent] = field(default_factory=list)
    outages: list[GeoEvent] = field(default_factory=list)
    military: list[MilitaryTrack] = field(default_factory=list)
    vessels: list[MilitaryTrack] = field(default_factory=list)


@dataclass
class LoaderState:
    in_flight: InFlightRegistry = field(default_factory=InFlightRegistry)
    learning_mode: bool = False
    intelligence: IntelligenceCache = field(default_factory=IntelligenceCache)
    seen_cluster_keys: set[str] = field(default_factory=set)
    news_by_category: dict[str, list[NewsItem]] = field(default_factory=dict)
    datasets: dict[str, list[Any]] = field(default_factory=dict)
    ready_layers: set[str] = field(default_factory=set)

    @property
    def all_news(self) -> list[NewsItem]:
        return [item for items in self.news_by_category.values() for item in items]

    def set_dataset(self, domain: str, items: list[Any]) -> None:
        self.datasets[domain] = list(items)

    def is_empty(self, domain: str) -> bool:
        return not self.datasets.get(domain)


__all__ = ["IntelligenceCache", "LoaderState"]
