"""
Core data model shared by every FeedSpine component.

Architecture:
    ::

        SourceTask ──► GuardedScheduler
        FeedDescriptor ──► CategoryFetchPipeline ──► NewsItem / CategoryResult
        FetchOutcome ──► FallbackLadder ──► LadderResult
        GeoEvent / MilitaryTrack ──► CorrelationEngine ──► Signal
        Deviation ◄── BaselineStore

Guardrails:
    - ``Signal`` and ``GeoEvent`` are frozen; signals are never mutated after
      creation.
    - ``FetchOutcome.upstream_unavailable`` is not the same as an empty list.

Tags:
    models, dataclasses, signals, ingestion
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from feedspine.core.timestamps import utc_now

# =============================================================================
# SCHEDULING
# =============================================================================


@dataclass(frozen=True)
class SourceTask:
    """A named load operation. Identity is the name."""

    name: str
    run: Callable[[], Awaitable[Any]]


# =============================================================================
# FETCHING
# =============================================================================


@dataclass(frozen=True)
class FeedDescriptor:
    """One feed inside a news category."""

    name: str
    url: str
    category: str = ""
    lang: str = "en"


@dataclass
class NewsItem:
    source: str
    title: str
    link: str
    pub_date: datetime = field(default_factory=utc_now)
    category: str = ""
    is_alert: bool = False
    lat: float | None = None
    lon: float | None = None


@dataclass
class FetchOutcome:
    """
    What a source fetcher hands back.

    ``skipped`` means the fetcher deliberately did nothing (usually a
    missing API key). ``upstream_unavailable`` means the upstream is down
    and the empty ``items`` must not be read as a legitimate empty result.
    """

    items: list[Any] = field(default_factory=list)
    rate_limited: bool = False
    skipped: bool = False
    upstream_unavailable: bool = False
    message: str | None = None
    provider: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def of(cls, items: Sequence[Any]) -> FetchOutcome:
        return cls(items=list(items))


class CategoryStatus(str, Enum):
    """Terminal state of one news category fetch."""

    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"
    DISABLED = "disabled"


@dataclass
class CategoryResult:
    category: str
    items: list[NewsItem]
    status: CategoryStatus
    failed_feeds: tuple[str, ...] = ()
    fetched_feeds: int = 0
    error: str | None = None

    @property
    def item_count(self) -> int:
        return len(self.items)


# =============================================================================
# CORRELATION
# =============================================================================


class DeviationLevel(str, Enum):
    NORMAL = "normal"
    ELEVATED = "elevated"
    HIGH = "high"


@dataclass(frozen=True)
class Deviation:
    """Deviation of one observation from its metric's history."""

    z_score: float
    percent_change: float
    level: DeviationLevel
    mean: float = 0.0
    samples: int = 0

    @property
    def is_anomalous(self) -> bool:
        return self.level is not DeviationLevel.NORMAL


class SignalKind(str, Enum):
    SURGE = "surge"
    FOREIGN_PRESENCE = "foreign_presence"
    GEO_CONVERGENCE = "geo_convergence"
    TEMPORAL_ANOMALY = "temporal_anomaly"
    KEYWORD_SPIKE = "keyword_spike"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class GeoEvent:
    """Common shape for anything the convergence detector indexes."""

    id: str
    lat: float
    lon: float
    type: str
    time: datetime
    title: str = ""


@dataclass(frozen=True)
class MilitaryTrack:
    """A military aircraft or vessel position report."""

    id: str
    callsign: str
    lat: float
    lon: float
    origin: str
    kind: str = "aircraft"
    platform: str = ""
    observed_at: datetime = field(default_factory=utc_now)

    def to_geo_event(self) -> GeoEvent:
        event_type = "military_flight" if self.kind == "aircraft" else "military_vessel"
        return GeoEvent(
            id=self.id,
            lat=self.lat,
            lon=self.lon,
            type=event_type,
            time=self.observed_at,
            title=self.callsign,
        )


@dataclass(frozen=True)
class Signal:
    """An immutable, derived cross-source event."""

    id: str
    kind: SignalKind
    severity: Severity
    source_refs: tuple[str, ...]
    created_at: datetime
    title: str = ""
    description: str = ""
    location: tuple[float, float] | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "source_refs": list(self.source_refs),
            "created_at": self.created_at.isoformat(),
            "title": self.title,
            "description": self.description,
            "location": list(self.location) if self.location else None,
            "metadata": dict(self.metadata),
        }


__all__ = [
    "SourceTask",
    "FeedDescriptor",
    "NewsItem",
    "FetchOutcome",
    "CategoryStatus",
    "CategoryResult",
    "DeviationLevel",
    "Deviation",
    "SignalKind",
    "Severity",
    "GeoEvent",
    "MilitaryTrack",
    "Signal",
]
