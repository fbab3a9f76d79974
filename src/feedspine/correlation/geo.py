"""
Geo-convergence: independently sourced events meeting in space and time.

WHY
───
A protest, a military flight and an internet outage reported by three
unrelated upstreams near the same place within a few hours usually
describe one real-world situation. Each stream alone is noise; the
co-occurrence is the signal.

ARCHITECTURE
────────────
::

    ingest(events)            rolling window of GeoEvents keyed by id
          │
    detect(seen_keys)
          ├── prune events older than the window
          ├── latitude sweep: candidate pairs within radius/111° of latitude
          ├── edge when   distance ≤ radius
          │          and  |Δt| ≤ window
          │          and  types differ
          ├── union-find → connected components
          └── one cluster per component whose key ∉ seen_keys
                key = sha1(sorted member ids)

Guardrails:
    - The same member set always yields the same key, so a second pass
      over unchanged events emits nothing.
    - Events of a single type never converge with each other.

Tags:
    geo, convergence, haversine, union-find, dedup
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Callable, Iterable, MutableSet, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from feedspine.core.logging import get_logger
from feedspine.core.models import GeoEvent
from feedspine.core.timestamps import utc_now

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def cluster_key(member_ids: Iterable[str]) -> str:
    digest = hashlib.sha1("|".join(sorted(member_ids)).encode("utf-8")).hexdigest()
    return f"geo:{digest[:16]}"


@dataclass(frozen=True)
class ConvergenceCluster:
    key: str
    events: tuple[GeoEvent, ...]

    @property
    def types(self) -> frozenset[str]:
        return frozenset(e.type for e in self.events)

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(sorted(e.id for e in self.events))

    @property
    def center(self) -> tuple[float, float]:
        n = len(self.events)
        return (
            round(sum(e.lat for e in self.events) / n, 4),
            round(sum(e.lon for e in self.events) / n, 4),
        )


class _UnionFind:
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self.parent[rb] = ra


class GeoConvergenceDetector:
    """
    Rolling window of GeoEvents with convergence detection.

    Example:
        detector = GeoConvergenceDetector(radius_km=50, window_hours=6)
        detector.ingest(protest_events)
        detector.ingest(track.to_geo_event() for track in tracks)
        clusters = detector.detect(state.seen_cluster_keys)
    """

    def __init__(
        self,
        radius_km: float = 50.0,
        window_hours: float = 6.0,
        *,
        now: Callable[[], datetime] = utc_now,
    ):
        self.radius_km = radius_km
        self.window = timedelta(hours=window_hours)
        self._now = now
        self._events: dict[str, GeoEvent] = {}

    def __len__(self) -> int:
        return len(self._events)

    def ingest(self, events: Iterable[GeoEvent]) -> int:
        """Add or replace events by id; returns how many were taken."""
        count = 0
        for event in events:
            self._events[event.id] = event
            count += 1
        return count

    def prune(self) -> int:
        cutoff = self._now() - self.window
        stale = [eid for eid, e in self._events.items() if e.time < cutoff]
        for eid in stale:
            del self._events[eid]
        return len(stale)

    def clusters(self) -> list[ConvergenceCluster]:
        """All current multi-type clusters, seen or not."""
        self.prune()
        events = sorted(self._events.values(), key=lambda e: e.lat)
        uf = _UnionFind(len(events))
        lat_band = self.radius_km / KM_PER_DEGREE_LAT
        linked: set[int] = set()

        for i, a in enumerate(events):
            for j in range(i + 1, len(events)):
                b = events[j]
                if b.lat - a.lat > lat_band:
                    break
                if a.type == b.type:
                    continue
                if abs(a.time - b.time) > self.window:
                    continue
                if haversine_km(a.lat, a.lon, b.lat, b.lon) <= self.radius_km:
                    uf.union(i, j)
                    linked.update((i, j))

        components: dict[int, list[GeoEvent]] = {}
        for index in linked:
            components.setdefault(uf.find(index), []).append(events[index])

        return [
            ConvergenceCluster(
                key=cluster_key(e.id for e in members),
                events=tuple(sorted(members, key=lambda e: e.id)),
            )
            for members in components.values()
        ]

    def detect(self, seen: MutableSet[str]) -> list[ConvergenceCluster]:
        """New clusters only; their keys are added to ``seen``."""
        fresh = []
        for cluster in self.clusters():
            if cluster.key in seen:
                continue
            seen.add(cluster.key)
            fresh.append(cluster)
        if fresh:
            logger.info("convergence.detected", clusters=len(fresh), events=len(self._events))
        return fresh


def dedupe_nearby(
    events: Sequence[GeoEvent],
    reference: Sequence[GeoEvent],
    *,
    radius_km: float = 50.0,
    window: timedelta = timedelta(days=2),
) -> list[GeoEvent]:
    """Drop ``events`` already reported in ``reference`` (same area, close in time)."""
    kept = []
    for event in events:
        duplicate = any(
            abs(event.time - ref.time) <= window
            and haversine_km(event.lat, event.lon, ref.lat, ref.lon) <= radius_km
            for ref in reference
        )
        if not duplicate:
            kept.append(event)
    if len(kept) != len(events):
        logger.debug("convergence.deduped", dropped=len(events) - len(kept), kept=len(kept))
    return kept


__all__ = [
    "ConvergenceCluster",
    "GeoConvergenceDetector",
    "cluster_key",
    "dedupe_nearby",
    "haversine_km",
]
