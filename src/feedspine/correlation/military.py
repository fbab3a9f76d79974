"""
Military posture analysis: theater surges and foreign presence.

Tracks are bucketed into fixed theaters. Each theater's track count is a
baseline metric (``military:<theater>``); a count well above its history
is a surge. A track whose origin is not among the theater's expected
operators is foreign presence, reported once per theater and origin.

Architecture:
    ::

        tracks ──► by_theater()
                     ├── surges()            BaselineStore.observe("military:<theater>")
                     │                       z ≥ 2 and count > mean → SurgeAlert
                     └── foreign_presence()  origin ∉ expected → ForeignPresence
                                             (grouped by theater + origin)

Tags:
    military, surge, foreign-presence, baseline
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from feedspine.core.baseline import BaselineStore
from feedspine.core.logging import get_logger
from feedspine.core.models import Deviation, MilitaryTrack

logger = get_logger(__name__)


@dataclass(frozen=True)
class Theater:
    name: str
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float
    expected_origins: frozenset[str]

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_min <= lat <= self.lat_max and self.lon_min <= lon <= self.lon_max


def _theater(name: str, lat: tuple[float, float], lon: tuple[float, float], *origins: str) -> Theater:
    return Theater(name, lat[0], lat[1], lon[0], lon[1], frozenset(origins))


THEATERS: tuple[Theater, ...] = (
    _theater("taiwan_strait", (21, 27), (117, 124), "China", "Taiwan"),
    _theater("south_china_sea", (3, 21), (105, 121), "China", "Vietnam", "Philippines", "Malaysia", "Brunei"),
    _theater("korean_peninsula", (33, 43), (124, 131), "South Korea", "North Korea"),
    _theater("persian_gulf", (23, 31), (47, 57), "Iran", "Saudi Arabia", "UAE", "Qatar", "Bahrain", "Kuwait", "Oman"),
    _theater("eastern_med", (31, 37.5), (28, 36.5), "Israel", "Cyprus", "Turkey", "Lebanon", "Syria", "Egypt", "Greece"),
    _theater("red_sea", (12, 30), (32, 44), "Egypt", "Saudi Arabia", "Sudan", "Eritrea", "Yemen", "Djibouti"),
    _theater("black_sea", (40, 47), (27, 42), "Turkey", "Russia", "Ukraine", "Romania", "Bulgaria", "Georgia"),
    _theater(
        "baltic",
        (53, 66),
        (9, 30),
        "Sweden", "Finland", "Estonia", "Latvia", "Lithuania", "Poland", "Germany", "Denmark", "Russia",
    ),
)

ORIGIN_ALIASES = {
    "US": "United States",
    "USA": "United States",
    "UK": "United Kingdom",
    "GB": "United Kingdom",
    "PRC": "China",
    "ROK": "South Korea",
    "DPRK": "North Korea",
}


def normalize_origin(origin: str) -> str:
    origin = origin.strip()
    return ORIGIN_ALIASES.get(origin.upper(), origin)


@dataclass(frozen=True)
class SurgeAlert:
    theater: str
    count: int
    deviation: Deviation
    track_ids: tuple[str, ...]


@dataclass(frozen=True)
class ForeignPresence:
    theater: str
    origin: str
    track_ids: tuple[str, ...]
    location: tuple[float, float]


class MilitaryAnalyzer:
    """Theater bucketing plus surge and foreign-presence checks.

    Every theater's count is recorded on each ``surges`` call, zero
    included, so quiet periods shape the baseline too.
    """

    METRIC_PREFIX = "military:"

    def __init__(self, baselines: BaselineStore, theaters: Sequence[Theater] = THEATERS):
        self.baselines = baselines
        self.theaters = tuple(theaters)

    def theater_for(self, track: MilitaryTrack) -> Theater | None:
        for theater in self.theaters:
            if theater.contains(track.lat, track.lon):
                return theater
        return None

    def by_theater(self, tracks: Iterable[MilitaryTrack]) -> dict[str, list[MilitaryTrack]]:
        buckets: dict[str, list[MilitaryTrack]] = {t.name: [] for t in self.theaters}
        for track in tracks:
            theater = self.theater_for(track)
            if theater is not None:
                buckets[theater.name].append(track)
        return buckets

    async def surges(self, tracks: Iterable[MilitaryTrack]) -> list[SurgeAlert]:
        alerts = []
        for name, members in self.by_theater(tracks).items():
            deviation = await self.baselines.observe(self.METRIC_PREFIX + name, len(members))
            if deviation.is_anomalous and deviation.z_score > 0:
                alerts.append(
                    SurgeAlert(
                        theater=name,
                        count=len(members),
                        deviation=deviation,
                        track_ids=tuple(sorted(t.id for t in members)),
                    )
                )
        if alerts:
            logger.info("military.surge", theaters=[a.theater for a in alerts])
        return alerts

    def foreign_presence(self, tracks: Iterable[MilitaryTrack]) -> list[ForeignPresence]:
        grouped: dict[tuple[str, str], list[MilitaryTrack]] = {}
        theaters = {t.name: t for t in self.theaters}
        for name, members in self.by_theater(tracks).items():
            expected = theaters[name].expected_origins
            for track in members:
                origin = normalize_origin(track.origin)
                if origin and origin not in expected:
                    grouped.setdefault((name, origin), []).append(track)

        return [
            ForeignPresence(
                theater=name,
                origin=origin,
                track_ids=tuple(sorted(t.id for t in members)),
                location=(members[0].lat, members[0].lon),
            )
            for (name, origin), members in sorted(grouped.items())
        ]


__all__ = [
    "THEATERS",
    "Theater",
    "SurgeAlert",
    "ForeignPresence",
    "MilitaryAnalyzer",
    "normalize_origin",
]
