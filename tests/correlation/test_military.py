"""Tests for theater surges and foreign presence."""

from __future__ import annotations

import pytest

from feedspine.core.baseline import BaselineStore
from feedspine.core.models import DeviationLevel
from feedspine.correlation.military import THEATERS, MilitaryAnalyzer, normalize_origin


# ── Helpers ──────────────────────────────────────────────────────────────


def _strait(make_track, n: int, origin: str = "China"):
    return [make_track(f"tw-{i}", 24.0, 119.5 + i * 0.1, origin) for i in range(n)]


# ── Tests ────────────────────────────────────────────────────────────────


class TestTheaters:
    def test_bucketing(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore())
        tracks = [
            make_track("a", 24.0, 120.0),
            make_track("b", 27.0, 52.0),
            make_track("c", 0.0, 0.0),
        ]

        buckets = analyzer.by_theater(tracks)

        assert set(buckets) == {t.name for t in THEATERS}
        assert [t.id for t in buckets["taiwan_strait"]] == ["a"]
        assert [t.id for t in buckets["persian_gulf"]] == ["b"]
        assert sum(len(v) for v in buckets.values()) == 2

    def test_theater_for_outside_everything(self, make_track):
        assert MilitaryAnalyzer(BaselineStore()).theater_for(make_track("x", -60, -120)) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("USA", "United States"), ("us", "United States"), ("UK", "United Kingdom"), (" Iran ", "Iran")],
    )
    def test_normalize_origin(self, raw, expected):
        assert normalize_origin(raw) == expected


class TestSurges:
    @pytest.mark.asyncio
    async def test_surge_after_quiet_baseline(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore(min_samples=3))
        for _ in range(3):
            assert await analyzer.surges(_strait(make_track, 1)) == []

        alerts = await analyzer.surges(_strait(make_track, 6))

        assert [a.theater for a in alerts] == ["taiwan_strait"]
        alert = alerts[0]
        assert alert.count == 6
        assert alert.deviation.z_score == pytest.approx(5.0)
        assert alert.deviation.level is DeviationLevel.HIGH
        assert alert.track_ids == tuple(f"tw-{i}" for i in range(6))

    @pytest.mark.asyncio
    async def test_drop_is_not_a_surge(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore(min_samples=3))
        for _ in range(3):
            await analyzer.surges(_strait(make_track, 8))
        assert await analyzer.surges([]) == []

    @pytest.mark.asyncio
    async def test_every_theater_is_recorded(self, make_track):
        baselines = BaselineStore()
        await MilitaryAnalyzer(baselines).surges([])
        assert sorted(baselines.keys()) == sorted(f"military:{t.name}" for t in THEATERS)
        assert baselines.get("military:baltic").history == (0.0,)

    @pytest.mark.asyncio
    async def test_not_enough_history(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore(min_samples=3))
        assert await analyzer.surges(_strait(make_track, 50)) == []


class TestForeignPresence:
    def test_unexpected_origin_is_reported(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore())
        tracks = [
            make_track("cn-1", 24.0, 120.0, "China"),
            make_track("us-2", 23.5, 119.0, "USA"),
            make_track("us-1", 24.5, 121.0, "United States"),
            make_track("unknown", 24.0, 120.0, ""),
        ]

        presence = analyzer.foreign_presence(tracks)

        assert len(presence) == 1
        assert presence[0].theater == "taiwan_strait"
        assert presence[0].origin == "United States"
        assert presence[0].track_ids == ("us-1", "us-2")
        assert presence[0].location == (23.5, 119.0)

    def test_grouped_per_theater_and_origin(self, make_track):
        analyzer = MilitaryAnalyzer(BaselineStore())
        tracks = [
            make_track("a", 24.0, 120.0, "Russia"),
            make_track("b", 27.0, 52.0, "Russia"),
            make_track("c", 27.0, 52.0, "Iran"),
        ]

        presence = analyzer.foreign_presence(tracks)

        assert [(p.theater, p.origin) for p in presence] == [
            ("persian_gulf", "Russia"),
            ("taiwan_strait", "Russia"),
        ]
