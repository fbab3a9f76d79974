"""Tests for rolling baselines and deviation scoring."""

from __future__ import annotations

from typing import Any

import pytest

from feedspine.core.baseline import Baseline, BaselineStore, calculate_deviation, level_for
from feedspine.core.cache import InMemoryPersistentCache, PersistedEntry
from feedspine.core.models import DeviationLevel


# ── Helpers ──────────────────────────────────────────────────────────────


class _BrokenCache:
    """PersistentCache whose every call fails."""

    async def get(self, key: str) -> PersistedEntry | None:
        raise OSError("storage offline")

    async def set(self, key: str, data: Any) -> None:
        raise OSError("storage offline")


async def _feed(store: BaselineStore, key: str, counts: list[float]):
    deviation = None
    for count in counts:
        deviation = await store.observe(key, count)
    return deviation


# ── Deviation ────────────────────────────────────────────────────────────


class TestCalculateDeviation:
    """Scoring one observation against its history."""

    def test_spike_against_stable_history(self):
        deviation = calculate_deviation(40, Baseline("news:politics", (10, 12, 11, 40)))
        assert deviation.z_score == pytest.approx(29.0)
        assert deviation.percent_change == pytest.approx(263.64)
        assert deviation.level is DeviationLevel.HIGH
        assert deviation.samples == 3
        assert deviation.is_anomalous

    def test_too_little_history_is_normal(self):
        deviation = calculate_deviation(500, Baseline("k", (10, 500)))
        assert deviation.level is DeviationLevel.NORMAL
        assert deviation.z_score == 0.0

    def test_stddev_floor_prevents_division_blowup(self):
        deviation = calculate_deviation(6, Baseline("k", (5, 5, 5, 6)))
        assert deviation.z_score == pytest.approx(1.0)
        assert deviation.level is DeviationLevel.NORMAL

    def test_zero_mean_percent_change(self):
        deviation = calculate_deviation(4, Baseline("k", (0, 0, 0, 4)))
        assert deviation.percent_change == 100.0

    @pytest.mark.parametrize(
        ("z", "level"),
        [(0.5, DeviationLevel.NORMAL), (2.0, DeviationLevel.ELEVATED), (-3.5, DeviationLevel.HIGH)],
    )
    def test_level_thresholds(self, z, level):
        assert level_for(z) is level


# ── Store ────────────────────────────────────────────────────────────────


class TestBaselineStore:
    """Sliding history per metric key."""

    @pytest.mark.asyncio
    async def test_observe_updates_then_scores(self):
        store = BaselineStore()
        deviation = await _feed(store, "news:politics", [10, 12, 11, 40])
        assert deviation.z_score == pytest.approx(29.0)
        assert store.get("news:politics").history == (10, 12, 11, 40)

    @pytest.mark.asyncio
    async def test_window_slides(self):
        store = BaselineStore(window_size=3)
        await _feed(store, "k", [1, 2, 3, 4, 5])
        assert store.get("k").history == (3, 4, 5)

    @pytest.mark.asyncio
    async def test_keys_are_kept(self):
        store = BaselineStore()
        await store.observe("a", 1)
        await store.observe("b", 0)
        assert sorted(store.keys()) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_hydrates_from_persistent_cache(self):
        persistent = InMemoryPersistentCache()
        first = BaselineStore(persistent=persistent)
        await _feed(first, "vessels", [300, 310, 305])

        second = BaselineStore(persistent=persistent)
        baseline = await second.update_baseline("vessels", 900)
        assert baseline.history == (300, 310, 305, 900)
        assert "baseline:vessels" in persistent.keys()

    @pytest.mark.asyncio
    async def test_storage_failures_do_not_break_observation(self):
        store = BaselineStore(persistent=_BrokenCache())
        deviation = await _feed(store, "k", [10, 12, 11, 40])
        assert deviation.level is DeviationLevel.HIGH

    @pytest.mark.asyncio
    async def test_invalid_persisted_history_is_ignored(self):
        persistent = InMemoryPersistentCache()
        await persistent.set("baseline:k", ["ten", None])
        store = BaselineStore(persistent=persistent)
        baseline = await store.update_baseline("k", 5)
        assert baseline.history == (5,)
