"""
Shared pytest fixtures for FeedSpine tests.

This module provides:
- Isolated settings (no ``.env`` file, no environment leakage)
- A recording ``sleep`` so retry and populate delays never wait
- A ``ManualClock`` for caches, cooldowns and breakers
- Small factories for news items, geo events and military tracks

Usage:
    async def test_weather_falls_back(settings, sleep):
        ladders = DomainLadders(settings, SourceRegistry(), GenerativeSource([]), sleep=sleep)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from feedspine.core.models import GeoEvent, MilitaryTrack, NewsItem
from feedspine.core.settings import FeedSpineSettings
from feedspine.core.timestamps import ManualClock, utc_now


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Strip FEEDSPINE_* variables and run from an empty directory."""
    import os

    for key in list(os.environ):
        if key.startswith("FEEDSPINE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> FeedSpineSettings:
    return FeedSpineSettings()


class RecordingSleep:
    """Awaitable stand-in for ``asyncio.sleep`` that only records delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_000.0)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_news() -> Callable[..., NewsItem]:
    def _make(
        title: str,
        source: str = "Reuters",
        *,
        link: str | None = None,
        minutes_ago: float = 0,
        category: str = "",
    ) -> NewsItem:
        return NewsItem(
            source=source,
            title=title,
            link=link or f"https://news.example/{abs(hash(title))}",
            pub_date=utc_now() - timedelta(minutes=minutes_ago),
            category=category,
        )

    return _make


@pytest.fixture
def make_event() -> Callable[..., GeoEvent]:
    def _make(
        event_id: str,
        lat: float,
        lon: float,
        event_type: str,
        *,
        hours_ago: float = 0,
        now: datetime | None = None,
    ) -> GeoEvent:
        return GeoEvent(
            id=event_id,
            lat=lat,
            lon=lon,
            type=event_type,
            time=(now or utc_now()) - timedelta(hours=hours_ago),
        )

    return _make


@pytest.fixture
def make_track() -> Callable[..., MilitaryTrack]:
    def _make(track_id: str, lat: float, lon: float, origin: str = "", **kwargs: Any) -> MilitaryTrack:
        return MilitaryTrack(id=track_id, callsign=track_id.upper(), lat=lat, lon=lon, origin=origin, **kwargs)

    return _make
