"""Tests for GuardedScheduler and the in-flight registry."""

from __future__ import annotations

import asyncio

import pytest

from feedspine.core.models import SourceTask
from feedspine.execution.scheduler import (
    GuardedScheduler,
    InFlightRegistry,
    TaskStatus,
)


# ── Helpers ──────────────────────────────────────────────────────────────


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


# ── Registry ─────────────────────────────────────────────────────────────


class TestInFlightRegistry:
    def test_claim_and_release(self):
        registry = InFlightRegistry()
        with registry.claim("markets") as acquired:
            assert acquired
            assert registry.is_locked("markets")
            with registry.claim("markets") as again:
                assert not again
            assert registry.is_locked("markets")
        assert not registry.is_locked("markets")

    def test_release_on_exception(self):
        registry = InFlightRegistry()
        with pytest.raises(RuntimeError):
            with registry.claim("news"):
                raise RuntimeError("boom")
        assert registry.list_active() == []


# ── Scheduler ────────────────────────────────────────────────────────────


class TestRunGuarded:
    """Mutual exclusion per task name."""

    @pytest.mark.asyncio
    async def test_concurrent_same_name_runs_once(self):
        scheduler = GuardedScheduler()
        release = asyncio.Event()
        calls = 0

        async def slow() -> None:
            nonlocal calls
            calls += 1
            await release.wait()

        first = asyncio.ensure_future(scheduler.run_guarded("markets", slow))
        await asyncio.sleep(0)
        second = await scheduler.run_guarded("markets", slow)
        release.set()
        first_report = await first

        assert second.status is TaskStatus.SKIPPED_IN_FLIGHT
        assert first_report.status is TaskStatus.COMPLETED
        assert calls == 1

    @pytest.mark.asyncio
    async def test_failure_is_reported_and_name_released(self):
        scheduler = GuardedScheduler()

        async def boom() -> None:
            raise ValueError("upstream parse error")

        report = await scheduler.run_guarded("weather", boom)
        assert report.status is TaskStatus.FAILED
        assert report.error == "upstream parse error"
        assert not scheduler.in_flight.is_locked("weather")

        counter = _Counter()
        assert (await scheduler.run_guarded("weather", counter)).status is TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_destroyed_scheduler_starts_nothing(self):
        scheduler = GuardedScheduler()
        counter = _Counter()
        scheduler.destroy()
        report = await scheduler.run_guarded("news", counter)
        assert report.status is TaskStatus.SKIPPED_DESTROYED
        assert counter.calls == 0

    @pytest.mark.asyncio
    async def test_shared_registry(self):
        registry = InFlightRegistry()
        a, b = GuardedScheduler(registry), GuardedScheduler(registry)
        release = asyncio.Event()

        async def hold() -> None:
            await release.wait()

        running = asyncio.ensure_future(a.run_guarded("intelligence", hold))
        await asyncio.sleep(0)
        assert (await b.run_guarded("intelligence", hold)).status is TaskStatus.SKIPPED_IN_FLIGHT
        release.set()
        await running


class TestRunAll:
    """Fan-out/fan-in with failure isolation."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_siblings(self):
        scheduler = GuardedScheduler()
        news, markets = _Counter(), _Counter()

        async def broken() -> None:
            raise ConnectionError("refused")

        cycle = await scheduler.run_all(
            [SourceTask("news", news), SourceTask("weather", broken), SourceTask("markets", markets)]
        )

        assert cycle.completed == ["news", "markets"]
        assert cycle.failed == ["weather"]
        assert news.calls == markets.calls == 1

    @pytest.mark.asyncio
    async def test_duplicate_names_in_one_cycle_run_once(self):
        scheduler = GuardedScheduler()
        counter = _Counter()

        async def slow() -> None:
            await asyncio.sleep(0.01)
            await counter()

        cycle = await scheduler.run_all([SourceTask("news", slow), SourceTask("news", slow)])
        assert counter.calls == 1
        assert cycle.by_status(TaskStatus.SKIPPED_IN_FLIGHT) == ["news"]

    @pytest.mark.asyncio
    async def test_empty_cycle(self):
        cycle = await GuardedScheduler().run_all([])
        assert cycle.reports == []
