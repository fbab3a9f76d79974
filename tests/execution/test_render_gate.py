"""Tests for RenderFlushGate."""

from __future__ import annotations

import asyncio

import pytest

from feedspine.execution.render_gate import GateState, RenderFlushGate


class TestRenderFlushGate:
    """At most one flush per interval; the final batch is never dropped."""

    @pytest.mark.asyncio
    async def test_first_offer_flushes_immediately(self):
        flushed: list[list[int]] = []
        gate = RenderFlushGate(flushed.append, interval_seconds=0.05)
        gate.offer([1])
        assert flushed == [[1]]
        assert gate.state is GateState.IDLE

    @pytest.mark.asyncio
    async def test_offers_inside_interval_coalesce(self):
        flushed: list[list[int]] = []
        gate = RenderFlushGate(flushed.append, interval_seconds=0.05)
        gate.offer([1])
        gate.offer([1, 2])
        gate.offer([1, 2, 3])
        assert gate.state is GateState.PENDING
        assert flushed == [[1]]

        await asyncio.sleep(0.15)
        assert flushed == [[1], [1, 2, 3]]
        assert gate.flush_count == 2

    @pytest.mark.asyncio
    async def test_close_flushes_final_and_cancels_timer(self):
        flushed: list[list[int]] = []
        gate = RenderFlushGate(flushed.append, interval_seconds=0.05)
        gate.offer([1])
        gate.offer([1, 2])
        gate.close([1, 2, 3, 4])

        assert flushed == [[1], [1, 2, 3, 4]]
        assert gate.state is GateState.CLOSED
        await asyncio.sleep(0.1)
        assert flushed == [[1], [1, 2, 3, 4]]

    @pytest.mark.asyncio
    async def test_offer_after_close_is_ignored(self):
        flushed: list[list[int]] = []
        gate = RenderFlushGate(flushed.append, interval_seconds=0.05)
        gate.close([1])
        gate.offer([2])
        gate.close([3])
        assert flushed == [[1]]

    @pytest.mark.asyncio
    async def test_close_without_anything_pending(self):
        flushed: list[list[int]] = []
        gate = RenderFlushGate(flushed.append)
        gate.close()
        assert flushed == []
        assert gate.state is GateState.CLOSED

    @pytest.mark.asyncio
    async def test_failing_flush_does_not_propagate(self):
        def explode(batch):
            raise RuntimeError("renderer crashed")

        gate = RenderFlushGate(explode, interval_seconds=0.05)
        gate.offer([1])
        gate.close([1, 2])
        assert gate.flush_count == 2
