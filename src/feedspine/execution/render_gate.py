"""Render-flush gate: at most one UI flush per interval, never drop the last batch.

A category's feeds finish one by one; each partial union of items is
``offer``-ed to the gate. The gate is a small state machine:

::

    IDLE ──offer, interval elapsed──► FLUSHING ──► IDLE
    IDLE ──offer, too soon─────────► PENDING (timer armed for the remainder)
    PENDING ──offer────────────────► PENDING (batch replaced, timer kept)
    PENDING ──timer fires──────────► FLUSHING ──► IDLE
    any ──close(final)─────────────► FLUSHING ──► CLOSED (timer cancelled)

The pending slot only ever holds the newest batch, so flushes are strictly
time-ordered. ``close`` always flushes the final batch before returning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from feedspine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class GateState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FLUSHING = "flushing"
    CLOSED = "closed"


class RenderFlushGate(Generic[T]):
    """Debounced flush of partial batches for one category.

    Must be used from inside a running event loop.

    Example:
        gate = RenderFlushGate(lambda items: sink.render_news("politics", items))
        gate.offer(partial_items)
        ...
        gate.close(final_items)
    """

    def __init__(
        self,
        flush: Callable[[T], None],
        *,
        interval_seconds: float = 0.1,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._flush = flush
        self.interval_seconds = interval_seconds
        self._loop = loop or asyncio.get_running_loop()
        self._pending: T | None = None
        self._has_pending = False
        self._timer: asyncio.TimerHandle | None = None
        self._last_flush: float | None = None
        self.state = GateState.IDLE
        self.flush_count = 0

    def offer(self, batch: T) -> None:
        """Hand the gate the newest partial batch."""
        if self.state is GateState.CLOSED:
            return
        self._pending = batch
        self._has_pending = True

        remaining = self._remaining()
        if remaining <= 0:
            self._cancel_timer()
            self._do_flush()
            return
        if self._timer is None:
            self._timer = self._loop.call_later(remaining, self._on_timer)
        self.state = GateState.PENDING

    def close(self, final: T | None = None) -> None:
        """Cancel any deferred flush and flush ``final`` (or the pending batch)."""
        if self.state is GateState.CLOSED:
            return
        self._cancel_timer()
        if final is not None:
            self._pending = final
            self._has_pending = True
        self._do_flush()
        self.state = GateState.CLOSED

    def _remaining(self) -> float:
        if self._last_flush is None:
            return 0.0
        return self.interval_seconds - (self._loop.time() - self._last_flush)

    def _on_timer(self) -> None:
        self._timer = None
        if self.state is GateState.PENDING:
            self._do_flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _do_flush(self) -> None:
        if not self._has_pending:
            self.state = GateState.IDLE
            return
        self.state = GateState.FLUSHING
        batch = self._pending
        self._pending = None
        self._has_pending = False
        self._last_flush = self._loop.time()
        self.flush_count += 1
        try:
            self._flush(batch)  # type: ignore[arg-type]
        except Exception as exc:
            logger.warning("render_gate.flush_failed", error=exc)
        finally:
            self.state = GateState.IDLE


__all__ = ["GateState", "RenderFlushGate"]
