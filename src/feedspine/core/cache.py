"""
Caching primitives for the fallback ladder.

Three pieces live here:

- ``DomainCache``: keyed ``{data, timestamp}`` slots, each read checked
  against its TTL. One key per ladder domain or generative bundle.
- ``SingleFlight``: in-flight request de-duplication. Concurrent callers
  for the same key attach to one pending task and all receive its result.
- ``PersistentCache``: the narrow async get/set contract for storage that
  outlives the process, plus ``InMemoryPersistentCache`` and the
  ``persist_quietly`` helper whose write failures never propagate.

Architecture:
    ::

        caller ─┬─► DomainCache.get(key) ── fresh? ──► return cached
                │
                └─► SingleFlight.do(key, fetch) ── pending? ──► await same task
                                                └─ none ────► start task

Guardrails:
    - Expired entries are never returned; a read at ``timestamp + ttl``
      is a miss.
    - The in-flight slot is released when the task finishes, before any
      waiter resumes.

Tags:
    cache, ttl, single-flight, deduplication
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from feedspine.core.logging import get_logger
from feedspine.core.timestamps import Clock, monotonic, utc_now

logger = get_logger(__name__)

T = TypeVar("T")


# ------------------------------------------------------------------ #
# Domain cache
# ------------------------------------------------------------------ #


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl_seconds


class DomainCache(Generic[T]):
    """TTL cache keyed by domain.

    Example:
        cache = DomainCache(default_ttl_seconds=600)
        cache.set("market", payload)
        cache.get("market")  # payload until 10 minutes have passed
    """

    def __init__(self, *, default_ttl_seconds: float = 600.0, clock: Clock = monotonic):
        self._entries: dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl_seconds
        self._clock = clock

    def get(self, key: str) -> T | None:
        """Return the cached value for ``key`` if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: T, *, ttl_seconds: float | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), ttl_seconds=ttl)

    def age(self, key: str) -> float | None:
        """Seconds since ``key`` was written, or None."""
        entry = self._entries.get(key)
        return None if entry is None else self._clock() - entry.timestamp

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


# ------------------------------------------------------------------ #
# In-flight de-duplication
# ------------------------------------------------------------------ #


class SingleFlight(Generic[T]):
    """At most one outstanding call per key.

    Example:
        flight = SingleFlight()
        a, b = await asyncio.gather(flight.do("crypto", fetch), flight.do("crypto", fetch))
        # fetch ran once; a == b
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._pending

    async def do(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(operation())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            logger.debug("single_flight.joined", key=key)
        # Cancelling one waiter must not cancel the shared upstream call.
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]


# ------------------------------------------------------------------ #
# Persistent cache contract
# ------------------------------------------------------------------ #


@dataclass
class PersistedEntry:
    data: Any
    updated_at: datetime = field(default_factory=utc_now)


@runtime_checkable
class PersistentCache(Protocol):
    """Storage that outlives the process (browser storage, disk, Redis)."""

    async def get(self, key: str) -> PersistedEntry | None: ...

    async def set(self, key: str, data: Any) -> None: ...


class InMemoryPersistentCache:
    """Process-local PersistentCache implementation."""

    def __init__(self) -> None:
        self._store: dict[str, PersistedEntry] = {}

    async def get(self, key: str) -> PersistedEntry | None:
        return self._store.get(key)

    async def set(self, key: str, data: Any) -> None:
        self._store[key] = PersistedEntry(data=data)

    def keys(self) -> list[str]:
        return list(self._store)


async def persist_quietly(cache: PersistentCache | None, key: str, data: Any) -> bool:
    """Write ``data`` under ``key``; failures are logged and swallowed."""
    if cache is None:
        return False
    try:
        await cache.set(key, data)
    except Exception as exc:
        logger.warning("persistent_cache.set_failed", key=key, error=exc)
        return False
    return True


async def load_quietly(cache: PersistentCache | None, key: str) -> PersistedEntry | None:
    """Read ``key``; failures are logged and read as a miss."""
    if cache is None:
        return None
    try:
        return await cache.get(key)
    except Exception as exc:
        logger.warning("persistent_cache.get_failed", key=key, error=exc)
        return None


__all__ = [
    "CacheEntry",
    "DomainCache",
    "SingleFlight",
    "PersistedEntry",
    "PersistentCache",
    "InMemoryPersistentCache",
    "persist_quietly",
    "load_quietly",
]
