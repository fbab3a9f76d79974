"""Guarded Task Scheduler: at most one concurrent run per task name.

WHY
───
A dashboard reload, a layer toggle and the periodic refresh can all ask
for ``"intelligence"`` at once. The second request must not start a
second copy: it would double the upstream load and race the first copy's
writes into the render sinks. The scheduler also honours a process-wide
``destroyed`` flag so nothing new starts after shutdown.

ARCHITECTURE
────────────
::

    GuardedScheduler(state)
      ├── .run_guarded(name, operation)  ─ skip if destroyed / in flight
      │       └── InFlightRegistry.claim(name)   acquire … finally release
      ├── .run_all(tasks)                ─ fan-out / fan-in, all settle
      └── .destroy()                     ─ flip the destroyed flag

    run_guarded never raises: failures are logged with the task name and
    reported as TaskStatus.FAILED.

BEST PRACTICES
──────────────
- Name tasks after the domain they load (``"markets"``, ``"weather"``)
  so per-layer reloads and full cycles share the same guard.
- Check ``scheduler.destroyed`` at continuation points inside long tasks.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from feedspine.core.logging import get_logger
from feedspine.core.models import SourceTask

logger = get_logger(__name__)


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED_IN_FLIGHT = "skipped_in_flight"
    SKIPPED_DESTROYED = "skipped_destroyed"


@dataclass
class TaskReport:
    name: str
    status: TaskStatus
    error: str | None = None


@dataclass
class CycleReport:
    """Outcome of one fan-out/fan-in join."""

    reports: list[TaskReport] = field(default_factory=list)

    def by_status(self, status: TaskStatus) -> list[str]:
        return [r.name for r in self.reports if r.status is status]

    @property
    def completed(self) -> list[str]:
        return self.by_status(TaskStatus.COMPLETED)

    @property
    def failed(self) -> list[str]:
        return self.by_status(TaskStatus.FAILED)


class InFlightRegistry:
    """The set of task names currently executing."""

    def __init__(self) -> None:
        self._names: set[str] = set()

    def is_locked(self, name: str) -> bool:
        return name in self._names

    def list_active(self) -> list[str]:
        return sorted(self._names)

    @contextmanager
    def claim(self, name: str) -> Iterator[bool]:
        """Yield True if ``name`` was free and is now held until exit."""
        if name in self._names:
            yield False
            return
        self._names.add(name)
        try:
            yield True
        finally:
            self._names.discard(name)


class GuardedScheduler:
    """Runs named operations with per-name mutual exclusion.

    Example:
        scheduler = GuardedScheduler()
        await scheduler.run_guarded("markets", driver.load_markets)
    """

    def __init__(self, in_flight: InFlightRegistry | None = None):
        self.in_flight = in_flight if in_flight is not None else InFlightRegistry()
        self.destroyed = False

    def destroy(self) -> None:
        self.destroyed = True
        logger.info("scheduler.destroyed", in_flight=self.in_flight.list_active())

    async def run_guarded(
        self, name: str, operation: Callable[[], Awaitable[Any]]
    ) -> TaskReport:
        if self.destroyed:
            return TaskReport(name, TaskStatus.SKIPPED_DESTROYED)

        with self.in_flight.claim(name) as acquired:
            if not acquired:
                logger.debug("scheduler.skip_in_flight", task=name)
                return TaskReport(name, TaskStatus.SKIPPED_IN_FLIGHT)
            try:
                await operation()
            except Exception as exc:
                if not self.destroyed:
                    logger.error("scheduler.task_failed", task=name, error=exc, exc_info=True)
                return TaskReport(name, TaskStatus.FAILED, error=str(exc))

        return TaskReport(name, TaskStatus.COMPLETED)

    async def run_all(self, tasks: Iterable[SourceTask]) -> CycleReport:
        """Run every task guarded and wait for all of them to settle."""
        task_list = list(tasks)
        logger.info("scheduler.cycle_start", tasks=[t.name for t in task_list])

        results = await asyncio.gather(
            *(self.run_guarded(t.name, t.run) for t in task_list),
            return_exceptions=True,
        )

        cycle = CycleReport()
        for task, result in zip(task_list, results):
            if isinstance(result, BaseException):
                # Only cancellation can get past run_guarded.
                cycle.reports.append(TaskReport(task.name, TaskStatus.FAILED, error=repr(result)))
            else:
                cycle.reports.append(result)

        logger.info(
            "scheduler.cycle_complete",
            completed=len(cycle.completed),
            failed=cycle.failed,
        )
        return cycle


__all__ = [
    "TaskStatus",
    "TaskReport",
    "CycleReport",
    "InFlightRegistry",
    "GuardedScheduler",
]
