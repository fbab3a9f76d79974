"""
Rolling per-metric count baselines and deviation scoring.

Each metric (``"news:politics"``, ``"military_flights"``, ``"vessels"``,
``"satellite_fires"``, ...) keeps a sliding window of its recent counts.
A new observation is appended with ``update_baseline`` and then scored
with ``calculate_deviation``: the z-score and percent change are computed
against the samples that came *before* the observation, so the result
depends only on the stored history.

Architecture:
    ::

        update_baseline("vessels", 40)
              │
              ▼
        Baseline(key="vessels", history=(10, 12, 11, 40))
              │
              ▼
        calculate_deviation(40, baseline)
              │   reference = (10, 12, 11)   mean=11  std=1.0
              ▼
        Deviation(z_score=29.0, percent_change=263.6, level=HIGH)

Guardrails:
    - Standard deviation is floored at ``MIN_STDDEV`` for count metrics.
    - Fewer than ``min_samples`` reference values always score NORMAL.
    - Persistence failures never affect the in-memory baseline.

Tags:
    baseline, z-score, anomaly, rolling-window
"""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass

from feedspine.core.cache import PersistentCache, load_quietly, persist_quietly
from feedspine.core.logging import get_logger
from feedspine.core.models import Deviation, DeviationLevel

logger = get_logger(__name__)

ELEVATED_Z = 2.0
HIGH_Z = 3.0
MIN_STDDEV = 1.0


@dataclass(frozen=True)
class Baseline:
    """Snapshot of one metric's history; the last value is the newest."""

    key: str
    history: tuple[float, ...]

    @property
    def latest(self) -> float | None:
        return self.history[-1] if self.history else None

    @property
    def reference(self) -> tuple[float, ...]:
        """Samples preceding the newest observation."""
        return self.history[:-1]


def level_for(z_score: float) -> DeviationLevel:
    magnitude = abs(z_score)
    if magnitude >= HIGH_Z:
        return DeviationLevel.HIGH
    if magnitude >= ELEVATED_Z:
        return DeviationLevel.ELEVATED
    return DeviationLevel.NORMAL


def calculate_deviation(current: float, baseline: Baseline, *, min_samples: int = 3) -> Deviation:
    """Score ``current`` against the baseline's reference samples."""
    reference = baseline.reference
    if len(reference) < min_samples:
        return Deviation(
            z_score=0.0,
            percent_change=0.0,
            level=DeviationLevel.NORMAL,
            mean=statistics.fmean(reference) if reference else 0.0,
            samples=len(reference),
        )

    mean = statistics.fmean(reference)
    stddev = max(statistics.stdev(reference), MIN_STDDEV)
    z_score = (current - mean) / stddev
    if mean > 0:
        percent_change = (current - mean) / mean * 100.0
    else:
        percent_change = 100.0 if current > 0 else 0.0

    return Deviation(
        z_score=round(z_score, 4),
        percent_change=round(percent_change, 2),
        level=level_for(z_score),
        mean=mean,
        samples=len(reference),
    )


class BaselineStore:
    """
    Sliding count history per metric key.

    Keys are never deleted; each key's window slides once it holds
    ``window_size`` samples. When a ``PersistentCache`` is supplied, a key
    is hydrated from it on first use and written back after every update.

    Example:
        store = BaselineStore(window_size=30)
        baseline = await store.update_baseline("news:politics", 42)
        deviation = store.calculate_deviation(42, baseline)
    """

    KEY_PREFIX = "baseline:"

    def __init__(
        self,
        *,
        window_size: int = 30,
        min_samples: int = 3,
        persistent: PersistentCache | None = None,
    ):
        self.window_size = window_size
        self.min_samples = min_samples
        self._persistent = persistent
        self._histories: dict[str, deque[float]] = {}

    def keys(self) -> list[str]:
        return list(self._histories)

    def get(self, key: str) -> Baseline:
        return Baseline(key=key, history=tuple(self._histories.get(key, ())))

    def record(self, key: str, count: float) -> Baseline:
        """Append ``count`` to ``key`` without touching persistence."""
        history = self._histories.get(key)
        if history is None:
            history = self._histories[key] = deque(maxlen=self.window_size)
        history.append(float(count))
        return Baseline(key=key, history=tuple(history))

    async def update_baseline(self, key: str, count: float) -> Baseline:
        if key not in self._histories and self._persistent is not None:
            await self._hydrate(key)
        baseline = self.record(key, count)
        await persist_quietly(self._persistent, self.KEY_PREFIX + key, list(baseline.history))
        return baseline

    def calculate_deviation(self, current: float, baseline: Baseline) -> Deviation:
        return calculate_deviation(current, baseline, min_samples=self.min_samples)

    async def observe(self, key: str, count: float) -> Deviation:
        """Update ``key`` with ``count`` and score it in one step."""
        baseline = await self.update_baseline(key, count)
        return self.calculate_deviation(count, baseline)

    async def _hydrate(self, key: str) -> None:
        entry = await load_quietly(self._persistent, self.KEY_PREFIX + key)
        if entry is None or not isinstance(entry.data, list):
            return
        try:
            values = [float(v) for v in entry.data]
        except (TypeError, ValueError):
            logger.warning("baseline.hydrate_invalid", key=key)
            return
        self._histories[key] = deque(values[-self.window_size :], maxlen=self.window_size)
        logger.debug("baseline.hydrated", key=key, samples=len(values))


__all__ = [
    "Baseline",
    "BaselineStore",
    "calculate_deviation",
    "level_for",
    "ELEVATED_Z",
    "HIGH_Z",
]
