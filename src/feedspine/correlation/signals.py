"""
Signal factories and the signal history sink.

Every detector result becomes a frozen ``Signal`` here, so severity rules
and titles live in one place. ``SignalHistory`` is the outward sink: each
signal is recorded and handed to every subscriber exactly once.

Tags:
    signals, history, notification
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime

from feedspine.core.logging import get_logger
from feedspine.core.models import Deviation, DeviationLevel, Severity, Signal, SignalKind
from feedspine.core.timestamps import generate_ulid, utc_now
from feedspine.correlation.geo import ConvergenceCluster
from feedspine.correlation.keywords import KeywordSpike
from feedspine.correlation.military import ForeignPresence, SurgeAlert

logger = get_logger(__name__)

SignalCallback = Callable[[list[Signal]], None]


def severity_for(deviation: Deviation) -> Severity:
    if deviation.level is DeviationLevel.HIGH:
        return Severity.HIGH
    if deviation.level is DeviationLevel.ELEVATED:
        return Severity.MEDIUM
    return Severity.LOW


def _deviation_meta(deviation: Deviation) -> dict[str, float | int | str]:
    return {
        "z_score": deviation.z_score,
        "percent_change": deviation.percent_change,
        "level": deviation.level.value,
        "mean": round(deviation.mean, 2),
        "samples": deviation.samples,
    }


def surge_signal(alert: SurgeAlert, *, now: datetime | None = None) -> Signal:
    return Signal(
        id=generate_ulid(),
        kind=SignalKind.SURGE,
        severity=severity_for(alert.deviation),
        source_refs=alert.track_ids,
        created_at=now or utc_now(),
        title=f"Military activity surge: {alert.theater.replace('_', ' ')}",
        description=(
            f"{alert.count} tracks vs. a baseline of {alert.deviation.mean:.1f} "
            f"(z={alert.deviation.z_score:.1f})"
        ),
        metadata={"theater": alert.theater, "count": alert.count, **_deviation_meta(alert.deviation)},
    )


def foreign_presence_signal(presence: ForeignPresence, *, now: datetime | None = None) -> Signal:
    count = len(presence.track_ids)
    return Signal(
        id=generate_ulid(),
        kind=SignalKind.FOREIGN_PRESENCE,
        severity=Severity.HIGH if count >= 3 else Severity.MEDIUM,
        source_refs=presence.track_ids,
        created_at=now or utc_now(),
        title=f"{presence.origin} military presence: {presence.theater.replace('_', ' ')}",
        description=f"{count} {presence.origin} track(s) in a theater where they are not routinely based",
        location=presence.location,
        metadata={"theater": presence.theater, "origin": presence.origin, "count": count},
    )


def convergence_signal(cluster: ConvergenceCluster, *, now: datetime | None = None) -> Signal:
    types = sorted(cluster.types)
    return Signal(
        id=generate_ulid(),
        kind=SignalKind.GEO_CONVERGENCE,
        severity=Severity.HIGH if len(types) >= 3 else Severity.MEDIUM,
        source_refs=cluster.member_ids,
        created_at=now or utc_now(),
        title=f"Geographic convergence: {' + '.join(types)}",
        description=f"{len(cluster.events)} events from {len(types)} independent sources",
        location=cluster.center,
        metadata={"cluster_key": cluster.key, "types": types},
    )


def temporal_anomaly_signal(
    metric: str, count: float, deviation: Deviation, *, now: datetime | None = None
) -> Signal:
    direction = "above" if deviation.z_score > 0 else "below"
    return Signal(
        id=generate_ulid(),
        kind=SignalKind.TEMPORAL_ANOMALY,
        severity=severity_for(deviation),
        source_refs=(metric,),
        created_at=now or utc_now(),
        title=f"Unusual {metric} volume",
        description=f"{count:g} is {abs(deviation.percent_change):.0f}% {direction} the baseline",
        metadata={"metric": metric, "count": count, **_deviation_meta(deviation)},
    )


def keyword_spike_signal(spike: KeywordSpike, *, now: datetime | None = None) -> Signal:
    return Signal(
        id=generate_ulid(),
        kind=SignalKind.KEYWORD_SPIKE,
        severity=severity_for(spike.deviation),
        source_refs=spike.headlines,
        created_at=now or utc_now(),
        title=f"Trending: {spike.term}",
        description=f"'{spike.term}' in {spike.count} headlines",
        metadata={"term": spike.term, "count": spike.count, **_deviation_meta(spike.deviation)},
    )


class SignalHistory:
    """
    Bounded history with once-only delivery to subscribers.

    A subscriber that raises is logged and skipped; the others still
    receive the batch.

    Example:
        history = SignalHistory(maxlen=200)
        history.subscribe(modal.show)
        history.publish(signals)
    """

    def __init__(self, maxlen: int = 200):
        self._signals: deque[Signal] = deque(maxlen=maxlen)
        self._delivered: deque[str] = deque(maxlen=maxlen * 5)
        self._delivered_ids: set[str] = set()
        self._subscribers: list[SignalCallback] = []

    def __len__(self) -> int:
        return len(self._signals)

    def subscribe(self, callback: SignalCallback) -> None:
        self._subscribers.append(callback)

    def recent(self, limit: int | None = None) -> list[Signal]:
        signals = list(reversed(self._signals))
        return signals if limit is None else signals[:limit]

    def publish(self, signals: Iterable[Signal]) -> list[Signal]:
        """Record and deliver signals not published before; returns those."""
        fresh = [s for s in signals if s.id not in self._delivered_ids]
        if not fresh:
            return []
        for signal in fresh:
            self._remember(signal.id)
            self._signals.append(signal)
        for callback in self._subscribers:
            try:
                callback(list(fresh))
            except Exception as exc:
                logger.error("signals.subscriber_failed", subscriber=repr(callback), error=exc)
        logger.info("signals.published", count=len(fresh), kinds=sorted({s.kind.value for s in fresh}))
        return fresh

    def _remember(self, signal_id: str) -> None:
        if len(self._delivered) == self._delivered.maxlen:
            self._delivered_ids.discard(self._delivered[0])
        self._delivered.append(signal_id)
        self._delivered_ids.add(signal_id)


__all__ = [
    "SignalCallback",
    "SignalHistory",
    "convergence_signal",
    "foreign_presence_signal",
    "keyword_spike_signal",
    "severity_for",
    "surge_signal",
    "temporal_anomaly_signal",
]
