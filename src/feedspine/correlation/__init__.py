"""Cross-source correlation: baselines, convergence, military posture and signals."""

from feedspine.correlation.engine import CorrelationEngine
from feedspine.correlation.geo import (
    ConvergenceCluster,
    GeoConvergenceDetector,
    cluster_key,
    dedupe_nearby,
    haversine_km,
)
from feedspine.correlation.keywords import KeywordSpike, KeywordSpikeTracker
from feedspine.correlation.military import (
    THEATERS,
    ForeignPresence,
    MilitaryAnalyzer,
    SurgeAlert,
    Theater,
)
from feedspine.correlation.signals import SignalHistory

__all__ = [
    "CorrelationEngine",
    "ConvergenceCluster",
    "GeoConvergenceDetector",
    "cluster_key",
    "dedupe_nearby",
    "haversine_km",
    "KeywordSpike",
    "KeywordSpikeTracker",
    "THEATERS",
    "ForeignPresence",
    "MilitaryAnalyzer",
    "SurgeAlert",
    "Theater",
    "SignalHistory",
]
