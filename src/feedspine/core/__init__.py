"""Core primitives: errors, logging, settings, models, caches and baselines."""

from feedspine.core.baseline import Baseline, BaselineStore, calculate_deviation
from feedspine.core.cache import (
    DomainCache,
    InMemoryPersistentCache,
    PersistedEntry,
    PersistentCache,
    SingleFlight,
)
from feedspine.core.errors import (
    EmptyResultError,
    FailureKind,
    FeedSpineError,
    FetchTimeoutError,
    NetworkError,
    ParseError,
    RateLimitError,
    UpstreamUnavailableError,
    classify_failure,
)
from feedspine.core.flash_cache import FlashCache
from feedspine.core.logging import configure_from_settings, configure_logging, cycle_context, get_logger
from feedspine.core.models import (
    CategoryResult,
    CategoryStatus,
    Deviation,
    DeviationLevel,
    FeedDescriptor,
    FetchOutcome,
    GeoEvent,
    MilitaryTrack,
    NewsItem,
    Severity,
    Signal,
    SignalKind,
    SourceTask,
)
from feedspine.core.settings import FeedSpineSettings, RetryPolicy, SiteVariant, get_settings

__all__ = [
    "Baseline",
    "BaselineStore",
    "calculate_deviation",
    "DomainCache",
    "InMemoryPersistentCache",
    "PersistedEntry",
    "PersistentCache",
    "SingleFlight",
    "EmptyResultError",
    "FailureKind",
    "FeedSpineError",
    "FetchTimeoutError",
    "NetworkError",
    "ParseError",
    "RateLimitError",
    "UpstreamUnavailableError",
    "classify_failure",
    "FlashCache",
    "configure_from_settings",
    "configure_logging",
    "cycle_context",
    "get_logger",
    "CategoryResult",
    "CategoryStatus",
    "Deviation",
    "DeviationLevel",
    "FeedDescriptor",
    "FetchOutcome",
    "GeoEvent",
    "MilitaryTrack",
    "NewsItem",
    "Severity",
    "Signal",
    "SignalKind",
    "SourceTask",
    "FeedSpineSettings",
    "RetryPolicy",
    "SiteVariant",
    "get_settings",
]
