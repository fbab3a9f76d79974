"""Execution control: guarded scheduling, retries, deadlines and the fetch pipeline."""

from feedspine.execution.circuit_breaker import CircuitBreaker, CircuitState
from feedspine.execution.pipeline import (
    CategoryFetchPipeline,
    ConcurrentFeedFetcher,
    FeedBatchResult,
)
from feedspine.execution.render_gate import GateState, RenderFlushGate
from feedspine.execution.retry import ConstantBackoff, NoRetry, RetryContext, strategy_for
from feedspine.execution.scheduler import (
    CycleReport,
    GuardedScheduler,
    InFlightRegistry,
    TaskReport,
    TaskStatus,
)
from feedspine.execution.timeout import TimeoutExpired, run_with_timeout_async, with_deadline_async

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "CategoryFetchPipeline",
    "ConcurrentFeedFetcher",
    "FeedBatchResult",
    "GateState",
    "RenderFlushGate",
    "ConstantBackoff",
    "NoRetry",
    "RetryContext",
    "strategy_for",
    "CycleReport",
    "GuardedScheduler",
    "InFlightRegistry",
    "TaskReport",
    "TaskStatus",
    "TimeoutExpired",
    "run_with_timeout_async",
    "with_deadline_async",
]
