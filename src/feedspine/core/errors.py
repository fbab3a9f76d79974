"""
Structured error types for FeedSpine.

Every upstream the loader talks to fails in one of a handful of ways: the
network drops, the API rate-limits, the response is empty, the payload is
garbage, the upstream says it is down, or the call simply takes too long.
The hierarchy below gives each of those a type so the fallback ladder and
the scheduler can log *what* went wrong without ever letting it escape.

Manifesto:
    - **Resolve where detected:** Errors are caught by the component that
      observed them (ladder, scheduler, pipeline, engine) and never reach
      the caller of a load cycle.
    - **Typed failure kinds:** ``FailureKind`` mirrors the ingestion
      taxonomy so logs and ``LadderResult.attempts`` stay uniform.
    - **Rich Context:** Errors carry domain/source/provider metadata for
      structured logging via ``to_dict()``.

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                     FeedSpineError                          │
        │  (category, retryable, retry_after, context, cause)        │
        ├───────────────────────────────────────────────────────────┤
        │  TransientError          SourceError          ConfigError  │
        │  (retryable=True)        (SOURCE)             (CONFIG)     │
        │       │                      │                    │        │
        │  NetworkError           EmptyResultError    MissingConfig  │
        │  RateLimitError         UpstreamUnavailable                │
        │  FetchTimeoutError      ParseError                         │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> err = RateLimitError("finnhub 429").with_context(domain="markets")
    >>> err.retryable, err.context.domain
    (True, 'markets')
    >>> classify_failure(err)
    <FailureKind.RATE_LIMITED: 'rate_limited'>

Tags:
    errors, exceptions, taxonomy, retry, fallback
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx


class ErrorCategory(str, Enum):
    """Broad error categories used for log routing."""

    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT = "RATE_LIMIT"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class FailureKind(str, Enum):
    """
    Ingestion failure taxonomy.

    Each ladder rung that does not produce data records exactly one of
    these kinds. ``UPSTREAM_UNAVAILABLE`` is distinct from ``EMPTY``: the
    fetcher explicitly said the upstream is down, so an empty list must
    not be read as "nothing happened".
    """

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    EMPTY = "empty"
    PARSE = "parse"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    TIMEOUT = "timeout"
    CONFIG = "config"
    UNKNOWN = "unknown"


_CONTEXT_FIELDS = ("domain", "source", "provider", "url")


@dataclass
class ErrorContext:
    """Structured metadata attached to a FeedSpineError."""

    domain: str | None = None
    source: str | None = None
    provider: str | None = None
    url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out = {k: getattr(self, k) for k in _CONTEXT_FIELDS if getattr(self, k) is not None}
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out


class FeedSpineError(Exception):
    """
    Base exception for all FeedSpine errors.

    Subclasses set ``default_category``, ``default_retryable`` and
    ``failure_kind`` so that callers can branch on the type alone.

    Examples:
        >>> err = FeedSpineError("boom")
        >>> err.category, err.retryable
        (<ErrorCategory.INTERNAL: 'INTERNAL'>, False)
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    failure_kind: FailureKind = FailureKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: float | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = self.default_category if category is None else category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.retry_after = retry_after
        self.context = ErrorContext() if context is None else context
        self.cause = cause
        self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FeedSpineError:
        """Attach domain/source/provider/url; anything else lands in ``metadata``."""
        for key, value in kwargs.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "kind": self.failure_kind.value,
            "retryable": self.retryable,
        }
        optional = {
            "retry_after": self.retry_after,
            "context": self.context.to_dict() or None,
            "cause": None if self.cause is None else str(self.cause),
        }
        out.update((k, v) for k, v in optional.items() if v is not None)
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, kind={self.failure_kind.value})"


# ── Transient: worth another attempt ─────────────────────────────────────


class TransientError(FeedSpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True
    failure_kind = FailureKind.NETWORK


class NetworkError(TransientError):
    """Connection, DNS or non-success HTTP status from an upstream."""


class RateLimitError(TransientError):
    """Upstream asked us to back off (HTTP 429 or an explicit flag)."""

    default_category = ErrorCategory.RATE_LIMIT
    failure_kind = FailureKind.RATE_LIMITED

    def __init__(self, message: str, retry_after: float = 60, **kwargs: Any):
        super().__init__(message, retry_after=retry_after, **kwargs)


class FetchTimeoutError(TransientError, builtins.TimeoutError):
    """A per-call deadline expired."""

    default_category = ErrorCategory.TIMEOUT
    failure_kind = FailureKind.TIMEOUT


# ── Source: upstream answered badly ──────────────────────────────────────


class SourceError(FeedSpineError):
    """Upstream answered, but not with usable data."""

    default_category = ErrorCategory.SOURCE


class EmptyResultError(SourceError):
    """Upstream returned zero items."""

    failure_kind = FailureKind.EMPTY


class UpstreamUnavailableError(SourceError):
    """Fetcher flagged the upstream as down; do not treat as empty."""

    default_retryable = True
    failure_kind = FailureKind.UPSTREAM_UNAVAILABLE


class ParseError(SourceError):
    """Payload could not be parsed or failed validation."""

    default_category = ErrorCategory.PARSE
    failure_kind = FailureKind.PARSE


# ── Config: never retried ────────────────────────────────────────────────


class ConfigError(FeedSpineError):
    """Configuration problem (never retryable)."""

    default_category = ErrorCategory.CONFIG
    failure_kind = FailureKind.CONFIG


class MissingConfigError(ConfigError):
    """Required configuration (API key, fetcher registration) is missing."""

    def __init__(self, config_key: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Missing required config: {config_key}", **kwargs)
        self.config_key = config_key


# ── Classification ───────────────────────────────────────────────────────


def classify_failure(error: BaseException) -> FailureKind:
    """Map any exception onto the ingestion failure taxonomy."""
    if isinstance(error, FeedSpineError):
        return error.failure_kind
    if isinstance(error, httpx.HTTPStatusError):
        if error.response.status_code == 429:
            return FailureKind.RATE_LIMITED
        return FailureKind.NETWORK
    if isinstance(error, (httpx.TimeoutException, builtins.TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(error, (httpx.HTTPError, ConnectionError)):
        return FailureKind.NETWORK
    if isinstance(error, ValueError):
        return FailureKind.PARSE
    return FailureKind.UNKNOWN


def is_retryable(error: BaseException) -> bool:
    """True for FeedSpine errors flagged retryable and for network-ish foreign errors."""
    if isinstance(error, FeedSpineError):
        return error.retryable
    return classify_failure(error) in (
        FailureKind.NETWORK,
        FailureKind.TIMEOUT,
        FailureKind.RATE_LIMITED,
    )


def get_retry_after(error: BaseException) -> float | None:
    """Server-suggested delay in seconds, when the error carries one."""
    return error.retry_after if isinstance(error, FeedSpineError) else None


__all__ = [
    "ErrorCategory",
    "FailureKind",
    "ErrorContext",
    "FeedSpineError",
    "TransientError",
    "NetworkError",
    "RateLimitError",
    "FetchTimeoutError",
    "SourceError",
    "EmptyResultError",
    "UpstreamUnavailableError",
    "ParseError",
    "ConfigError",
    "MissingConfigError",
    "classify_failure",
    "is_retryable",
    "get_retry_after",
]
