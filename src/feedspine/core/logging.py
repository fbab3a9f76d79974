"""
Structured logging for FeedSpine.

WHY
───
One load cycle fans out into dozens of concurrent tasks, each failing in
its own way. Plain log lines interleave into noise; structured events
carrying ``cycle``/``variant``/``domain`` fields can be filtered back into
one cycle's story in any log aggregator.

ARCHITECTURE
────────────
::

    configure_logging(level, json_format, service)
      processors:
        TimeStamper(iso) → merge_contextvars → add_log_level
        → add_logger_name → StackInfoRenderer → set_exc_info
        → _stamp_service → _flatten_error
        → JSONRenderer (not a tty) | ConsoleRenderer (tty)

    configure_from_settings(settings)   FEEDSPINE_LOG_LEVEL / FEEDSPINE_LOG_JSON

    cycle_context(variant)              binds cycle=<ulid>, variant=<variant>
                                        for every task spawned inside it

Event names are dotted snake-case (``"ladder.resolved"``,
``"scheduler.task_failed"``). A ``FeedSpineError`` passed as ``error=`` is
expanded into its ``to_dict()`` form.

Tags:
    logging, structlog, contextvars
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from feedspine.core.timestamps import generate_ulid

if TYPE_CHECKING:
    from feedspine.core.settings import FeedSpineSettings

_service = "feedspine"


def _stamp_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _service)
    return event_dict


def _flatten_error(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Make ``error=`` values JSON-friendly."""
    error = event_dict.get("error")
    to_dict = getattr(error, "to_dict", None)
    if callable(to_dict):
        event_dict["error"] = to_dict()
    elif isinstance(error, BaseException):
        event_dict["error"] = f"{type(error).__name__}: {error}"
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "feedspine",
    add_timestamp: bool = True,
) -> None:
    """Install the processor chain for the whole process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False, auto when None
        service: Value of the ``service`` field on every event
        add_timestamp: Prefix events with an ISO timestamp
    """
    global _service
    _service = service
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _stamp_service,
        _flatten_error,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: FeedSpineSettings) -> None:
    configure_logging(level=settings.log_level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


@contextmanager
def cycle_context(variant: str, cycle_id: str | None = None) -> Iterator[str]:
    """Bind ``cycle`` and ``variant`` for everything logged inside; yields the cycle id.

    asyncio tasks copy the current context when created, so tasks started
    inside the block keep the binding.
    """
    cycle = cycle_id or generate_ulid()
    with structlog.contextvars.bound_contextvars(cycle=cycle, variant=variant):
        yield cycle


__all__ = [
    "configure_from_settings",
    "configure_logging",
    "cycle_context",
    "get_logger",
]
