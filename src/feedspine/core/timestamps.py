"""
Time helpers: UTC datetimes, injectable clocks and time-sortable IDs.

Caches, cooldowns and render gates measure elapsed time against a
``Clock`` (a zero-argument callable returning seconds). Production code
uses ``time.monotonic``; tests pass a ``ManualClock`` they can advance.
Signal IDs are ULID-like so the signal history sorts by creation time.

Tags:
    timestamps, ulid, utc, clock
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

Clock = Callable[[], float]

monotonic: Clock = time.monotonic


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def hours_ago(hours: float, *, now: datetime | None = None) -> datetime:
    """UTC datetime ``hours`` before ``now``."""
    return (now or utc_now()) - timedelta(hours=hours)


def parse_timestamp(value: object, *, default: datetime | None = None) -> datetime:
    """Coerce an ISO string, epoch seconds or datetime into an aware UTC datetime.

    Unparseable values fall back to ``default`` (or now).
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return default or utc_now()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return default or utc_now()


class ManualClock:
    """Deterministic clock for tests and replay."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def generate_ulid() -> str:
    """
    Generate a ULID-like identifier.

    Format: 26 characters, Crockford base32, time-sortable.
    """
    timestamp_chars = _encode_base32(int(time.time() * 1000), 10)
    random_part = "".join(random.choices(_ENCODING, k=16))
    return timestamp_chars + random_part


_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def _encode_base32(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        value, index = divmod(value, len(_ENCODING))
        chars.append(_ENCODING[index])
    return "".join(reversed(chars))


__all__ = [
    "Clock",
    "ManualClock",
    "monotonic",
    "utc_now",
    "hours_ago",
    "parse_timestamp",
    "generate_ulid",
]
