"""Cooldown cache that stops the same story flashing the map twice."""

from __future__ import annotations

from feedspine.core.timestamps import Clock, monotonic


class FlashCache:
    """
    Map of ``source|link-or-title`` → last time the story was acted on.

    ``should_flash`` answers and records in one call. Entries older than
    the cooldown are swept on every call, so no timer is needed.

    Example:
        flashes = FlashCache(cooldown_seconds=600)
        if flashes.should_flash(item.source, item.link, item.title):
            sink.flash_location(lat, lon)
    """

    def __init__(self, cooldown_seconds: float = 600.0, *, clock: Clock = monotonic):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._seen: dict[str, float] = {}

    @staticmethod
    def key_for(source: str, link: str | None, title: str) -> str:
        return f"{source}|{link or title}"

    def should_flash(self, source: str, link: str | None, title: str) -> bool:
        now = self._clock()
        self.sweep(now)
        key = self.key_for(source, link, title)
        if key in self._seen:
            return False
        self._seen[key] = now
        return True

    def sweep(self, now: float | None = None) -> int:
        """Drop entries past the cooldown; returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [k for k, ts in self._seen.items() if now - ts > self.cooldown_seconds]
        for key in expired:
            del self._seen[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._seen)


__all__ = ["FlashCache"]
