"""Intel hotspots and conflict zones used to place headlines on the map."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

MIN_KEYWORD_LENGTH = 3


@dataclass(frozen=True)
class Hotspot:
    name: str
    lat: float
    lon: float
    keywords: tuple[str, ...]

    def matches(self, title: str) -> int:
        """How many of this hotspot's keywords appear in ``title``."""
        lowered = title.lower()
        return sum(
            1
            for keyword in self.keywords
            if len(keyword.strip()) >= MIN_KEYWORD_LENGTH and keyword.strip().lower() in lowered
        )


INTEL_HOTSPOTS: tuple[Hotspot, ...] = (
    Hotspot("Washington", 38.9, -77.04, ("pentagon", "white house", "washington", "congress")),
    Hotspot("Moscow", 55.75, 37.62, ("kremlin", "moscow", "putin")),
    Hotspot("Beijing", 39.9, 116.4, ("beijing", "xi jinping", "ccp")),
    Hotspot("Taipei", 25.03, 121.56, ("taiwan", "taipei", "taiwan strait")),
    Hotspot("Tehran", 35.69, 51.39, ("iran", "tehran", "irgc", "khamenei")),
    Hotspot("Jerusalem", 31.77, 35.21, ("israel", "jerusalem", "netanyahu", "idf")),
    Hotspot("Pyongyang", 39.03, 125.75, ("north korea", "pyongyang", "kim jong")),
    Hotspot("Brussels", 50.85, 4.35, ("nato", "brussels", "european commission")),
    Hotspot("Strait of Hormuz", 26.57, 56.25, ("hormuz", "persian gulf")),
    Hotspot("Caracas", 10.49, -66.88, ("venezuela", "caracas", "maduro")),
)

CONFLICT_ZONES: tuple[Hotspot, ...] = (
    Hotspot("Ukraine", 48.5, 35.0, ("ukraine", "kyiv", "donbas", "donetsk", "zaporizhzhia", "kharkiv")),
    Hotspot("Gaza", 31.4, 34.4, ("gaza", "hamas", "rafah", "khan younis")),
    Hotspot("Sudan", 15.6, 32.5, ("sudan", "khartoum", "darfur", "rsf")),
    Hotspot("Yemen / Red Sea", 15.4, 44.2, ("yemen", "houthi", "red sea", "bab el-mandeb")),
    Hotspot("Myanmar", 21.9, 95.9, ("myanmar", "burma", "junta")),
    Hotspot("Sahel", 14.5, 0.0, ("sahel", "mali", "burkina faso", "niger")),
    Hotspot("DR Congo", -1.7, 29.2, ("congo", "goma", "m23", "kivu")),
)


def find_flash_location(
    title: str,
    hotspots: Sequence[Hotspot] = INTEL_HOTSPOTS + CONFLICT_ZONES,
) -> Hotspot | None:
    """Hotspot with the most keyword hits in ``title``; the first wins ties."""
    best: Hotspot | None = None
    best_matches = 0
    for hotspot in hotspots:
        matches = hotspot.matches(title)
        if matches > best_matches:
            best, best_matches = hotspot, matches
    return best


__all__ = ["CONFLICT_ZONES", "INTEL_HOTSPOTS", "Hotspot", "find_flash_location"]
