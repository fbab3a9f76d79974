"""Tests for headline → hotspot matching."""

from __future__ import annotations

import pytest

from feedspine.orchestration.hotspots import Hotspot, find_flash_location


class TestFindFlashLocation:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Kremlin rejects new sanctions", "Moscow"),
            ("IRGC drills near Tehran", "Tehran"),
            ("Houthi attack disrupts Red Sea shipping", "Yemen / Red Sea"),
            ("Clashes continue in Khan Younis", "Gaza"),
        ],
    )
    def test_known_places(self, title, expected):
        hotspot = find_flash_location(title)
        assert hotspot is not None
        assert hotspot.name == expected

    def test_no_match(self):
        assert find_flash_location("Local team wins championship") is None

    def test_most_matches_wins(self):
        hotspots = (
            Hotspot("A", 0, 0, ("alpha",)),
            Hotspot("B", 1, 1, ("alpha", "beta")),
        )
        assert find_flash_location("alpha and beta", hotspots).name == "B"

    def test_first_wins_ties(self):
        hotspots = (Hotspot("A", 0, 0, ("alpha",)), Hotspot("B", 1, 1, ("alpha",)))
        assert find_flash_location("alpha", hotspots).name == "A"

    def test_short_keywords_ignored(self):
        assert find_flash_location("an ox", (Hotspot("X", 0, 0, ("ox",)),)) is None
