"""Tests for the map-flash cooldown cache."""

from __future__ import annotations

from feedspine.core.flash_cache import FlashCache


class TestFlashCache:
    def test_first_sighting_flashes_once(self, clock):
        flashes = FlashCache(cooldown_seconds=600, clock=clock)
        assert flashes.should_flash("Reuters", "https://r/1", "Kremlin denies") is True
        assert flashes.should_flash("Reuters", "https://r/1", "Kremlin denies") is False
        assert len(flashes) == 1

    def test_cooldown_expiry_allows_flash_again(self, clock):
        flashes = FlashCache(cooldown_seconds=600, clock=clock)
        flashes.should_flash("Reuters", "https://r/1", "t")
        clock.advance(600)
        assert flashes.should_flash("Reuters", "https://r/1", "t") is False
        clock.advance(1)
        assert flashes.should_flash("Reuters", "https://r/1", "t") is True

    def test_title_used_when_link_missing(self):
        assert FlashCache.key_for("AP", None, "Headline") == "AP|Headline"
        assert FlashCache.key_for("AP", "https://ap/1", "Headline") == "AP|https://ap/1"

    def test_same_story_from_two_sources_flashes_twice(self, clock):
        flashes = FlashCache(clock=clock)
        assert flashes.should_flash("Reuters", None, "Same headline")
        assert flashes.should_flash("AP", None, "Same headline")

    def test_sweep_reports_removed(self, clock):
        flashes = FlashCache(cooldown_seconds=10, clock=clock)
        flashes.should_flash("a", None, "x")
        flashes.should_flash("b", None, "y")
        clock.advance(11)
        assert flashes.sweep() == 2
        assert len(flashes) == 0
