"""Tests for trending-term detection."""

from __future__ import annotations

import pytest

from feedspine.core.baseline import BaselineStore
from feedspine.correlation.keywords import KeywordSpikeTracker, tokenize

HEADLINES = [
    "Earthquake rattles coastal towns",
    "Earthquake damages bridges",
    "Rescuers search rubble after earthquake",
    "Earthquake death toll rises",
    "Aftershocks follow earthquake",
    "Markets dip as earthquake halts ports",
]


# ── Helpers ──────────────────────────────────────────────────────────────


async def _quiet_passes(tracker: KeywordSpikeTracker, headline: str, times: int = 3) -> None:
    for _ in range(times):
        tracker.ingest_headlines([headline])
        await tracker.evaluate()


def _words(start: int, n: int) -> list[str]:
    return [f"word{chr(97 + i % 26)}{chr(97 + i // 26 % 26)}" for i in range(start, start + n)]


# ── Tests ────────────────────────────────────────────────────────────────


class TestTokenize:
    def test_short_words_and_stopwords_dropped(self):
        assert tokenize("The UN says talks with Iran will resume") == {"talks", "iran", "resume"}

    def test_distinct_terms_per_headline(self):
        assert tokenize("Flood, flood and more FLOOD") == {"flood"}

    def test_punctuation_trimmed(self):
        assert "cease-fire" in tokenize("Cease-fire holds in Gaza")


class TestKeywordSpikeTracker:
    @pytest.mark.asyncio
    async def test_spike_after_quiet_passes(self):
        tracker = KeywordSpikeTracker(BaselineStore(min_samples=3))
        for _ in range(3):
            tracker.ingest_headlines(["Earthquake felt inland"])
            assert await tracker.evaluate() == []

        tracker.ingest_headlines(HEADLINES)
        spikes = await tracker.evaluate()

        assert [s.term for s in spikes] == ["earthquake"]
        assert spikes[0].count == 6
        assert spikes[0].deviation.z_score == pytest.approx(5.0)
        assert spikes[0].headlines == tuple(HEADLINES[:3])

    @pytest.mark.asyncio
    async def test_min_count_gate(self):
        tracker = KeywordSpikeTracker(BaselineStore(min_samples=3), min_count=5)
        await _quiet_passes(tracker, "Drought eases")

        tracker.ingest_headlines(["Drought worsens", "Drought spreads", "Drought bites", "Drought lingers"])

        assert await tracker.evaluate() == []

    @pytest.mark.asyncio
    async def test_drain_returns_pending_once(self):
        tracker = KeywordSpikeTracker(BaselineStore(min_samples=3))
        await _quiet_passes(tracker, "Earthquake felt inland")
        tracker.ingest_headlines(HEADLINES)
        await tracker.evaluate()

        assert [s.term for s in tracker.drain()] == ["earthquake"]
        assert tracker.drain() == []

    @pytest.mark.asyncio
    async def test_evaluate_starts_a_new_pass(self):
        baselines = BaselineStore()
        tracker = KeywordSpikeTracker(baselines)
        tracker.ingest_headlines(["Wildfire spreads"])
        await tracker.evaluate()
        await tracker.evaluate()
        assert tracker.baseline("wildfire").history == (1.0,)
        assert baselines.keys() == []

    @pytest.mark.asyncio
    async def test_vocabulary_stays_bounded(self):
        baselines = BaselineStore()
        tracker = KeywordSpikeTracker(baselines, max_terms=10)

        for n in range(5):
            tracker.ingest_headlines(_words(n * 8, 8))
            await tracker.evaluate()

        assert len(tracker.tracked_terms) == 10
        assert tracker.tracked_terms[-8:] == _words(32, 8)
        assert baselines.keys() == []

    @pytest.mark.asyncio
    async def test_recurring_term_survives_churn(self):
        tracker = KeywordSpikeTracker(BaselineStore(), max_terms=5)

        for n in range(4):
            tracker.ingest_headlines(["Ceasefire talks", *_words(n * 3, 3)])
            await tracker.evaluate()

        assert "ceasefire" in tracker.tracked_terms
        assert tracker.baseline("ceasefire").history == (1.0, 1.0, 1.0, 1.0)
