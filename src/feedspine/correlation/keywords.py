"""Trending-term detection over news headlines.

Headlines are tokenized into terms; each pass counts in how many headlines
a term appears, scores that count against the term's own rolling history
and queues a spike when it is anomalously high. Histories are in-memory
and capped, since the vocabulary of headlines never stops growing.
Spikes are drained once per correlation pass.
"""

from __future__ import annotations

import re
from collections import Counter, OrderedDict, deque
from collections.abc import Iterable
from dataclasses import dataclass

from feedspine.core.baseline import Baseline, BaselineStore, calculate_deviation
from feedspine.core.logging import get_logger
from feedspine.core.models import Deviation

logger = get_logger(__name__)

_WORD = re.compile(r"[a-z][a-z'\-]{3,}")

STOPWORDS = frozenset(
    """
    about after again against amid also among around before being below between
    could despite during every first from have into just latest more most news
    over report reports said says since some than that their them then there
    these they this those through today under until update very were what when
    where which while will with would year years
    """.split()
)


def tokenize(headline: str) -> set[str]:
    """Distinct terms of one headline (lowercase, 4+ letters, no stopwords)."""
    return {w.strip("'-") for w in _WORD.findall(headline.lower())} - STOPWORDS


@dataclass(frozen=True)
class KeywordSpike:
    term: str
    count: int
    deviation: Deviation
    headlines: tuple[str, ...] = ()


class KeywordSpikeTracker:
    """
    Per-pass term counts with baseline scoring.

    Term histories live here rather than in the shared ``BaselineStore``:
    headline vocabulary is unbounded, so at most ``max_terms`` terms are
    tracked (least recently seen evicted first) and none are persisted.
    Window size and ``min_samples`` follow the store passed in.

    Example:
        tracker.ingest_headlines(item.title for item in news)
        await tracker.evaluate()
        spikes = tracker.drain()
    """

    METRIC_PREFIX = "keyword:"

    def __init__(
        self,
        baselines: BaselineStore,
        *,
        min_count: int = 3,
        sample_headlines: int = 3,
        max_terms: int = 500,
    ):
        self.window_size = baselines.window_size
        self.min_samples = baselines.min_samples
        self.min_count = min_count
        self.sample_headlines = sample_headlines
        self.max_terms = max_terms
        self._histories: OrderedDict[str, deque[float]] = OrderedDict()
        self._counts: Counter[str] = Counter()
        self._samples: dict[str, list[str]] = {}
        self._pending: list[KeywordSpike] = []

    @property
    def tracked_terms(self) -> list[str]:
        return list(self._histories)

    def baseline(self, term: str) -> Baseline:
        return Baseline(key=self.METRIC_PREFIX + term, history=tuple(self._histories.get(term, ())))

    def ingest_headlines(self, headlines: Iterable[str]) -> int:
        taken = 0
        for headline in headlines:
            terms = tokenize(headline)
            self._counts.update(terms)
            for term in terms:
                samples = self._samples.setdefault(term, [])
                if len(samples) < self.sample_headlines:
                    samples.append(headline)
            taken += 1
        return taken

    async def evaluate(self) -> list[KeywordSpike]:
        """Score this pass's counts, queue spikes and start a new pass."""
        spikes = []
        for term, count in self._counts.items():
            baseline = self._record(term, count)
            deviation = calculate_deviation(count, baseline, min_samples=self.min_samples)
            if count >= self.min_count and deviation.is_anomalous and deviation.z_score > 0:
                spikes.append(
                    KeywordSpike(term, count, deviation, tuple(self._samples.get(term, ())))
                )
        self._counts.clear()
        self._samples.clear()
        self._pending.extend(spikes)
        if spikes:
            logger.info("keywords.spikes", terms=[s.term for s in spikes])
        return spikes

    def drain(self) -> list[KeywordSpike]:
        pending, self._pending = self._pending, []
        return pending

    def _record(self, term: str, count: int) -> Baseline:
        history = self._histories.get(term)
        if history is None:
            history = self._histories[term] = deque(maxlen=self.window_size)
            while len(self._histories) > self.max_terms:
                self._histories.popitem(last=False)
        else:
            self._histories.move_to_end(term)
        history.append(float(count))
        return self.baseline(term)


__all__ = ["KeywordSpike", "KeywordSpikeTracker", "STOPWORDS", "tokenize"]
