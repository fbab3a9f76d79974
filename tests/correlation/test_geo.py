"""Tests for geo-convergence detection."""

from __future__ import annotations

from datetime import timedelta

import pytest

from feedspine.core.timestamps import utc_now
from feedspine.correlation.geo import (
    GeoConvergenceDetector,
    cluster_key,
    dedupe_nearby,
    haversine_km,
)

# Tehran and a few points within ~20 km of it.
TEHRAN = (35.69, 51.39)


class TestHaversine:
    def test_london_paris(self):
        assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, rel=0.01)

    def test_zero_distance(self):
        assert haversine_km(*TEHRAN, *TEHRAN) == 0.0


class TestClusterKey:
    def test_order_independent(self):
        assert cluster_key(["b", "a", "c"]) == cluster_key(["c", "b", "a"])

    def test_shape(self):
        key = cluster_key(["a"])
        assert key.startswith("geo:")
        assert len(key) == len("geo:") + 16

    def test_member_change_changes_key(self):
        assert cluster_key(["a", "b"]) != cluster_key(["a", "b", "c"])


class TestGeoConvergenceDetector:
    def test_three_sources_converge(self, make_event):
        detector = GeoConvergenceDetector()
        detector.ingest(
            [
                make_event("p-1", 35.69, 51.39, "protest"),
                make_event("o-1", 35.75, 51.45, "outage"),
                make_event("m-1", 35.60, 51.30, "military_flight", hours_ago=2),
            ]
        )

        clusters = detector.clusters()

        assert len(clusters) == 1
        assert clusters[0].types == frozenset({"protest", "outage", "military_flight"})
        assert clusters[0].member_ids == ("m-1", "o-1", "p-1")
        lat, lon = clusters[0].center
        assert lat == pytest.approx(35.68, abs=0.01)

    def test_same_cluster_is_reported_once(self, make_event):
        detector = GeoConvergenceDetector()
        detector.ingest([make_event("p-1", 35.69, 51.39, "protest"), make_event("o-1", 35.7, 51.4, "outage")])
        seen: set[str] = set()

        first = detector.detect(seen)
        second = detector.detect(seen)

        assert len(first) == 1
        assert second == []
        assert first[0].key in seen

    def test_new_member_yields_new_cluster(self, make_event):
        detector = GeoConvergenceDetector()
        detector.ingest([make_event("p-1", 35.69, 51.39, "protest"), make_event("o-1", 35.7, 51.4, "outage")])
        seen: set[str] = set()
        detector.detect(seen)

        detector.ingest([make_event("c-1", 35.71, 51.41, "conflict")])
        fresh = detector.detect(seen)

        assert len(fresh) == 1
        assert "c-1" in fresh[0].member_ids

    def test_same_type_never_converges(self, make_event):
        detector = GeoConvergenceDetector()
        detector.ingest([make_event("p-1", 35.69, 51.39, "protest"), make_event("p-2", 35.7, 51.4, "protest")])
        assert detector.clusters() == []

    def test_distance_beyond_radius(self, make_event):
        detector = GeoConvergenceDetector(radius_km=50)
        detector.ingest([make_event("p-1", 35.69, 51.39, "protest"), make_event("o-1", 36.5, 51.39, "outage")])
        assert detector.clusters() == []

    def test_time_gap_beyond_window(self, make_event):
        now = utc_now()
        detector = GeoConvergenceDetector(window_hours=6, now=lambda: now)
        detector.ingest(
            [
                make_event("p-1", 35.69, 51.39, "protest", now=now),
                make_event("o-1", 35.7, 51.4, "outage", hours_ago=5.5, now=now),
                make_event("m-1", 36.5, 51.4, "military_flight", now=now),
            ]
        )
        assert len(detector.clusters()) == 1

        detector.ingest([make_event("o-1", 35.7, 51.4, "outage", hours_ago=7, now=now)])
        assert detector.clusters() == []

    def test_prune_drops_stale_events(self, make_event):
        now = utc_now()
        detector = GeoConvergenceDetector(window_hours=6, now=lambda: now)
        detector.ingest([make_event("old", 0, 0, "protest", hours_ago=8, now=now), make_event("new", 0, 0, "outage", now=now)])
        assert detector.prune() == 1
        assert len(detector) == 1

    def test_chain_links_into_one_component(self, make_event):
        detector = GeoConvergenceDetector(radius_km=50)
        detector.ingest(
            [
                make_event("a", 10.0, 10.0, "protest"),
                make_event("b", 10.3, 10.0, "outage"),
                make_event("c", 10.6, 10.0, "protest"),
            ]
        )
        clusters = detector.clusters()
        assert len(clusters) == 1
        assert clusters[0].member_ids == ("a", "b", "c")

    def test_reingest_replaces_by_id(self, make_event):
        detector = GeoConvergenceDetector()
        detector.ingest([make_event("p-1", 1, 1, "protest")])
        detector.ingest([make_event("p-1", 2, 2, "protest")])
        assert len(detector) == 1


class TestDedupeNearby:
    def test_drops_events_already_reported(self, make_event):
        protests = [make_event("p-1", 35.69, 51.39, "protest")]
        ucdp = [
            make_event("u-1", 35.70, 51.40, "conflict", hours_ago=24),
            make_event("u-2", 15.6, 32.5, "conflict"),
        ]
        kept = dedupe_nearby(ucdp, protests)
        assert [e.id for e in kept] == ["u-2"]

    def test_old_reference_does_not_suppress(self, make_event):
        reference = [make_event("p-1", 35.69, 51.39, "protest", hours_ago=24 * 5)]
        events = [make_event("u-1", 35.69, 51.39, "conflict")]
        assert dedupe_nearby(events, reference, window=timedelta(days=2)) == events
