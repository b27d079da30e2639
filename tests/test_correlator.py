"""
test_correlator.py — Hazards along a route.

Route points 0.001° of longitude apart at the equator are ~111 m apart, so
with the 500 m route threshold a hazard covers about four neighbours on
each side.
"""

import logging

import pytest

from hazard_alert.models.hazard import Hazard
from hazard_alert.services.correlator import (
    affected_points,
    classify_severity,
    correlate,
    is_relevant,
    segments_for,
)
from hazard_alert.services.geo import Coordinate

ROUTE_THRESHOLD = 500.0

ROUTE_A = [(0, 0), (0, 0.001), (0, 0.002), (0, 0.003)]


def hazard(hid, lat, lon, hazard_type="accident"):
    return Hazard(id=hid, type=hazard_type, latitude=lat, longitude=lon)


def straight_route(points, step=0.001):
    return [(0.0, round(i * step, 6)) for i in range(points)]


class TestScenarios:
    def test_hazard_on_short_route_affects_every_point(self):
        near = hazard("a", 0, 0.0015)
        result = correlate(ROUTE_A, [near], ROUTE_THRESHOLD)

        assert list(result) == [near]
        (segment,) = result[near]
        assert len(segment) == 4
        assert segment.points == tuple(Coordinate(*p) for p in ROUTE_A)
        assert (segment.start_index, segment.end_index) == (0, 3)

    def test_far_hazard_is_not_relevant(self):
        far = hazard("b", 10, 10)
        assert is_relevant(far, ROUTE_A, ROUTE_THRESHOLD) is False
        assert correlate(ROUTE_A, [far], ROUTE_THRESHOLD) == {}


class TestEdgeCases:
    def test_no_hazards(self):
        assert correlate(ROUTE_A, [], ROUTE_THRESHOLD) == {}

    def test_empty_route(self):
        assert correlate([], [hazard("a", 0, 0)], ROUTE_THRESHOLD) == {}

    def test_single_affected_point_yields_no_segment(self):
        # Points 2 km apart: only one of them is within 500 m of the hazard
        route = [(0, 0), (0, 0.018), (0, 0.036)]
        lone = hazard("c", 0, 0.0181)
        result = correlate(route, [lone], ROUTE_THRESHOLD)

        assert lone in result
        assert result[lone] == []
        assert affected_points(lone, route, ROUTE_THRESHOLD) == [Coordinate(0, 0.018)]

    def test_hazard_exactly_on_a_route_point_is_relevant(self):
        on_point = hazard("d", 0, 0.002)
        assert is_relevant(on_point, ROUTE_A, 1e-6) is True

    def test_relevance_checks_interior_points(self):
        """Only the middle of the route passes the hazard; endpoints are far away."""
        route = straight_route(41)          # 0 → 0.04°, ~4.4 km
        middle = hazard("e", 0.0, 0.02)
        assert is_relevant(middle, route, ROUTE_THRESHOLD) is True
        (segment,) = correlate(route, [middle], ROUTE_THRESHOLD)[middle]
        assert segment.start_index > 0
        assert segment.end_index < len(route) - 1

    def test_affected_points_keep_route_order(self):
        route = list(reversed(straight_route(10)))
        h = hazard("f", 0, 0.0045)
        points = affected_points(h, route, ROUTE_THRESHOLD)
        lons = [p.lon for p in points]
        assert lons == sorted(lons, reverse=True)

    def test_result_keeps_hazard_order(self):
        hazards = [hazard(str(i), 0, 0.001 * i) for i in (3, 1, 2)]
        result = correlate(straight_route(5), hazards, ROUTE_THRESHOLD)
        assert [h.id for h in result] == ["3", "1", "2"]

    def test_inputs_are_not_mutated(self):
        route = [list(p) for p in ROUTE_A]
        hazards = [hazard("a", 0, 0.0015), hazard("b", 10, 10)]
        route_before = [list(p) for p in route]
        hazards_before = list(hazards)

        correlate(route, hazards, ROUTE_THRESHOLD)

        assert route == route_before
        assert hazards == hazards_before

    def test_deterministic(self):
        hazards = [hazard("a", 0, 0.0015), hazard("g", 0, 0.0031, "roadblock")]
        first = correlate(ROUTE_A, hazards, ROUTE_THRESHOLD)
        second = correlate(ROUTE_A, hazards, ROUTE_THRESHOLD)
        assert first == second

    def test_accepts_a_generator_route(self):
        near = hazard("a", 0, 0.0015)
        result = correlate((p for p in ROUTE_A), [near], ROUTE_THRESHOLD)
        assert len(result[near][0]) == 4

    def test_threshold_must_be_positive(self):
        with pytest.raises(ValueError):
            correlate(ROUTE_A, [], 0)


class TestMissingCoordinates:
    def test_record_without_coordinates_is_skipped(self, caplog):
        broken = Hazard(id="bad", type="accident", latitude=None, longitude=0.001)
        good = hazard("good", 0, 0.0015)

        with caplog.at_level(logging.WARNING, logger="hazard_alert.services.correlator"):
            result = correlate(ROUTE_A, [broken, good], ROUTE_THRESHOLD)

        assert list(result) == [good]
        assert "bad" in caplog.text

    def test_record_built_from_partial_document(self):
        partial = Hazard.from_document({"_id": "x1", "type": "roadblock"})
        assert partial.has_coordinates is False
        assert correlate(ROUTE_A, [partial], ROUTE_THRESHOLD) == {}

    def test_numeric_string_coordinates_are_read_as_numbers(self):
        stored = Hazard.from_document(
            {"_id": "x2", "type": "accident", "latitude": "0", "longitude": 0.001}
        )
        assert stored.latitude == 0.0
        assert list(correlate(ROUTE_A, [stored], ROUTE_THRESHOLD)) == [stored]

    def test_non_numeric_document_coordinates_are_skipped(self, caplog):
        garbled = Hazard.from_document(
            {"_id": "x3", "type": "accident", "latitude": "north", "longitude": [0.001]}
        )
        good = hazard("good", 0, 0.0015)

        with caplog.at_level(logging.WARNING, logger="hazard_alert.services.correlator"):
            result = correlate(ROUTE_A, [garbled, good], ROUTE_THRESHOLD)

        assert garbled.has_coordinates is False
        assert list(result) == [good]
        assert "x3" in caplog.text

    def test_hand_built_record_with_bad_coordinate_type_is_skipped(self, caplog):
        odd = Hazard(id="odd", type="flood", latitude="0", longitude=0.001)
        good = hazard("good", 0, 0.0015)

        with caplog.at_level(logging.WARNING, logger="hazard_alert.services.correlator"):
            result = correlate(ROUTE_A, [odd, good], ROUTE_THRESHOLD)

        assert list(result) == [good]
        assert "odd" in caplog.text


class TestSplitGaps:
    def test_default_groups_non_contiguous_points_together(self):
        # A U-turn: the route passes the hazard, leaves, and comes back
        route = [(0, 0), (0, 0.001), (0, 0.01), (0, 0.02), (0, 0.01), (0, 0.001), (0, 0)]
        h = hazard("u", 0, 0.0005)
        (segment,) = segments_for(h, route, ROUTE_THRESHOLD)
        assert len(segment) == 4
        assert (segment.start_index, segment.end_index) == (0, 6)

    def test_split_gaps_yields_one_segment_per_run(self):
        route = [(0, 0), (0, 0.001), (0, 0.01), (0, 0.02), (0, 0.01), (0, 0.001), (0, 0)]
        h = hazard("u", 0, 0.0005)
        segments = correlate(route, [h], ROUTE_THRESHOLD, split_gaps=True)[h]
        assert [(s.start_index, s.end_index) for s in segments] == [(0, 1), (5, 6)]

    def test_split_gaps_drops_single_point_runs(self):
        route = [(0, 0), (0, 0.001), (0, 0.01), (0, 0.0004), (0, 0.01)]
        h = hazard("v", 0, 0.0002)
        segments = segments_for(h, route, ROUTE_THRESHOLD, split_gaps=True)
        assert [(s.start_index, s.end_index) for s in segments] == [(0, 1)]


class TestClassifySeverity:
    @pytest.mark.parametrize(
        "hazard_type, expected",
        [
            ("accident", "high"),
            ("Accident", "high"),
            ("ACCIDENT", "high"),
            ("roadblock", "medium"),
            ("RoadBlock", "medium"),
            ("flood", "default"),
            ("", "default"),
            (None, "default"),
        ],
    )
    def test_classification(self, hazard_type, expected):
        assert classify_severity(hazard_type) == expected
