"""Unit tests for duplicate classification.

Pure function tests; mocks only to count distance computations.
"""

import math
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from src.core.dedup import (
    DedupThresholds,
    adjusted_spatial_threshold,
    classify_candidate,
    compute_candidate_window,
    find_duplicate,
    is_duplicate,
    time_difference_minutes,
)
from src.core.earthquake import EarthquakeRecord, EventReport
from src.core.geo import EARTH_RADIUS_KM, epicenter_distance_km


BASE_TIME = datetime(2025, 4, 13, 12, 0, 0, tzinfo=timezone.utc)
BASE_LAT = 37.7749
BASE_LON = -122.4194

# Kilometers per degree of latitude along a meridian
KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180


def _record(km_north=0.0, magnitude=5.0, minutes_before=0.0, record_id="eq1"):
    """Stored record offset north of the base point by a given distance."""
    return EarthquakeRecord(
        id=record_id,
        source_id="nc",
        timestamp=BASE_TIME - timedelta(minutes=minutes_before),
        latitude=BASE_LAT + km_north / KM_PER_DEGREE,
        longitude=BASE_LON,
        magnitude=magnitude,
    )


@pytest.fixture
def report():
    """Incoming report at the base point."""
    return EventReport(
        source_id="us",
        timestamp=BASE_TIME,
        latitude=BASE_LAT,
        longitude=BASE_LON,
        magnitude=5.0,
    )


class TestComputeCandidateWindow:
    """Tests for compute_candidate_window()."""

    def test_default_window_is_ten_minutes(self):
        start, end = compute_candidate_window(BASE_TIME)
        assert start == BASE_TIME - timedelta(minutes=10)
        assert end == BASE_TIME

    def test_custom_window(self):
        start, end = compute_candidate_window(
            BASE_TIME, DedupThresholds(time_window_minutes=30),
        )
        assert start == BASE_TIME - timedelta(minutes=30)
        assert end == BASE_TIME


class TestTimeDifferenceMinutes:
    """Tests for time_difference_minutes()."""

    def test_absolute_value(self):
        later = BASE_TIME + timedelta(minutes=3)
        assert time_difference_minutes(BASE_TIME, later) == 3.0
        assert time_difference_minutes(later, BASE_TIME) == 3.0

    def test_fractional_minutes(self):
        assert time_difference_minutes(BASE_TIME, BASE_TIME + timedelta(seconds=90)) == 1.5


class TestAdjustedSpatialThreshold:
    """Tests for adjusted_spatial_threshold()."""

    def test_tightened_when_close_in_time(self):
        assert adjusted_spatial_threshold(1.0) == pytest.approx(35.0)

    def test_tightened_at_boundary(self):
        assert adjusted_spatial_threshold(2.0) == pytest.approx(35.0)

    def test_base_radius_when_further_apart(self):
        assert adjusted_spatial_threshold(2.5) == 50.0


class TestIsDuplicateStrictBranch:
    """Reports within two minutes must agree on location and magnitude."""

    def test_scenario_a_close_and_similar_magnitude(self, report):
        """10 km, 1 minute, M5.0 vs M5.5 is the same event."""
        candidate = _record(km_north=10, magnitude=5.5, minutes_before=1)
        assert is_duplicate(report, candidate, 1.0) is True

    def test_scenario_b_large_magnitude_gap(self, report):
        """10 km, 1 minute, M5.0 vs M7.0 is a different event."""
        candidate = _record(km_north=10, magnitude=7.0, minutes_before=1)
        assert is_duplicate(report, candidate, 1.0) is False

    def test_within_tightened_radius(self, report):
        candidate = _record(km_north=34.9)
        assert is_duplicate(report, candidate, 1.0) is True

    def test_outside_tightened_radius(self, report):
        """45 km matches further apart in time but not within two minutes."""
        candidate = _record(km_north=45)
        assert is_duplicate(report, candidate, 1.0) is False

    def test_time_boundary_uses_strict_branch(self, report):
        """Exactly two minutes apart still uses the tightened radius."""
        candidate = _record(km_north=40)
        assert is_duplicate(report, candidate, 2.0) is False

    def test_magnitude_difference_at_threshold_matches(self, report):
        candidate = _record(km_north=5, magnitude=6.0)
        assert is_duplicate(report, candidate, 0.0) is True

    @pytest.mark.parametrize("magnitude,expected", [
        (5.0, True),
        (5.5, True),
        (6.0, True),
        (6.01, False),
        (6.5, False),
        (8.0, False),
    ])
    def test_monotonic_in_magnitude_difference(self, report, magnitude, expected):
        """Holding distance fixed, growing the magnitude gap past 1.0 flips to no-match."""
        candidate = _record(km_north=10, magnitude=magnitude)
        assert is_duplicate(report, candidate, 1.5) is expected


class TestIsDuplicateRelaxedBranch:
    """Reports more than two minutes apart."""

    def test_scenario_c_divergent_magnitude_near_location(self, report):
        """20 km, 8 minutes, M5.0 vs M6.5 matches within the 25 km tight radius."""
        candidate = _record(km_north=20, magnitude=6.5, minutes_before=8)
        assert is_duplicate(report, candidate, 8.0) is True

    def test_divergent_magnitude_too_far(self, report):
        candidate = _record(km_north=30, magnitude=6.5, minutes_before=8)
        assert is_duplicate(report, candidate, 8.0) is False

    def test_scenario_d_similar_magnitude_base_radius(self, report):
        """45 km, 8 minutes, similar magnitude matches within 50 km."""
        candidate = _record(km_north=45, magnitude=5.4, minutes_before=8)
        assert is_duplicate(report, candidate, 8.0) is True

    def test_beyond_base_radius(self, report):
        candidate = _record(km_north=55, magnitude=5.0, minutes_before=8)
        assert is_duplicate(report, candidate, 8.0) is False

    def test_any_magnitude_gap_tolerated_when_colocated(self, report):
        candidate = _record(km_north=1, magnitude=8.0, minutes_before=5)
        assert is_duplicate(report, candidate, 5.0) is True


class TestIsDuplicateCustomThresholds:
    """Thresholds are explicit parameters."""

    def test_wider_radius(self, report):
        thresholds = DedupThresholds(distance_threshold_km=100)
        candidate = _record(km_north=80)
        assert is_duplicate(report, candidate, 5.0, thresholds) is True
        assert is_duplicate(report, candidate, 5.0) is False

    def test_stricter_magnitude(self, report):
        thresholds = DedupThresholds(magnitude_difference_threshold=0.2)
        candidate = _record(km_north=5, magnitude=5.5)
        assert is_duplicate(report, candidate, 1.0, thresholds) is False

    def test_no_tightening_when_modifier_is_one(self, report):
        thresholds = DedupThresholds(spatial_threshold_modifier=1.0)
        candidate = _record(km_north=45)
        assert is_duplicate(report, candidate, 1.0, thresholds) is True


class TestFindDuplicate:
    """Tests for find_duplicate()."""

    def test_no_candidates(self, report):
        assert find_duplicate(report, []) is None

    def test_no_match(self, report):
        candidates = [_record(km_north=200, minutes_before=3)]
        assert find_duplicate(report, candidates) is None

    def test_returns_match_details(self, report):
        candidate = _record(km_north=10, magnitude=5.5, minutes_before=1)

        match = find_duplicate(report, [candidate])

        assert match is not None
        assert match.record is candidate
        assert match.distance_km == pytest.approx(10.0, rel=1e-6)
        assert match.magnitude_difference == pytest.approx(0.5)
        assert match.time_difference_minutes == 1.0

    def test_uses_candidate_time_difference(self, report):
        """45 km only matches when the candidate is further than 2 minutes away."""
        close = _record(km_north=45, minutes_before=1, record_id="close")
        far = _record(km_north=45, minutes_before=5, record_id="far")

        assert find_duplicate(report, [close]) is None
        assert find_duplicate(report, [far]).record.id == "far"

    def test_first_match_wins(self, report):
        """With several qualifying candidates the first in order wins."""
        first = _record(km_north=30, minutes_before=6, record_id="first")
        second = _record(km_north=1, minutes_before=1, record_id="second")

        assert find_duplicate(report, [first, second]).record.id == "first"
        assert find_duplicate(report, [second, first]).record.id == "second"

    def test_skips_non_matching_candidates(self, report):
        candidates = [
            _record(km_north=10, magnitude=7.5, minutes_before=1, record_id="distinct"),
            _record(km_north=10, magnitude=5.2, minutes_before=1, record_id="same"),
        ]

        assert find_duplicate(report, candidates).record.id == "same"

    def test_accepts_generator(self, report):
        candidates = (r for r in [_record(km_north=5)])
        assert find_duplicate(report, candidates) is not None

    def test_measures_each_candidate_once(self, report):
        candidates = [
            _record(km_north=300, minutes_before=3, record_id="distant"),
            _record(km_north=10, magnitude=5.2, minutes_before=1, record_id="same"),
        ]

        with patch("src.core.dedup.epicenter_distance_km", wraps=epicenter_distance_km) as distance:
            match = find_duplicate(report, candidates)

        assert match.record.id == "same"
        assert distance.call_count == 2

    def test_near_antipodal_candidate_is_distinct(self):
        report = EventReport(
            source_id="us",
            timestamp=BASE_TIME,
            latitude=-50.06,
            longitude=-96.73,
            magnitude=4.0,
        )
        antipode = EarthquakeRecord(
            id="antipode",
            source_id="nc",
            timestamp=BASE_TIME,
            latitude=50.06,
            longitude=83.27,
            magnitude=4.0,
        )

        assert find_duplicate(report, [antipode]) is None


class TestClassifyCandidate:
    """Tests for classify_candidate()."""

    def test_match_carries_measurements(self, report):
        candidate = _record(km_north=20, magnitude=6.5, minutes_before=8)

        match = classify_candidate(report, candidate, 8.0)

        assert match.record is candidate
        assert match.distance_km == pytest.approx(20.0, rel=1e-6)
        assert match.magnitude_difference == pytest.approx(1.5)
        assert match.time_difference_minutes == 8.0

    def test_distinct_event_returns_none(self, report):
        candidate = _record(km_north=10, magnitude=7.0, minutes_before=1)

        assert classify_candidate(report, candidate, 1.0) is None

    def test_agrees_with_is_duplicate(self, report):
        for km in (0, 20, 30, 40, 60):
            candidate = _record(km_north=km, magnitude=6.3, minutes_before=5)
            assert (classify_candidate(report, candidate, 5.0) is not None) == is_duplicate(
                report, candidate, 5.0
            )
