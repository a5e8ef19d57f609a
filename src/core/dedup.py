"""Deduplication logic - Pure functions.

This module decides whether an incoming report describes an earthquake
that is already in the catalog. All functions are pure with no side
effects.

Note: Fetching candidate records is handled by the store in the
imperative shell. This module only contains the decision logic.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from src.core.earthquake import EarthquakeRecord, EventReport
from src.core.geo import epicenter_distance_km


@dataclass(frozen=True)
class DedupThresholds:
    """Tunable thresholds for the duplicate classifier.

    Attributes:
        time_window_minutes: Width of the trailing candidate search window
        distance_threshold_km: Base spatial radius for a match
        magnitude_difference_threshold: Max magnitude delta for a normal match
        close_time_threshold_minutes: Boundary between "very close" and
            "further apart" in time
        spatial_threshold_modifier: Multiplier on the spatial radius when
            events are very close in time
        divergent_magnitude_spatial_factor: Multiplier on the spatial radius
            when events are further apart and magnitudes disagree
    """
    time_window_minutes: float = 10
    distance_threshold_km: float = 50
    magnitude_difference_threshold: float = 1.0
    close_time_threshold_minutes: float = 2
    spatial_threshold_modifier: float = 0.7
    divergent_magnitude_spatial_factor: float = 0.5


DEFAULT_THRESHOLDS = DedupThresholds()


@dataclass(frozen=True)
class DuplicateMatch:
    """A candidate the classifier accepted as the same event.

    Attributes:
        record: The matching stored record
        distance_km: Epicenter distance between report and record
        magnitude_difference: Absolute magnitude delta
        time_difference_minutes: Absolute origin time delta
    """
    record: EarthquakeRecord
    distance_km: float
    magnitude_difference: float
    time_difference_minutes: float


def compute_candidate_window(
    timestamp: datetime,
    thresholds: DedupThresholds = DEFAULT_THRESHOLDS,
) -> tuple[datetime, datetime]:
    """Compute the inclusive candidate window ending at a report's time.

    Pure function.

    Args:
        timestamp: Report origin time
        thresholds: Classifier thresholds

    Returns:
        (start, end) tuple, both inclusive
    """
    start = timestamp - timedelta(minutes=thresholds.time_window_minutes)
    return (start, timestamp)


def time_difference_minutes(a: datetime, b: datetime) -> float:
    """Absolute difference between two instants in (fractional) minutes."""
    return abs((a - b).total_seconds()) / 60


def adjusted_spatial_threshold(
    time_diff_minutes: float,
    thresholds: DedupThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Spatial radius for a pair of events, tightened when close in time.

    Pure function.
    """
    if time_diff_minutes <= thresholds.close_time_threshold_minutes:
        return thresholds.distance_threshold_km * thresholds.spatial_threshold_modifier
    return thresholds.distance_threshold_km


def classify_candidate(
    report: EventReport,
    candidate: EarthquakeRecord,
    time_diff_minutes: float,
    thresholds: DedupThresholds = DEFAULT_THRESHOLDS,
) -> DuplicateMatch | None:
    """Compare a report with one stored record.

    Pure function.

    Reports very close in time must agree on both location (within the
    tightened radius) and magnitude. Reports further apart may disagree
    on magnitude, since estimates get revised, but then only a near-exact
    location match counts.

    Args:
        report: Incoming report
        candidate: Stored record from the candidate window
        time_diff_minutes: Absolute origin time difference in minutes
        thresholds: Classifier thresholds

    Returns:
        DuplicateMatch carrying the measured distance and deltas, or None
        if the report is a different event
    """
    distance = epicenter_distance_km(report, candidate)
    magnitude_diff = abs(report.magnitude - candidate.magnitude)
    spatial_threshold = adjusted_spatial_threshold(time_diff_minutes, thresholds)
    magnitudes_agree = magnitude_diff <= thresholds.magnitude_difference_threshold

    if time_diff_minutes <= thresholds.close_time_threshold_minutes:
        matched = distance <= spatial_threshold and magnitudes_agree
    elif not magnitudes_agree:
        matched = distance <= spatial_threshold * thresholds.divergent_magnitude_spatial_factor
    else:
        matched = distance <= spatial_threshold

    if not matched:
        return None

    return DuplicateMatch(
        record=candidate,
        distance_km=distance,
        magnitude_difference=magnitude_diff,
        time_difference_minutes=time_diff_minutes,
    )


def is_duplicate(
    report: EventReport,
    candidate: EarthquakeRecord,
    time_diff_minutes: float,
    thresholds: DedupThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """True if the report and the stored record are the same event."""
    return classify_candidate(report, candidate, time_diff_minutes, thresholds) is not None


def find_duplicate(
    report: EventReport,
    candidates: Iterable[EarthquakeRecord],
    thresholds: DedupThresholds = DEFAULT_THRESHOLDS,
) -> DuplicateMatch | None:
    """Find the first candidate that duplicates the report.

    Pure function. Candidates are checked in the order given and the first
    match wins, so the result depends on the store's ordering when more
    than one candidate qualifies.

    Args:
        report: Incoming report
        candidates: Stored records from the candidate window
        thresholds: Classifier thresholds

    Returns:
        DuplicateMatch for the first matching candidate, or None
    """
    for candidate in candidates:
        time_diff = time_difference_minutes(report.timestamp, candidate.timestamp)
        match = classify_candidate(report, candidate, time_diff, thresholds)

        if match is not None:
            return match

    return None
