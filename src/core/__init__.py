"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Event report parsing
- Geo/distance calculations
- Duplicate classification
- Merge policy

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import EarthquakeRecord, EventReport, parse_event_report
from src.core.geo import haversine_distance_km
from src.core.dedup import DedupThresholds, classify_candidate, find_duplicate, is_duplicate
from src.core.merge import MergeResult, apply_merge

__all__ = [
    # Earthquake
    "EarthquakeRecord",
    "EventReport",
    "parse_event_report",
    # Geo
    "haversine_distance_km",
    # Dedup
    "DedupThresholds",
    "classify_candidate",
    "find_duplicate",
    "is_duplicate",
    # Merge
    "MergeResult",
    "apply_merge",
]
