"""Earthquake Catalog - Wires the dedup core to the store.

This module runs the registration flow for one incoming report:
fetch the candidate window from the store, classify candidates with the
pure core, then merge into the matching record or create a new one.
It holds no state between calls; all state lives in the store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from src.core.config import Config
from src.core.dedup import compute_candidate_window, find_duplicate
from src.core.earthquake import EarthquakeRecord, EventReport
from src.core.merge import apply_merge
from src.shell.store import EarthquakeStore, InMemoryEarthquakeStore, utc_now


logger = logging.getLogger(__name__)


# Outcomes of registering a report
OUTCOME_CREATED = "created"
OUTCOME_MERGED = "merged"
OUTCOME_UNCHANGED = "unchanged"

# Window for list(last_24_hours=True)
RECENT_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class RegistrationResult:
    """Result of registering a single report.

    Attributes:
        record: The stored record the report ended up in
        outcome: 'created', 'merged' or 'unchanged'
    """
    record: EarthquakeRecord
    outcome: str

    @property
    def is_new(self) -> bool:
        """Returns True if a new record was created."""
        return self.outcome == OUTCOME_CREATED


def create_store(config: Config) -> EarthquakeStore:
    """Build the store selected by configuration."""
    if config.store_backend == "memory":
        logger.warning("Using in-memory store; records are lost on restart")
        return InMemoryEarthquakeStore()

    # Imported here so the memory backend works without GCP libraries configured
    from src.shell.firestore_client import FirestoreConfig, FirestoreEarthquakeStore

    return FirestoreEarthquakeStore(
        FirestoreConfig(
            database=config.firestore_database,
            collection=config.firestore_collection,
        )
    )


class EarthquakeCatalog:
    """Registers event reports into a deduplicated earthquake catalog.

    Store failures propagate unchanged; the catalog performs no retries.
    Fetch and create-or-update are not atomic, so two concurrent reports
    of the same event may both create records.
    """

    def __init__(
        self,
        config: Config,
        store: EarthquakeStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize catalog with configuration.

        Args:
            config: Application configuration
            store: Earthquake store (created from config if not provided)
            clock: Source of "now" for the last-24-hours listing
        """
        self.config = config
        self.thresholds = config.thresholds
        self.store = store if store is not None else create_store(config)
        self._clock = clock

    def register_report(self, report: EventReport) -> RegistrationResult:
        """Register a report and say what happened to the catalog.

        Args:
            report: Incoming event report

        Returns:
            RegistrationResult with the stored record and outcome
        """
        start, end = compute_candidate_window(report.timestamp, self.thresholds)
        candidates = self.store.find_in_time_range(start, end)

        match = find_duplicate(report, candidates, self.thresholds)

        if match is None:
            record = self.store.create(report)
            logger.info(
                "New earthquake %s: M%.1f at (%.3f, %.3f) from %s (%d candidates checked)",
                record.id,
                record.magnitude,
                record.latitude,
                record.longitude,
                report.source_id,
                len(candidates),
            )
            return RegistrationResult(record=record, outcome=OUTCOME_CREATED)

        merge = apply_merge(match.record, report)

        if not merge.was_updated:
            logger.info(
                "Duplicate of %s from %s (%.1f km, %.1f min, dM %.2f), keeping M%.1f",
                match.record.id,
                report.source_id,
                match.distance_km,
                match.time_difference_minutes,
                match.magnitude_difference,
                match.record.magnitude,
            )
            return RegistrationResult(record=match.record, outcome=OUTCOME_UNCHANGED)

        record = self.store.save(merge.record)
        logger.info(
            "Duplicate of %s from %s (%.1f km, %.1f min), magnitude M%.1f -> M%.1f",
            record.id,
            report.source_id,
            match.distance_km,
            match.time_difference_minutes,
            match.record.magnitude,
            record.magnitude,
        )
        return RegistrationResult(record=record, outcome=OUTCOME_MERGED)

    def register(self, report: EventReport) -> EarthquakeRecord:
        """Register a report and return the canonical record it belongs to."""
        return self.register_report(report).record

    def list(self, last_24_hours: bool = False) -> list[EarthquakeRecord]:
        """List catalog records, newest first.

        Args:
            last_24_hours: Only include events from the last 24 hours

        Returns:
            Records ordered by timestamp descending
        """
        since = self._clock() - RECENT_WINDOW if last_24_hours else None
        return self.store.list_all(since)
