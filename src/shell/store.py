"""Earthquake Store - Imperative Shell.

Defines the narrow persistence interface the catalog depends on, plus an
in-memory implementation for local runs and tests. The Firestore
implementation lives in firestore_client.py.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Protocol

from src.core.earthquake import (
    EarthquakeRecord,
    EventReport,
    record_from_report,
    sort_newest_first,
)


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def _detached(record: EarthquakeRecord) -> EarthquakeRecord:
    """Copy of a record that shares no mutable state with the original."""
    if record.additional_data is None:
        return record
    return replace(record, additional_data=dict(record.additional_data))


class RecordNotFoundError(LookupError):
    """Raised when saving a record the store doesn't hold."""


class EarthquakeStore(Protocol):
    """Persistence interface for canonical earthquake records."""

    def find_in_time_range(self, start: datetime, end: datetime) -> list[EarthquakeRecord]:
        """Return records with start <= timestamp <= end."""
        ...

    def create(self, report: EventReport) -> EarthquakeRecord:
        """Persist a new record copied from the report."""
        ...

    def save(self, record: EarthquakeRecord) -> EarthquakeRecord:
        """Persist changes to an existing record."""
        ...

    def list_all(self, since: datetime | None = None) -> list[EarthquakeRecord]:
        """Return records newest first, optionally only timestamp >= since."""
        ...


class InMemoryEarthquakeStore:
    """Dict-backed store.

    Range queries return records ordered by timestamp ascending, ties in
    insertion order. Records are copied on the way in and out, so callers
    can't change stored additional_data. Not safe for concurrent use.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of created_at/updated_at times
        """
        self._clock = clock
        self._records: dict[str, EarthquakeRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> EarthquakeRecord | None:
        record = self._records.get(record_id)
        return _detached(record) if record is not None else None

    def find_in_time_range(self, start: datetime, end: datetime) -> list[EarthquakeRecord]:
        matches = [r for r in self._records.values() if start <= r.timestamp <= end]
        return [_detached(r) for r in sorted(matches, key=lambda r: r.timestamp)]

    def create(self, report: EventReport) -> EarthquakeRecord:
        record = record_from_report(report, uuid.uuid4().hex, created_at=self._clock())
        self._records[record.id] = record
        logger.debug("Created record %s", record.id)
        return _detached(record)

    def save(self, record: EarthquakeRecord) -> EarthquakeRecord:
        if record.id not in self._records:
            raise RecordNotFoundError(f"No earthquake record with id {record.id}")

        saved = _detached(replace(record, updated_at=self._clock()))
        self._records[saved.id] = saved
        logger.debug("Saved record %s", saved.id)
        return _detached(saved)

    def list_all(self, since: datetime | None = None) -> list[EarthquakeRecord]:
        records = list(self._records.values())
        if since is not None:
            records = [r for r in records if r.timestamp >= since]
        return [_detached(r) for r in sort_newest_first(records)]
