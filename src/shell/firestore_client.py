"""Firestore Client - Imperative Shell.

This module persists canonical earthquake records in Google Cloud
Firestore, one document per record. It implements the EarthquakeStore
interface used by the catalog.

All I/O is contained here; deduplication logic is in the core module.
Errors from Firestore are logged and re-raised so the caller decides
whether to retry the registration.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from src.core.earthquake import EarthquakeRecord, EventReport, record_from_report


logger = logging.getLogger(__name__)


# Default collection name for canonical earthquake records
DEFAULT_COLLECTION = "earthquakes"


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Firestore collection name
    """
    project_id: str | None = None
    database: str | None = None
    collection: str = DEFAULT_COLLECTION


def _record_to_document(record: EarthquakeRecord) -> dict[str, Any]:
    """Convert a record to a Firestore document (id is the document key)."""
    return {
        "source_id": record.source_id,
        "timestamp": record.timestamp,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "magnitude": record.magnitude,
        "depth": record.depth,
        "additional_data": record.additional_data,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def _document_to_record(doc_id: str, data: dict[str, Any]) -> EarthquakeRecord:
    """Convert a Firestore document back into a record."""
    depth = data.get("depth")
    return EarthquakeRecord(
        id=doc_id,
        source_id=data["source_id"],
        timestamp=data["timestamp"],
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        magnitude=float(data["magnitude"]),
        depth=float(depth) if depth is not None else None,
        additional_data=data.get("additional_data"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


class FirestoreEarthquakeStore:
    """Earthquake store backed by a Firestore collection.

    This is part of the imperative shell - it handles database I/O.

    Document structure (document ID is the record ID):
    {
        "source_id": "us",
        "timestamp": <timestamp>,
        "latitude": 37.77,
        "longitude": -122.42,
        "magnitude": 4.2,
        "depth": 10.5,
        "additional_data": {...},
        "created_at": <timestamp>,
        "updated_at": <timestamp>
    }

    Range and list queries need a single-field index on "timestamp",
    which Firestore creates automatically.
    """

    def __init__(
        self,
        config: FirestoreConfig | None = None,
        client: firestore.Client | None = None,
    ) -> None:
        """Initialize Firestore store.

        Args:
            config: Firestore configuration
            client: Pre-built Firestore client (created lazily if not provided)
        """
        self.config = config or FirestoreConfig()
        self._client = client

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _collection(self) -> Any:
        """Get reference to the earthquakes collection."""
        return self.client.collection(self.config.collection)

    def find_in_time_range(self, start: datetime, end: datetime) -> list[EarthquakeRecord]:
        """Fetch records with start <= timestamp <= end, oldest first.

        This method performs database I/O.
        """
        logger.debug("Querying earthquakes between %s and %s", start, end)

        try:
            query = (
                self._collection()
                .where(filter=FieldFilter("timestamp", ">=", start))
                .where(filter=FieldFilter("timestamp", "<=", end))
                .order_by("timestamp")
            )
            records = [_document_to_record(doc.id, doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to query earthquakes in time range: %s", str(e))
            raise

        logger.debug("Found %d candidate earthquakes", len(records))
        return records

    def create(self, report: EventReport) -> EarthquakeRecord:
        """Create a new record from a report.

        This method performs database I/O.
        """
        try:
            doc_ref = self._collection().document()
            record = record_from_report(report, doc_ref.id, created_at=datetime.now(timezone.utc))
            doc_ref.set(_record_to_document(record))
        except Exception as e:
            logger.error("Failed to create earthquake record: %s", str(e))
            raise

        logger.info("Created earthquake record %s", record.id)
        return record

    def save(self, record: EarthquakeRecord) -> EarthquakeRecord:
        """Overwrite an existing record and refresh updated_at.

        This method performs database I/O.
        """
        saved = replace(record, updated_at=datetime.now(timezone.utc))

        try:
            self._collection().document(saved.id).set(_record_to_document(saved))
        except Exception as e:
            logger.error("Failed to save earthquake record %s: %s", saved.id, str(e))
            raise

        logger.info("Saved earthquake record %s", saved.id)
        return saved

    def list_all(self, since: datetime | None = None) -> list[EarthquakeRecord]:
        """List records newest first, optionally only those at or after since.

        This method performs database I/O.
        """
        try:
            query = self._collection()
            if since is not None:
                query = query.where(filter=FieldFilter("timestamp", ">=", since))
            query = query.order_by("timestamp", direction=firestore.Query.DESCENDING)
            records = [_document_to_record(doc.id, doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to list earthquakes: %s", str(e))
            raise

        logger.info("Listed %d earthquakes", len(records))
        return records
