"""Earthquake data models and parsing - Pure functions.

This module defines the incoming EventReport and the canonical
EarthquakeRecord, and converts them to and from plain dicts (request
bodies, USGS GeoJSON features, API responses). All functions are pure
with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


# Fields every report must carry
REQUIRED_REPORT_FIELDS = ("source_id", "timestamp", "latitude", "longitude", "magnitude")

# Source ID used when a USGS feature carries no network code
DEFAULT_USGS_SOURCE = "usgs"


class ReportParseError(ValueError):
    """Raised when a report payload is missing fields or malformed."""


@dataclass(frozen=True)
class EventReport:
    """A single, unvalidated report of a seismic event from one source.

    Attributes:
        source_id: Identifier of the reporting network
        timestamp: Event origin time (UTC)
        latitude: Epicenter latitude in degrees
        longitude: Epicenter longitude in degrees
        magnitude: Reported magnitude
        depth: Depth in kilometers (optional)
        additional_data: Free-form metadata from the source (optional)
    """
    source_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    magnitude: float
    depth: float | None = None
    additional_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class EarthquakeRecord:
    """Canonical, deduplicated earthquake as held by the store.

    Attributes:
        id: Store-assigned identifier
        source_id: Network of the report that created the record
        timestamp: Event origin time (UTC)
        latitude: Epicenter latitude in degrees
        longitude: Epicenter longitude in degrees
        magnitude: Highest magnitude seen for this event
        depth: Depth in kilometers (optional)
        additional_data: Merged metadata from all matching reports
        created_at: When the store created the record
        updated_at: When the store last saved the record
    """
    id: str
    source_id: str
    timestamp: datetime
    latitude: float
    longitude: float
    magnitude: float
    depth: float | None = None
    additional_data: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


def record_from_report(
    report: EventReport,
    record_id: str,
    created_at: datetime | None = None,
) -> EarthquakeRecord:
    """Build a new record verbatim from a report.

    Pure function.

    Args:
        report: The report to copy
        record_id: Identifier assigned by the store
        created_at: Creation time (also used as the first updated_at)

    Returns:
        New EarthquakeRecord
    """
    return EarthquakeRecord(
        id=record_id,
        source_id=report.source_id,
        timestamp=report.timestamp,
        latitude=report.latitude,
        longitude=report.longitude,
        magnitude=report.magnitude,
        depth=report.depth,
        additional_data=dict(report.additional_data) if report.additional_data is not None else None,
        created_at=created_at,
        updated_at=created_at,
    )


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string, epoch milliseconds or datetime into UTC.

    Naive datetimes are treated as UTC.

    Raises:
        ReportParseError: If the value can't be interpreted as a time
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat() only accepts a trailing Z from Python 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ReportParseError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ReportParseError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_float(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        raise ReportParseError(f"Field '{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ReportParseError(f"Field '{key}' must be a number, got {value!r}") from e


def parse_event_report(data: dict[str, Any]) -> EventReport:
    """Parse a plain dict (e.g. a JSON body) into an EventReport.

    Pure function. Accepts both snake_case and the camelCase keys used by
    upstream producers (sourceId, additionalData).

    Args:
        data: Report payload

    Returns:
        Parsed EventReport

    Raises:
        ReportParseError: If a required field is missing or malformed
    """
    normalized = dict(data)
    for camel, snake in (("sourceId", "source_id"), ("additionalData", "additional_data")):
        if camel in normalized and snake not in normalized:
            normalized[snake] = normalized.pop(camel)

    missing = [f for f in REQUIRED_REPORT_FIELDS if normalized.get(f) is None]
    if missing:
        raise ReportParseError(f"Missing required fields: {', '.join(missing)}")

    depth = normalized.get("depth")
    additional_data = normalized.get("additional_data")
    if additional_data is not None and not isinstance(additional_data, dict):
        raise ReportParseError("Field 'additional_data' must be an object")

    return EventReport(
        source_id=str(normalized["source_id"]),
        timestamp=parse_timestamp(normalized["timestamp"]),
        latitude=_parse_float(normalized, "latitude"),
        longitude=_parse_float(normalized, "longitude"),
        magnitude=_parse_float(normalized, "magnitude"),
        depth=_parse_float(normalized, "depth") if depth is not None else None,
        additional_data=additional_data,
    )


def parse_usgs_feature(feature: dict[str, Any]) -> EventReport | None:
    """Parse a single USGS GeoJSON feature into an EventReport.

    Pure function: takes raw dict, returns typed report or None if invalid.

    Args:
        feature: GeoJSON feature dict from USGS API

    Returns:
        EventReport or None if parsing fails
    """
    try:
        props = feature.get("properties", {})
        geometry = feature.get("geometry", {})
        coords = geometry.get("coordinates", [])

        if len(coords) < 2:
            return None

        # USGS uses milliseconds since epoch
        time_ms = props.get("time")
        if time_ms is None:
            return None

        magnitude = props.get("mag")
        if magnitude is None:
            return None

        depth = float(coords[2]) if len(coords) > 2 and coords[2] is not None else None

        additional_data = {
            "usgs_id": feature.get("id", ""),
            "place": props.get("place"),
            "url": props.get("url"),
            "mag_type": props.get("magType"),
            "felt": props.get("felt"),
            "alert": props.get("alert"),
            "tsunami": bool(props.get("tsunami", 0)),
        }

        return EventReport(
            source_id=props.get("net") or DEFAULT_USGS_SOURCE,
            timestamp=datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc),
            longitude=float(coords[0]),
            latitude=float(coords[1]),
            magnitude=float(magnitude),
            depth=depth,
            additional_data={k: v for k, v in additional_data.items() if v is not None},
        )
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


def parse_usgs_reports(geojson: dict[str, Any]) -> list[EventReport]:
    """Parse a USGS GeoJSON response into a list of EventReports.

    Pure function: filters out invalid features.

    Args:
        geojson: Full GeoJSON FeatureCollection from USGS API

    Returns:
        List of valid reports, sorted by time (oldest first) so that
        earlier reports are already stored when later ones are matched
    """
    reports = []

    for feature in geojson.get("features", []):
        report = parse_usgs_feature(feature)
        if report is not None:
            reports.append(report)

    return sorted(reports, key=lambda r: r.timestamp)


def record_to_dict(record: EarthquakeRecord) -> dict[str, Any]:
    """Convert an EarthquakeRecord to a JSON-serializable dict.

    Pure function.
    """
    return {
        "id": record.id,
        "source_id": record.source_id,
        "timestamp": record.timestamp.isoformat(),
        "latitude": record.latitude,
        "longitude": record.longitude,
        "magnitude": record.magnitude,
        "depth": record.depth,
        "additional_data": record.additional_data,
        "created_at": record.created_at.isoformat() if record.created_at else None,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


def sort_newest_first(records: list[EarthquakeRecord]) -> list[EarthquakeRecord]:
    """Sort records by timestamp, newest first.

    Pure function.
    """
    return sorted(records, key=lambda r: r.timestamp, reverse=True)
