"""Merge policy - Pure functions.

Decides how a stored record changes when a duplicate report arrives.
The catalog keeps the highest magnitude estimate seen for an event.
"""

from dataclasses import dataclass, replace

from src.core.earthquake import EarthquakeRecord, EventReport


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging a report into a stored record.

    Attributes:
        record: The resulting record (the original if nothing changed)
        was_updated: Whether any field changed
    """
    record: EarthquakeRecord
    was_updated: bool


def apply_merge(existing: EarthquakeRecord, report: EventReport) -> MergeResult:
    """Merge a duplicate report into the stored record.

    Pure function. Nothing changes unless the report's magnitude is
    strictly higher. When it is, the magnitude is raised, depth replaced
    if the report has one, and additional data shallow-merged with the
    report's keys winning.

    Args:
        existing: Stored record
        report: Duplicate report

    Returns:
        MergeResult with the new record and whether it changed
    """
    if report.magnitude <= existing.magnitude:
        return MergeResult(record=existing, was_updated=False)

    depth = report.depth if report.depth is not None else existing.depth

    additional_data = existing.additional_data
    if report.additional_data is not None:
        additional_data = {**(existing.additional_data or {}), **report.additional_data}

    updated = replace(
        existing,
        magnitude=report.magnitude,
        depth=depth,
        additional_data=additional_data,
    )
    return MergeResult(record=updated, was_updated=True)
