"""Ingestion Orchestrator - Wires upstream sources to the catalog.

This module coordinates one polling cycle: fetch reports from each
configured upstream source, parse them with the pure core, and register
each one through the catalog.
"""

import logging
from dataclasses import dataclass, field

from src.catalog import (
    OUTCOME_CREATED,
    OUTCOME_MERGED,
    OUTCOME_UNCHANGED,
    EarthquakeCatalog,
)
from src.core.config import Config, IngestSource
from src.core.earthquake import EventReport, parse_usgs_reports
from src.shell.usgs_client import USGSClient


logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Result of a complete ingestion cycle.

    Attributes:
        reports_fetched: Reports parsed from all sources
        created: Reports that became new catalog records
        merged: Reports that raised an existing record's magnitude
        unchanged: Duplicates that left their record as it was
        errors: Any errors that occurred
    """
    reports_fetched: int = 0
    created: int = 0
    merged: int = 0
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the ingestion result."""
        return (
            f"Fetched {self.reports_fetched} reports, "
            f"{self.created} new, "
            f"{self.merged} merged, "
            f"{self.unchanged} unchanged, "
            f"{len(self.errors)} errors"
        )


class IngestionOrchestrator:
    """Coordinates polling upstream sources and registering reports.

    This class wires together:
    - USGS client (fetches event reports)
    - Core parsing (GeoJSON to EventReport)
    - Earthquake catalog (deduplication and storage)
    """

    def __init__(
        self,
        config: Config,
        catalog: EarthquakeCatalog | None = None,
        usgs_client: USGSClient | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            catalog: Earthquake catalog (created if not provided)
            usgs_client: USGS client (created if not provided)
        """
        self.config = config
        self.catalog = catalog or EarthquakeCatalog(config)
        self.usgs_client = usgs_client or USGSClient()

    def _fetch_reports(self, source: IngestSource) -> list[EventReport]:
        """Fetch and parse reports for one source, oldest first."""
        geojson = self.usgs_client.fetch_for_source(
            source,
            hours=self.config.lookback_hours,
        )

        # Pure core function
        return parse_usgs_reports(geojson)

    def _register(self, report: EventReport, result: IngestResult) -> None:
        """Register one report and tally the outcome."""
        try:
            registration = self.catalog.register_report(report)
        except Exception as e:
            error_msg = (
                f"Failed to register M{report.magnitude:.1f} report from "
                f"{report.source_id} at {report.timestamp.isoformat()}: {e}"
            )
            logger.error(error_msg)
            result.errors.append(error_msg)
            return

        if registration.outcome == OUTCOME_CREATED:
            result.created += 1
        elif registration.outcome == OUTCOME_MERGED:
            result.merged += 1
        elif registration.outcome == OUTCOME_UNCHANGED:
            result.unchanged += 1

    def process(self) -> IngestResult:
        """Run a complete ingestion cycle.

        This is the main entry point that:
        1. Fetches reports from each configured source
        2. Registers each report through the catalog

        A failing source or report is recorded and skipped; the rest of
        the cycle still runs.

        Returns:
            IngestResult with details of what happened
        """
        result = IngestResult()

        if not self.config.sources:
            logger.warning("No upstream sources configured")
            return result

        for source in self.config.sources:
            try:
                reports = self._fetch_reports(source)
            except Exception as e:
                error_msg = f"Failed to fetch reports from {source.name}: {e}"
                logger.error(error_msg)
                result.errors.append(error_msg)
                continue

            logger.info("Fetched %d reports from %s", len(reports), source.name)
            result.reports_fetched += len(reports)

            for report in reports:
                self._register(report, result)

        logger.info("Ingestion complete: %s", result.summary)
        return result
