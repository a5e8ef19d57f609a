"""Earthquake Catalog API - FastAPI service.

Exposes the deduplicated earthquake catalog over HTTP, deployed as a
single Cloud Run service. Request bodies are validated here before they
reach the catalog, which does no validation of its own.
"""

import logging
import os
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import AliasChoices, BaseModel, Field

from src.catalog import EarthquakeCatalog
from src.core.earthquake import EventReport, parse_timestamp, record_to_dict
from src.shell.config_loader import load_validated_config

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Earthquake Catalog API",
    description="Registers seismic event reports and serves the deduplicated catalog",
    version="1.0.0",
)


# ===== Request Models =====

class RegisterEarthquakeRequest(BaseModel):
    source_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("source_id", "sourceId"),
    )
    timestamp: datetime
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    magnitude: float
    depth: float | None = None
    additional_data: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("additional_data", "additionalData"),
    )

    def to_report(self) -> EventReport:
        return EventReport(
            source_id=self.source_id,
            timestamp=parse_timestamp(self.timestamp),
            latitude=self.latitude,
            longitude=self.longitude,
            magnitude=self.magnitude,
            depth=self.depth,
            additional_data=self.additional_data,
        )


# ===== Catalog =====

_catalog: EarthquakeCatalog | None = None


def _get_catalog() -> EarthquakeCatalog:
    """Get or create the catalog from configuration."""
    global _catalog
    if _catalog is None:
        config = load_validated_config()
        _catalog = EarthquakeCatalog(config)
        logger.info("Catalog initialized with %s store", config.store_backend)
    return _catalog


# ===== Endpoints =====

@app.get("/")
async def list_earthquakes(last_24_hours: bool = Query(default=False)):
    """List catalog earthquakes, newest first."""
    try:
        records = _get_catalog().list(last_24_hours=last_24_hours)
    except Exception as e:
        logger.error("Failed to list earthquakes: %s", e)
        raise HTTPException(status_code=500, detail="Failed to list earthquakes")

    return {
        "earthquakes": [record_to_dict(r) for r in records],
        "count": len(records),
    }


@app.post("/register")
async def register_earthquake(request: RegisterEarthquakeRequest):
    """Register an event report, merging it into a matching earthquake."""
    report = request.to_report()

    try:
        result = _get_catalog().register_report(report)
    except Exception as e:
        logger.error("Failed to register report from %s: %s", report.source_id, e)
        raise HTTPException(status_code=500, detail="Failed to register earthquake")

    return {
        "outcome": result.outcome,
        "earthquake": record_to_dict(result.record),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}
