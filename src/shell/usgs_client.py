"""USGS API Client - Imperative Shell.

Polls the USGS FDSN event service, one of the upstream networks that
publish event reports. Only HTTP lives here; turning GeoJSON features
into reports is done by the core parser.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

from src.core.config import IngestSource
from src.core.geo import BoundingBox


logger = logging.getLogger(__name__)


USGS_API_BASE = "https://earthquake.usgs.gov/fdsnws/event/1/query"

# Seconds
DEFAULT_TIMEOUT = 30

# Per-query result cap; a full page means the window was truncated
DEFAULT_LIMIT = 500

USER_AGENT = "earthquake-catalog/1.0"

# FDSN times are UTC without an offset
_FDSN_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass
class USGSQueryParams:
    """One FDSN event query.

    Attributes:
        bounds: Restrict to this rectangle (worldwide if None)
        min_magnitude: Lowest magnitude to return
        start_time: Window start, UTC
        end_time: Window end, UTC
        limit: Maximum number of events returned
    """
    bounds: BoundingBox | None = None
    min_magnitude: float | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int = DEFAULT_LIMIT


def _format_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(_FDSN_TIME_FORMAT)


def build_query_params(query: USGSQueryParams) -> dict[str, str]:
    """Translate a query into FDSN request parameters.

    Events come back oldest first, the order the catalog registers them in.
    """
    params = {"format": "geojson", "orderby": "time-asc"}

    if query.bounds is not None:
        params.update({
            "minlatitude": str(query.bounds.min_latitude),
            "maxlatitude": str(query.bounds.max_latitude),
            "minlongitude": str(query.bounds.min_longitude),
            "maxlongitude": str(query.bounds.max_longitude),
        })
    if query.min_magnitude is not None:
        params["minmagnitude"] = str(query.min_magnitude)
    if query.start_time is not None:
        params["starttime"] = _format_time(query.start_time)
    if query.end_time is not None:
        params["endtime"] = _format_time(query.end_time)
    if query.limit is not None:
        params["limit"] = str(query.limit)

    return params


class USGSClient:
    """Fetches event reports from the USGS FDSN event service.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = USGS_API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize USGS client.

        Args:
            base_url: FDSN event query endpoint
            timeout: Request timeout in seconds
            session: HTTP session to reuse (a new one if not provided)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def fetch_earthquakes(self, query: USGSQueryParams) -> dict[str, Any]:
        """Run one FDSN query and return the GeoJSON FeatureCollection.

        Raises:
            requests.RequestException: On connection failure or non-2xx status
        """
        params = build_query_params(query)
        logger.debug("USGS query: %s", params)

        response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        count = len(data.get("features", []))

        if query.limit is not None and count >= query.limit:
            logger.warning(
                "USGS returned %d events, the query limit; later reports in the window were not fetched",
                count,
            )
        else:
            logger.info("Fetched %d events from USGS", count)

        return data

    def fetch_for_source(
        self,
        source: IngestSource,
        hours: int = 1,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Fetch the trailing `hours` of reports for a configured source.

        Args:
            source: Source with optional bounds and minimum magnitude
            hours: Lookback in hours
            now: End of the window (defaults to the current time)
        """
        end = now or datetime.now(timezone.utc)

        return self.fetch_earthquakes(USGSQueryParams(
            bounds=source.bounds,
            min_magnitude=source.min_magnitude,
            start_time=end - timedelta(hours=hours),
            end_time=end,
        ))
