"""Cloud Function Entry Point.

This module provides the entry points for Google Cloud Functions.
They are thin wrappers that load configuration and invoke the
ingestion orchestrator or the catalog.
"""

import base64
import json
import logging
import os
from typing import Any

import functions_framework
from flask import Request

from src.catalog import EarthquakeCatalog
from src.core.earthquake import parse_event_report
from src.ingest import IngestionOrchestrator
from src.shell.config_loader import load_validated_config


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config():
    """Load and validate configuration from file or environment."""
    return load_validated_config()


@functions_framework.http
def earthquake_ingest(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    This function is triggered by Cloud Scheduler or direct HTTP requests.
    It runs a complete ingestion cycle over the configured sources.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting earthquake ingestion cycle")

    try:
        config = _get_config()

        if not config.sources:
            logger.warning("No upstream sources configured")
            return {
                "status": "error",
                "message": "No upstream sources configured",
            }, 400

        orchestrator = IngestionOrchestrator(config)
        result = orchestrator.process()

        response = {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            "reports_fetched": result.reports_fetched,
            "created": result.created,
            "merged": result.merged,
            "unchanged": result.unchanged,
        }

        if result.errors:
            response["errors"] = result.errors

        logger.info("Completed: %s", result.summary)

        status_code = 200 if result.success else 207  # 207 = Multi-Status
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in earthquake ingestion")
        return {
            "status": "error",
            "message": str(e),
        }, 500


def _decode_pubsub_report(cloud_event: Any) -> dict[str, Any]:
    """Decode the JSON report carried in a Pub/Sub CloudEvent."""
    message = cloud_event.data["message"]
    return json.loads(base64.b64decode(message["data"]))


@functions_framework.cloud_event
def earthquake_register_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Registers a single event report published by an upstream producer.
    Malformed messages are logged and dropped; store failures are
    re-raised so Pub/Sub redelivers the message.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    try:
        report = parse_event_report(_decode_pubsub_report(cloud_event))
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Dropping malformed report message: %s", e)
        return

    try:
        catalog = EarthquakeCatalog(_get_config())
        result = catalog.register_report(report)
        logger.info("Registered report from %s: %s %s", report.source_id, result.outcome, result.record.id)

    except Exception:
        logger.exception("Unexpected error registering report")
        raise


# For local testing
if __name__ == "__main__":
    print("Running earthquake ingestion locally...")

    # Mock request for local testing
    class MockRequest:
        pass

    response, status = earthquake_ingest(MockRequest())
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))
