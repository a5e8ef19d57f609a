"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, IngestSource) are defined in src/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from src.core.config import Config, IngestSource, validate_config
from src.core.dedup import DedupThresholds
from src.core.geo import BoundingBox


logger = logging.getLogger(__name__)


# Environment variable prefix for threshold overrides, e.g. DEDUP_DISTANCE_THRESHOLD_KM
THRESHOLD_ENV_PREFIX = "DEDUP_"


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Non-string values and plain strings are returned unchanged. An unset
    variable leaves the placeholder in place.
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_threshold(name: str, value: Any) -> float:
    """Convert one threshold value, naming the threshold if it isn't a number."""
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Threshold '{name}' must be a number, got {value!r}") from e


def _parse_thresholds(data: dict[str, Any]) -> DedupThresholds:
    """Parse classifier thresholds, keeping defaults for missing keys."""
    known = {f.name for f in fields(DedupThresholds)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown threshold keys: %s", ", ".join(sorted(unknown)))

    return DedupThresholds(**{
        key: _parse_threshold(key, _resolve_value(value))
        for key, value in data.items()
        if key in known
    })


def _parse_source(data: dict[str, Any]) -> IngestSource:
    """Parse an upstream source from config data."""
    bounds = None
    if "bounds" in data:
        bounds = _parse_bounds(data["bounds"])

    min_magnitude = data.get("min_magnitude")

    return IngestSource(
        name=data["name"],
        min_magnitude=float(min_magnitude) if min_magnitude is not None else None,
        bounds=bounds,
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    store = data.get("store", {})

    sources = [
        _parse_source(s)
        for s in data.get("sources", [])
    ]

    return Config(
        thresholds=_parse_thresholds(data.get("thresholds", {})),
        store_backend=_resolve_value(store.get("backend", "firestore")),
        firestore_database=_resolve_value(store.get("firestore_database")),
        firestore_collection=_resolve_value(store.get("firestore_collection", "earthquakes")),
        sources=sources,
        lookback_hours=int(data.get("lookback_hours", 1)),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d sources, store=%s, window=%s min, radius=%s km",
        len(config.sources),
        config.store_backend,
        config.thresholds.time_window_minutes,
        config.thresholds.distance_threshold_km,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        STORE_BACKEND: 'firestore' (default) or 'memory'
        FIRESTORE_DATABASE: Firestore database name
        FIRESTORE_COLLECTION: Collection for earthquake records
        LOOKBACK_HOURS: How far back to poll USGS
        MIN_MAGNITUDE: Minimum magnitude for the default USGS source
        DEDUP_<FIELD>: Override any DedupThresholds field,
                       e.g. DEDUP_DISTANCE_THRESHOLD_KM=40

    Returns:
        Config object from environment
    """
    overrides = {}
    for f in fields(DedupThresholds):
        env_value = os.environ.get(THRESHOLD_ENV_PREFIX + f.name.upper())
        if env_value:
            overrides[f.name] = _parse_threshold(THRESHOLD_ENV_PREFIX + f.name.upper(), env_value)

    min_magnitude = os.environ.get("MIN_MAGNITUDE")

    source = IngestSource(
        name="usgs",
        min_magnitude=float(min_magnitude) if min_magnitude else None,
    )

    return Config(
        thresholds=DedupThresholds(**overrides),
        store_backend=os.environ.get("STORE_BACKEND", "firestore"),
        firestore_database=os.environ.get("FIRESTORE_DATABASE"),
        firestore_collection=os.environ.get("FIRESTORE_COLLECTION", "earthquakes"),
        sources=[source],
        lookback_hours=int(os.environ.get("LOOKBACK_HOURS", "1")),
    )


def load_validated_config() -> Config:
    """Resolve configuration for an entry point and reject invalid settings.

    Uses CONFIG_PATH when set, environment variables when STORE_BACKEND is
    set, and config/config.yaml otherwise. Validation warnings are logged.

    Raises:
        ValueError: If the configuration has critical errors
    """
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        config = load_config(config_path)
    elif os.environ.get("STORE_BACKEND"):
        config = load_config_from_env()
    else:
        config = load_config()

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        details = "; ".join(f"{e.field}: {e.message}" for e in validation.critical_errors)
        raise ValueError(f"Invalid configuration: {details}")

    return config
