"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.dedup import DedupThresholds
from src.core.geo import BoundingBox


# Supported store backends
STORE_BACKENDS = ("firestore", "memory")


@dataclass
class IngestSource:
    """An upstream feed polled for event reports.

    Attributes:
        name: Human-readable name
        min_magnitude: Minimum magnitude to fetch (None for no minimum)
        bounds: Geographic bounding box (None for worldwide)
    """
    name: str
    min_magnitude: float | None = None
    bounds: BoundingBox | None = None


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        thresholds: Duplicate classifier thresholds
        store_backend: 'firestore' or 'memory'
        firestore_database: Firestore database name (None for default)
        firestore_collection: Firestore collection holding the catalog
        sources: Upstream feeds to poll
        lookback_hours: How far back to fetch on each poll
    """
    thresholds: DedupThresholds = field(default_factory=DedupThresholds)
    store_backend: str = "firestore"
    firestore_database: str | None = None
    firestore_collection: str = "earthquakes"
    sources: list[IngestSource] = field(default_factory=list)
    lookback_hours: int = 1


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ValidationError]:
    """Validate a bounding box.

    Pure function.
    """
    errors = []

    errors.extend(validate_coordinates(
        bounds.min_latitude, bounds.min_longitude,
        f"{field_name}.min",
    ))
    errors.extend(validate_coordinates(
        bounds.max_latitude, bounds.max_longitude,
        f"{field_name}.max",
    ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def validate_thresholds(thresholds: DedupThresholds, field_name: str = "thresholds") -> list[ValidationError]:
    """Validate classifier thresholds.

    Pure function. Zero or negative windows and radii make every report a
    new event, so they are errors; modifiers above 1 loosen the "tight"
    radius, which is allowed but suspicious.
    """
    errors = []

    positive = {
        "time_window_minutes": thresholds.time_window_minutes,
        "distance_threshold_km": thresholds.distance_threshold_km,
        "spatial_threshold_modifier": thresholds.spatial_threshold_modifier,
        "divergent_magnitude_spatial_factor": thresholds.divergent_magnitude_spatial_factor,
    }
    for name, value in positive.items():
        if value <= 0:
            errors.append(ValidationError(
                field=f"{field_name}.{name}",
                message=f"Must be positive, got {value}",
            ))

    non_negative = {
        "magnitude_difference_threshold": thresholds.magnitude_difference_threshold,
        "close_time_threshold_minutes": thresholds.close_time_threshold_minutes,
    }
    for name, value in non_negative.items():
        if value < 0:
            errors.append(ValidationError(
                field=f"{field_name}.{name}",
                message=f"Must not be negative, got {value}",
            ))

    for name in ("spatial_threshold_modifier", "divergent_magnitude_spatial_factor"):
        value = getattr(thresholds, name)
        if value > 1:
            errors.append(ValidationError(
                field=f"{field_name}.{name}",
                message=f"Modifier {value} > 1 widens the match radius",
                severity="warning",
            ))

    if thresholds.close_time_threshold_minutes > thresholds.time_window_minutes:
        errors.append(ValidationError(
            field=f"{field_name}.close_time_threshold_minutes",
            message=(
                f"close_time_threshold_minutes ({thresholds.close_time_threshold_minutes}) "
                f"exceeds time_window_minutes ({thresholds.time_window_minutes})"
            ),
            severity="warning",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_thresholds(config.thresholds))

    if config.store_backend not in STORE_BACKENDS:
        errors.append(ValidationError(
            field="store_backend",
            message=f"Unknown store backend '{config.store_backend}', expected one of {', '.join(STORE_BACKENDS)}",
        ))

    if config.lookback_hours <= 0:
        errors.append(ValidationError(
            field="lookback_hours",
            message=f"Lookback must be positive, got {config.lookback_hours}",
        ))

    for i, source in enumerate(config.sources):
        if source.bounds is not None:
            errors.extend(validate_bounds(source.bounds, f"sources[{i}].bounds"))

    if not config.sources:
        errors.append(ValidationError(
            field="sources",
            message="No upstream sources configured",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
