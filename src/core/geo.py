"""Geographic calculations - Pure functions.

Great-circle distance between epicenters, and the bounding box used to
scope upstream sources.
"""

import math
from dataclasses import dataclass
from typing import Any


# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class BoundingBox:
    """Latitude/longitude rectangle an upstream source is restricted to.

    Attributes:
        min_latitude: Southern edge
        max_latitude: Northern edge
        min_longitude: Western edge
        max_longitude: Eastern edge
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Great-circle distance in kilometers between two points in degrees.

    Symmetric, and zero for identical points. Out-of-range coordinates
    are not rejected.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlambda = math.radians(lon2 - lon1) / 2

    h = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlambda) ** 2
    # Rounding can push h just past 1 for near-antipodal points
    h = min(1.0, h)

    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def epicenter_distance_km(first: Any, second: Any) -> float:
    """Distance between two events (reports or records) by their epicenters."""
    return haversine_distance_km(
        first.latitude,
        first.longitude,
        second.latitude,
        second.longitude,
    )
