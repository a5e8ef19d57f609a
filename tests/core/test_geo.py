"""Unit tests for geographic calculations.

Pure function tests - no mocks needed, fast execution.
"""

import math
from types import SimpleNamespace

import pytest

from src.core.geo import (
    EARTH_RADIUS_KM,
    epicenter_distance_km,
    haversine_distance_km,
)


class TestHaversineDistanceKm:
    """Tests for haversine_distance_km()."""

    def test_same_point_returns_zero(self):
        """Distance from point to itself should be zero."""
        distance = haversine_distance_km(37.7749, -122.4194, 37.7749, -122.4194)
        assert distance == 0.0

    @pytest.mark.parametrize("lat,lon", [
        (0.0, 0.0),
        (90.0, 0.0),
        (-90.0, 180.0),
        (35.6762, 139.6503),
    ])
    def test_zero_for_identical_points(self, lat, lon):
        """Zero identity holds everywhere, including the poles."""
        assert haversine_distance_km(lat, lon, lat, lon) == pytest.approx(0.0, abs=1e-9)

    def test_known_distance_sf_to_la(self):
        """SF to LA should be approximately 559 km."""
        distance = haversine_distance_km(37.7749, -122.4194, 34.0522, -118.2437)
        assert distance == pytest.approx(559, rel=0.02)

    def test_known_distance_nyc_to_london(self):
        """NYC to London should be approximately 5570 km."""
        distance = haversine_distance_km(40.7128, -74.0060, 51.5074, -0.1278)
        assert distance == pytest.approx(5570, rel=0.02)

    @pytest.mark.parametrize("a,b", [
        ((37.7749, -122.4194), (34.0522, -118.2437)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
        ((10.0, 179.9), (10.0, -179.9)),
    ])
    def test_symmetric(self, a, b):
        """Distance should be the same in both directions."""
        d1 = haversine_distance_km(a[0], a[1], b[0], b[1])
        d2 = haversine_distance_km(b[0], b[1], a[0], a[1])
        assert d1 == pytest.approx(d2, rel=1e-12)

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is R * pi / 180."""
        distance = haversine_distance_km(10.0, 20.0, 11.0, 20.0)
        assert distance == pytest.approx(EARTH_RADIUS_KM * math.pi / 180, rel=1e-9)

    def test_crosses_antimeridian(self):
        """Points either side of 180 degrees are close, not half a world apart."""
        distance = haversine_distance_km(0.0, 179.95, 0.0, -179.95)
        assert distance == pytest.approx(11.12, rel=0.01)

    def test_antipodal_points(self):
        """Antipodal points are half the circumference apart."""
        distance = haversine_distance_km(0.0, 0.0, 0.0, 180.0)
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)

    @pytest.mark.parametrize("a,b", [
        ((-50.06, -96.73), (50.06, 83.27)),
        ((50.06, 83.27), (-50.06, -96.73)),
        ((37.7749, -122.4194), (-37.7749, 57.5806)),
    ])
    def test_near_antipodal_points(self, a, b):
        """Rounding near the antipode still yields half the circumference."""
        distance = haversine_distance_km(a[0], a[1], b[0], b[1])
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)


class TestEpicenterDistanceKm:
    """Tests for epicenter_distance_km()."""

    def test_matches_haversine_on_event_coordinates(self):
        report = SimpleNamespace(latitude=37.7749, longitude=-122.4194)
        record = SimpleNamespace(latitude=34.0522, longitude=-118.2437)

        assert epicenter_distance_km(report, record) == pytest.approx(
            haversine_distance_km(37.7749, -122.4194, 34.0522, -118.2437)
        )

    def test_same_epicenter(self):
        event = SimpleNamespace(latitude=-33.45, longitude=-70.66)

        assert epicenter_distance_km(event, event) == 0.0
