"""Tests for great-circle distance, coordinate parsing and GeoPoint."""

import math

import pytest
from protean.exceptions import ValidationError

from streetmarket.shared.geo import distance_km, is_valid_pair, parse_coordinates
from streetmarket.shared.geo_point import GeoPoint


class TestDistance:
    def test_same_point_is_zero(self):
        assert distance_km((12.307, 76.652), (12.307, 76.652)) == 0.0

    def test_symmetric(self):
        a = (12.307, 76.652)
        b = (48.8566, 2.3522)
        assert distance_km(a, b) == pytest.approx(distance_km(b, a))

    def test_nearby_vendor(self):
        d = distance_km((12.307, 76.652), (12.3071, 76.6521))
        assert d == pytest.approx(0.015, abs=0.002)

    def test_across_anti_meridian(self):
        d = distance_km((0.0, 179.9), (0.0, -179.9))
        assert d == pytest.approx(22.24, abs=0.1)

    def test_pole_to_pole(self):
        d = distance_km((90.0, 0.0), (-90.0, 0.0))
        assert d == pytest.approx(math.pi * 6371.0, rel=1e-9)

    def test_antipodal_points_stay_finite(self):
        d = distance_km((0.0, 0.0), (0.0, 180.0))
        assert math.isfinite(d)
        assert d == pytest.approx(math.pi * 6371.0, rel=1e-9)


class TestParseCoordinates:
    def test_parses_pair(self):
        assert parse_coordinates("12.307, 76.652") == (12.307, 76.652)

    def test_tolerates_whitespace(self):
        assert parse_coordinates("  -33.86 ,151.21 ") == (-33.86, 151.21)

    @pytest.mark.parametrize(
        "text",
        [None, "", "12.3", "1,2,3", "abc, 76.6", "nan, 1", "12, inf", "91, 0", "0, 181"],
    )
    def test_rejects_malformed(self, text):
        assert parse_coordinates(text) is None

    def test_is_valid_pair(self):
        assert is_valid_pair(90, -180)
        assert not is_valid_pair(None, 10)
        assert not is_valid_pair(float("nan"), 10)


class TestGeoPoint:
    def test_pair_and_json(self):
        point = GeoPoint(latitude=12.5, longitude=76.1)
        assert point.pair == (12.5, 76.1)
        assert point.to_json() == {"lat": 12.5, "lng": 76.1}

    def test_out_of_range_latitude_rejected(self):
        with pytest.raises(ValidationError):
            GeoPoint(latitude=95.0, longitude=10.0)

    def test_missing_longitude_rejected(self):
        with pytest.raises(ValidationError):
            GeoPoint(latitude=10.0)
