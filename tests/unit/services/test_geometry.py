"""Tests for cake geometry and frosting estimation helpers."""

import pytest

from batch_planner.services.geometry import (
    calculate_surface_area,
    estimate_frosting_oz,
    normalize_complexity,
    parse_diameter,
)


class TestParseDiameter:
    """Test diameter parsing from tier size names."""

    @pytest.mark.parametrize(
        "size_name,expected",
        [
            ("8 inch round", 8),
            ("10inch", 10),
            ("6 Inch Square", 6),
            ("Tier: 12 inch", 12),
        ],
    )
    def test_parses_inches(self, size_name, expected):
        assert parse_diameter(size_name) == expected

    @pytest.mark.parametrize("size_name", [None, "", "Large", "20 cm"])
    def test_defaults_to_eight_inches(self, size_name):
        assert parse_diameter(size_name) == 8


class TestNormalizeComplexity:
    """Test complexity clamping."""

    def test_none_and_zero_are_medium(self):
        assert normalize_complexity(None) == 2
        assert normalize_complexity(0) == 2

    def test_clamps_into_range(self):
        assert normalize_complexity(-4) == 1
        assert normalize_complexity(1) == 1
        assert normalize_complexity(3) == 3
        assert normalize_complexity(9) == 3


class TestSurfaceArea:
    """Test surface area including internal filling layers."""

    def test_eight_inch_tier(self):
        assert calculate_surface_area(8) == 251

    def test_six_inch_tier(self):
        assert calculate_surface_area(6) == 160

    def test_single_layer_has_no_internal_area(self):
        # top + side only: 50.27 + 100.53
        assert calculate_surface_area(8, cake_layers=1) == 151


class TestFrostingEstimate:
    """Test buttercream estimate by complexity."""

    def test_medium_eight_inch(self):
        assert estimate_frosting_oz(8, complexity=2) == 44.0

    def test_light_and_heavy_eight_inch(self):
        assert estimate_frosting_oz(8, complexity=1) == 25.1
        assert estimate_frosting_oz(8, complexity=3) == 62.8

    def test_more_complexity_needs_more_frosting(self):
        assert estimate_frosting_oz(10, complexity=3) > estimate_frosting_oz(10, complexity=1)
