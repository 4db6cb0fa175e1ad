#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pytest",
# ]
# ///
"""Test the foF2 / MUF / LUF model and band classification."""

import math
from datetime import datetime, timezone

import pytest

from shackprop.ionosphere import (
    COS_CHI_FLOOR,
    band_status,
    classify_band,
    critical_frequency,
    fot,
    luf_estimate,
    path_muf,
)
from shackprop.sun import sub_solar_point

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


class TestCriticalFrequency:

    def test_overhead_sun(self):
        sub = sub_solar_point(NOW)
        assert abs(critical_frequency(sub.lat, sub.lon, NOW, 100) - 9 * math.sqrt(2)) < 0.01

    def test_night_floor(self):
        """Residual night-side ionization, never zero"""
        sub = sub_solar_point(NOW)
        night = critical_frequency(-sub.lat, sub.lon + 180, NOW, 100)
        assert abs(night - 9 * math.sqrt(2) * math.sqrt(COS_CHI_FLOOR)) < 1e-9

    def test_bounds(self):
        hi = 9 * math.sqrt(1 + 0.01 * 300)
        for lat in range(-90, 91, 15):
            for lon in range(-180, 181, 30):
                f = critical_frequency(lat, lon, NOW, 300)
                assert 0 < f <= hi + 1e-9

    def test_increases_with_flux(self):
        sub = sub_solar_point(NOW)
        assert critical_frequency(sub.lat, sub.lon, NOW, 200) > critical_frequency(sub.lat, sub.lon, NOW, 70)

    @pytest.mark.parametrize("sfi", [None, 0, -5, float("nan"), "junk"])
    def test_bad_flux_uses_default(self, sfi):
        sub = sub_solar_point(NOW)
        assert critical_frequency(sub.lat, sub.lon, NOW, sfi) == critical_frequency(sub.lat, sub.lon, NOW, 100)


class TestPathMuf:

    @pytest.mark.parametrize("dist,expected", [
        (0, 10.0),
        (1500, 20.0),
        (3000, 30.0),
        (10000, 30.0),
    ])
    def test_saturating_factor(self, dist, expected):
        assert math.isclose(path_muf(10.0, dist), expected)

    def test_monotonic_in_distance(self):
        values = [path_muf(8.0, d) for d in range(0, 5000, 100)]
        assert values == sorted(values)

    def test_custom_m_factor(self):
        assert math.isclose(path_muf(10.0, 3000, m3000f2=3.5), 35.0)

    def test_bad_input(self):
        assert path_muf(float("nan"), 1000) == 0
        assert path_muf(10.0, -100) == 10.0


class TestLufFot:

    @pytest.mark.parametrize("cos_chi,expected", [
        (1.0, 2.0),
        (0.5, 4.0),
        (0.0, 6.0),
        (-1.0, 6.0),
    ])
    def test_luf(self, cos_chi, expected):
        assert math.isclose(luf_estimate(cos_chi), expected)

    def test_luf_range(self):
        for i in range(-20, 21):
            assert 2 <= luf_estimate(i / 10) <= 6

    def test_fot(self):
        assert math.isclose(fot(20.0), 17.0)
        assert fot(-3) == 0


class TestBandStatus:

    def test_thresholds(self):
        assert classify_band(14.0, 16.8) == "open"
        assert classify_band(14.0, 16.79) == "marginal"
        assert classify_band(14.0, 14.0) == "marginal"
        assert classify_band(14.0, 13.99) == "closed"

    def test_disturbed_overrides(self):
        assert classify_band(7.0, 50.0, kp=5) == "disturbed"
        assert classify_band(7.0, 50.0, kp=4.67) == "open"
        assert classify_band(7.0, 50.0, kp=None) == "open"

    def test_reference_bands(self):
        status = band_status(20.0, kp=2)
        assert [b["name"] for b in status] == ["10m", "15m", "20m", "40m"]
        assert {b["name"]: b["status"] for b in status} == {
            "10m": "closed",
            "15m": "closed",
            "20m": "open",
            "40m": "open",
        }

    def test_storm(self):
        assert all(b["status"] == "disturbed" for b in band_status(40.0, kp=5))
