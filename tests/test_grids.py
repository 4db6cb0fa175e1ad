#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pytest",
# ]
# ///
"""Test MUF, band-opening and D-RAP grids."""

import math
from datetime import timedelta

import pytest

from conftest import FIXED_NOW, drap_text
from shackprop.errors import InvalidQthError, UpstreamError
from shackprop.geo_utils import locator_to_point
from shackprop.grids import (
    bin_spots,
    build_band_grid,
    build_muf_grid,
    cell_path_muf,
    mesh,
    parse_drap_grid,
)
from shackprop.ionosphere import critical_frequency
from shackprop.models import Spot

STATION = locator_to_point("JO40FD")
TEN_METERS = (28.0, 28.0, 29.7)


def spot(freq=28.1, lat=50.5, lon=8.5, age_minutes=1):
    return Spot(freq_mhz=freq, lat=lat, lon=lon, timestamp=FIXED_NOW - timedelta(minutes=age_minutes))


@pytest.fixture(scope="module")
def muf_grid():
    return build_muf_grid(STATION, 150, FIXED_NOW)


class TestMesh:

    def test_default_shape(self):
        lats, lons = mesh()
        assert len(lats) == 81 and lats[0] == -80 and lats[-1] == 80
        assert len(lons) == 180 and lons[0] == -180 and lons[-1] == 178

    def test_custom_step(self):
        lats, lons = mesh(lat_step=5, lon_step=10)
        assert lats[-1] == 80
        assert len(lons) == 36


class TestMufGrid:

    def test_shape(self, muf_grid):
        assert len(muf_grid.values) == len(muf_grid.lats) == 81
        assert all(len(row) == len(muf_grid.lons) == 180 for row in muf_grid.values)

    def test_values_finite_and_rounded(self, muf_grid):
        for row in muf_grid.values:
            for v in row:
                assert math.isfinite(v)
                assert v >= 0
                assert v == round(v, 1)

    def test_station_cell_is_vertical_incidence(self):
        foF2 = critical_frequency(STATION.lat, STATION.lon, FIXED_NOW, 150)
        assert cell_path_muf(STATION, STATION.lat, STATION.lon, FIXED_NOW, 150) == round(foF2, 1)

    def test_continuous_across_antimeridian(self, muf_grid):
        for i, lat in enumerate(muf_grid.lats):
            wrapped = cell_path_muf(STATION, lat, 180, FIXED_NOW, 150)
            assert abs(muf_grid.values[i][0] - wrapped) <= 0.1 + 1e-9

    def test_long_paths_saturate(self):
        """Beyond one hop the factor stays at M3000F2"""
        far = cell_path_muf(STATION, -30, 150, FIXED_NOW, 150, m3000f2=3.0)
        farther = cell_path_muf(STATION, -30, 150, FIXED_NOW, 150, m3000f2=3.5)
        assert farther > far

    def test_to_dict(self, muf_grid):
        d = muf_grid.to_dict()
        assert set(d) == {"lats", "lons", "values"}


class TestBandGrid:

    def test_spot_source(self):
        spots = [spot() for _ in range(6)]
        result = build_band_grid(TEN_METERS, spots, STATION, 150, FIXED_NOW)
        assert result.source == "spots"
        assert result.spot_count == 6
        assert result.grid.values[65][94] == 6
        assert result.status[65][94] == "open"
        assert result.status[0][0] == "closed"
        assert sum(map(sum, result.grid.values)) == 6

    def test_spot_source_needs_no_station(self):
        spots = [spot() for _ in range(5)]
        assert build_band_grid(TEN_METERS, spots, None, 150, FIXED_NOW).source == "spots"

    def test_muf_fallback(self):
        spots = [spot() for _ in range(4)]
        result = build_band_grid(TEN_METERS, spots, STATION, 150, FIXED_NOW, kp=1)
        assert result.source == "muf"
        assert result.spot_count == 4
        flat = {s for row in result.status for s in row}
        assert flat <= {"open", "marginal", "closed"}

    def test_fallback_without_station(self):
        with pytest.raises(InvalidQthError) as exc:
            build_band_grid(TEN_METERS, [], None, 150, FIXED_NOW)
        assert exc.value.status == 400
        assert exc.value.code == "invalid_qth_locator"

    def test_old_and_out_of_band_spots_ignored(self):
        spots = [spot(age_minutes=20) for _ in range(5)] + [spot(freq=14.07) for _ in range(5)]
        result = build_band_grid(TEN_METERS, spots, STATION, 150, FIXED_NOW)
        assert result.source == "muf"
        assert result.spot_count == 0

    def test_band_edges_inclusive(self):
        spots = [spot(freq=28.0), spot(freq=29.7), spot(), spot(), spot()]
        assert build_band_grid(TEN_METERS, spots, STATION, 150, FIXED_NOW).source == "spots"

    def test_storm_marks_fallback_disturbed(self):
        result = build_band_grid(TEN_METERS, [], STATION, 150, FIXED_NOW, kp=6)
        assert all(s == "disturbed" for row in result.status for s in row)

    def test_bin_spots_drops_outside_mesh(self):
        lats, lons = mesh()
        counts = bin_spots([spot(lat=85), spot(lat=-89), spot(lon=190)], lats, lons)
        # lon 190 wraps to -170
        assert sum(map(sum, counts)) == 1
        assert counts[65][5] == 1


class TestDrap:

    def test_parse(self):
        grid = parse_drap_grid(drap_text())
        assert grid.lats == [89, 87, 85]
        assert grid.lons == list(range(-178, 180, 4))
        assert all(len(row) == 90 for row in grid.values)
        assert grid.values[0][0] == 0.5

    def test_skips_rows_of_wrong_width(self):
        text = drap_text() + "  83 | 1 2 3\n"
        assert parse_drap_grid(text).lats == [89, 87, 85]

    def test_non_numeric_values_become_zero(self):
        text = drap_text(rows=(89,)).replace("0.5", "nan", 1)
        grid = parse_drap_grid(text)
        assert grid.values[0][0] == 0.0
        assert grid.values[0][1] == 0.5

    @pytest.mark.parametrize("text", ["", "# only comments\n", "  1 2 3\n 10 | 1 2 3\n"])
    def test_unparseable(self, text):
        with pytest.raises(UpstreamError) as exc:
            parse_drap_grid(text)
        assert exc.value.code == "drap_parse_failed"
        assert exc.value.status == 502
