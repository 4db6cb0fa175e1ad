"""Lat/lon rasters for map overlays: path MUF, band openings, D-RAP.

MUF grids are always relative to the station: each cell holds the MUF of
the path from the station to that cell, evaluated at the path midpoint.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from .errors import InvalidQthError, UpstreamError
from .geo_utils import calc_distance_km, midpoint, normalize_lon
from .ionosphere import M3000F2, classify_band, critical_frequency, path_muf
from .models import BandGrid, GeoPoint, Grid, Spot
from .safe import finite_or
from .spots import filter_spots

LAT_STEP = 2
LON_STEP = 2
LAT_RANGE = (-80, 80)
LON_RANGE = (-180, 180)
MIN_SPOTS_FOR_MAP = 5


def mesh(lat_step=LAT_STEP, lon_step=LON_STEP, lat_range=LAT_RANGE, lon_range=LON_RANGE):
    """Mesh axes. Latitudes include the upper bound, longitudes do not."""
    lat_min, lat_max = lat_range
    lon_min, lon_max = lon_range
    n_lat = int(math.floor((lat_max - lat_min) / lat_step + 1e-9)) + 1
    n_lon = int(math.ceil((lon_max - lon_min) / lon_step - 1e-9))
    lats = [lat_min + i * lat_step for i in range(n_lat)]
    lons = [lon_min + j * lon_step for j in range(n_lon)]
    return lats, lons


def cell_path_muf(station: GeoPoint, lat: float, lon: float, instant: datetime,
                  sfi, m3000f2: float = M3000F2) -> float:
    """Path MUF station -> (lat, lon), rounded to 0.1 MHz. Never NaN."""
    mid = midpoint(station.lat, station.lon, lat, lon)
    foF2_mid = critical_frequency(mid.lat, mid.lon, instant, sfi)
    dist = calc_distance_km(station.lat, station.lon, lat, lon)
    value = round(path_muf(foF2_mid, dist, m3000f2), 1)
    return value if math.isfinite(value) else 0.0


def build_muf_grid(station: GeoPoint, sfi, instant: datetime,
                   lat_step=LAT_STEP, lon_step=LON_STEP,
                   lat_range=LAT_RANGE, lon_range=LON_RANGE,
                   m3000f2: float = M3000F2) -> Grid:
    """Path MUF from the station to every mesh cell."""
    lats, lons = mesh(lat_step, lon_step, lat_range, lon_range)
    values = [
        [cell_path_muf(station, lat, lon, instant, sfi, m3000f2) for lon in lons]
        for lat in lats
    ]
    return Grid(lats=lats, lons=lons, values=values)


def bin_spots(spots: Iterable[Spot], lats: list, lons: list,
              lat_step=LAT_STEP, lon_step=LON_STEP) -> list[list[int]]:
    """Count spots per mesh cell. Spots outside the mesh are dropped."""
    counts = [[0] * len(lons) for _ in lats]
    for s in spots:
        i = math.floor((s.lat - lats[0]) / lat_step)
        j = math.floor((normalize_lon(s.lon) - lons[0]) / lon_step)
        if 0 <= i < len(lats) and 0 <= j < len(lons):
            counts[i][j] += 1
    return counts


def build_band_grid(band: tuple[float, float, float], recent_spots: Iterable[Spot],
                    station: GeoPoint | None, sfi, instant: datetime, kp=None,
                    min_spots: int = MIN_SPOTS_FOR_MAP, window_minutes: float = 15,
                    lat_step=LAT_STEP, lon_step=LON_STEP,
                    m3000f2: float = M3000F2) -> BandGrid:
    """Band-opening raster from live spots, or from the MUF model.

    With at least min_spots spots on the band inside the window the grid
    holds raw spot counts (source "spots"); otherwise it falls back to the
    station's path-MUF grid (source "muf") classified against the band.

    Args:
        band: (reference MHz, low MHz, high MHz)
        recent_spots: Candidate spots; filtered here by band and window
        station: Station location, only required for the MUF fallback

    Raises:
        InvalidQthError: if the MUF fallback is needed and station is None
    """
    ref_mhz, low, high = band
    band_spots = filter_spots(recent_spots, (low, high), window_minutes, instant)

    if len(band_spots) >= min_spots:
        lats, lons = mesh(lat_step, lon_step)
        counts = bin_spots(band_spots, lats, lons, lat_step, lon_step)
        status = [["open" if c >= 1 else "closed" for c in row] for row in counts]
        return BandGrid(grid=Grid(lats, lons, counts), source="spots",
                        spot_count=len(band_spots), status=status)

    if station is None:
        raise InvalidQthError("Set locator for MUF fallback")
    grid = build_muf_grid(station, sfi, instant, lat_step, lon_step, m3000f2=m3000f2)
    status = [[classify_band(ref_mhz, v, kp) for v in row] for row in grid.values]
    return BandGrid(grid=grid, source="muf", spot_count=len(band_spots), status=status)


def _numbers(line: str) -> list[float]:
    out = []
    for token in line.split():
        try:
            x = float(token)
        except ValueError:
            continue
        if math.isfinite(x):
            out.append(x)
    return out


def parse_drap_grid(text: str) -> Grid:
    """Parse NOAA's drap_global_frequencies.txt into a Grid.

    The product has a header row of longitudes followed by rows of
    "lat | v v v ..." (highest affected frequency, MHz).

    Raises:
        UpstreamError: if no longitude header or data rows were found
    """
    lons = None
    lats = []
    values = []

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if "|" in trimmed:
            lat_part, _, val_part = trimmed.partition("|")
            try:
                lat = float(lat_part.strip())
            except ValueError:
                continue
            if not math.isfinite(lat):
                continue
            vals = [finite_or(v, 0.0) for v in val_part.split()]
            if lons and len(vals) == len(lons):
                lats.append(lat)
                values.append(vals)
        else:
            nums = _numbers(trimmed)
            if len(nums) >= 24 and all(-180 <= n <= 180 for n in nums):
                lons = nums

    if not lons or not lats:
        raise UpstreamError("Could not parse D-RAP grid", code="drap_parse_failed")
    return Grid(lats=lats, lons=lons, values=values)
