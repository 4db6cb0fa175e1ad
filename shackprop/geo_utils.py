"""Geographic utilities for Maidenhead locators and great-circle calculations."""

import math
import re

from .models import GeoPoint

EARTH_RADIUS_KM = 6371.0

_LOCATOR_RE = re.compile(r"^[A-R]{2}[0-9]{2}([A-X]{2}([0-9]{2})?)?$")

# (lon size, lat size) in degrees for each locator level
_FIELD = (20.0, 10.0)
_SQUARE = (2.0, 1.0)
_SUBSQUARE = (5 / 60, 2.5 / 60)
_EXTENDED = (0.5 / 60, 0.25 / 60)


def normalize_lon(lon: float) -> float:
    """Wrap longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0 + 360.0) % 360.0 - 180.0


def locator_to_point(locator: str) -> GeoPoint | None:
    """Convert a Maidenhead locator to the center of its cell.

    Only the first 8 characters are considered. Valid lengths are 4 (square),
    6 (subsquare) and 8 (extended square); the center offset of the finest
    level present is added to the cell origin.

    Args:
        locator: Maidenhead locator, e.g. "JO40", "JO40fd", "JO40fd55"

    Returns:
        GeoPoint at the cell center, or None if the locator is malformed
    """
    if not isinstance(locator, str):
        return None
    loc = locator.strip().upper()[:8]
    if len(loc) not in (4, 6, 8) or not _LOCATOR_RE.match(loc):
        return None

    lon = -180 + (ord(loc[0]) - ord('A')) * _FIELD[0]
    lat = -90 + (ord(loc[1]) - ord('A')) * _FIELD[1]
    lon += int(loc[2]) * _SQUARE[0]
    lat += int(loc[3]) * _SQUARE[1]
    lon_size, lat_size = _SQUARE

    if len(loc) >= 6:
        lon += (ord(loc[4]) - ord('A')) * _SUBSQUARE[0]
        lat += (ord(loc[5]) - ord('A')) * _SUBSQUARE[1]
        lon_size, lat_size = _SUBSQUARE

    if len(loc) >= 8:
        lon += int(loc[6]) * _EXTENDED[0]
        lat += int(loc[7]) * _EXTENDED[1]
        lon_size, lat_size = _EXTENDED

    return GeoPoint(lat + lat_size / 2, lon + lon_size / 2)


def point_to_locator(lat: float, lon: float) -> str | None:
    """Convert lat/lon to a 6-character Maidenhead locator.

    Returns:
        Locator like "JO40fd" (subsquare in lower case), or None for
        non-finite input
    """
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    lat = max(-90.0, min(90.0 - 1e-9, lat))
    lon = normalize_lon(lon)

    lon2 = lon + 180
    lat2 = lat + 90
    f1 = int(lon2 // _FIELD[0])
    f2 = int(lat2 // _FIELD[1])
    lon2 -= f1 * _FIELD[0]
    lat2 -= f2 * _FIELD[1]
    s1 = int(lon2 // _SQUARE[0])
    s2 = int(lat2 // _SQUARE[1])
    lon2 -= s1 * _SQUARE[0]
    lat2 -= s2 * _SQUARE[1]
    sub1 = int(lon2 // _SUBSQUARE[0])
    sub2 = int(lat2 // _SUBSQUARE[1])

    def clamp(n, hi):
        return min(hi, max(0, n))

    return (
        chr(ord('A') + clamp(f1, 17))
        + chr(ord('A') + clamp(f2, 17))
        + str(clamp(s1, 9))
        + str(clamp(s2, 9))
        + chr(ord('a') + clamp(sub1, 23))
        + chr(ord('a') + clamp(sub2, 23))
    )


def calc_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate initial great-circle bearing from point 1 to point 2.

    Returns:
        Bearing in degrees (0-360)
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlon = lon2 - lon1
    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    bearing = math.atan2(x, y)
    return (math.degrees(bearing) + 360) % 360


def calc_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine great-circle distance in kilometers."""
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))
    return EARTH_RADIUS_KM * c


def destination_point(lat: float, lon: float, bearing_deg: float, distance_km: float) -> GeoPoint:
    """Point reached travelling distance_km from (lat, lon) on an initial bearing."""
    delta = distance_km / EARTH_RADIUS_KM
    theta = math.radians(bearing_deg)
    phi1 = math.radians(lat)
    lam1 = math.radians(lon)

    sin_phi2 = (math.sin(phi1) * math.cos(delta)
                + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return GeoPoint(math.degrees(phi2), normalize_lon(math.degrees(lam2)))


def midpoint(lat1: float, lon1: float, lat2: float, lon2: float) -> GeoPoint:
    """Great-circle midpoint. Continuous across the antimeridian."""
    phi1, lam1, phi2, lam2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlam = lam2 - lam1
    bx = math.cos(phi2) * math.cos(dlam)
    by = math.cos(phi2) * math.sin(dlam)
    phi_m = math.atan2(math.sin(phi1) + math.sin(phi2),
                       math.sqrt((math.cos(phi1) + bx) ** 2 + by ** 2))
    lam_m = lam1 + math.atan2(by, math.cos(phi1) + bx)
    return GeoPoint(math.degrees(phi_m), normalize_lon(math.degrees(lam_m)))


def radio_horizon_km(height_m: float) -> float:
    """Radio horizon for an antenna height, 4/3 effective earth radius."""
    if height_m <= 0:
        return 0.0
    return math.sqrt(2 * (4 / 3) * EARTH_RADIUS_KM * height_m / 1000.0)


def bearing_to_direction(bearing: float) -> str:
    """Convert bearing to compass direction (N, NNE, NE, ...)."""
    dirs = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
            "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]
    idx = round(bearing / 22.5) % 16
    return dirs[idx]


def lat_lon_to_dms(lat: float, lon: float) -> str | None:
    """Format lat/lon as degrees/minutes/seconds, e.g. 50°08'12.0"N  8°25'48.0"E."""
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None

    def dms(value):
        v = abs(value)
        deg = int(v)
        minutes = int((v - deg) * 60)
        seconds = (v - deg - minutes / 60) * 3600
        return f"{deg}°{minutes}'{seconds:.1f}\""

    return f"{dms(lat)}{'N' if lat >= 0 else 'S'}  {dms(lon)}{'E' if lon >= 0 else 'W'}"
