"""Low-precision solar position, zenith angle, sunrise/sunset and terminator.

One ephemeris is used everywhere so the day/night overlay drawn from
terminator_line() agrees with the foF2 values in the MUF grid.
"""

import math
from datetime import date, datetime, time, timedelta, timezone

from .models import GeoPoint, SolarState
from .safe import safe_lat, safe_lon

J2000 = 2451545.0
UNIX_EPOCH_JD = 2440587.5

# Sun center at -0.83 deg: refraction plus disk radius
SUNRISE_ALTITUDE_DEG = -0.83


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def days_since_j2000(instant: datetime) -> float:
    return _utc(instant).timestamp() / 86400.0 + UNIX_EPOCH_JD - J2000


def iso_z(instant: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return _utc(instant).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def solar_state(instant: datetime) -> SolarState:
    """Solar declination and sub-solar longitude (about 0.01 deg accuracy).

    Mean anomaly and mean longitude give the ecliptic longitude with two
    equation-of-center terms; right ascension and Greenwich mean sidereal
    time then place the sub-solar point.
    """
    n = days_since_j2000(instant)
    g = math.radians((357.529 + 0.98560028 * n) % 360)
    q = math.radians((280.459 + 0.98564736 * n) % 360)
    ecl_lon = q + math.radians(1.915) * math.sin(g) + math.radians(0.020) * math.sin(2 * g)

    obliquity = math.radians(23.439 - 0.00000036 * n)
    dec = math.asin(math.sin(obliquity) * math.sin(ecl_lon))

    t = n / 36525.0
    gmst = 280.46061837 + 360.98564736629 * n + 0.000387933 * t * t - (t * t * t) / 38710000.0
    gmst %= 360

    ra = math.atan2(math.cos(obliquity) * math.sin(ecl_lon), math.cos(ecl_lon))
    sub_lon = (math.degrees(ra) - gmst + 540) % 360 - 180
    return SolarState(dec, sub_lon)


def solar_zenith_cosine(lat: float, lon: float, instant: datetime) -> float:
    """Cosine of the solar zenith angle. Positive when the sun is up."""
    dec, sub_lon = solar_state(instant)
    phi = math.radians(safe_lat(lat))
    hour_angle = math.radians((safe_lon(lon) - sub_lon + 540) % 360 - 180)
    c = math.sin(phi) * math.sin(dec) + math.cos(phi) * math.cos(dec) * math.cos(hour_angle)
    return max(-1.0, min(1.0, c))


def is_night(lat: float, lon: float, instant: datetime) -> bool:
    return solar_zenith_cosine(lat, lon, instant) < 0


def sub_solar_point(instant: datetime) -> GeoPoint:
    dec, sub_lon = solar_state(instant)
    return GeoPoint(math.degrees(dec), sub_lon)


def sunrise_sunset(lat: float, lon: float, when: datetime | date) -> dict:
    """Sunrise, sunset and solar noon (UTC) for a location, NOAA style.

    Args:
        lat, lon: Location in degrees
        when: Instant (or date) selecting the UTC day

    Returns:
        Dict with sunriseUtc, sunsetUtc, noonUtc as ISO strings. Sunrise and
        sunset are None during polar day or polar night.
    """
    if isinstance(when, datetime):
        instant = _utc(when)
    else:
        instant = datetime.combine(when, time(12, 0), tzinfo=timezone.utc)

    n = days_since_j2000(instant)
    m = math.radians((357.5291 + 0.98560028 * n) % 360)
    ecl_lon = math.radians((280.4661 + 0.98564736 * n + 1.915 * math.sin(m) + 0.020 * math.sin(2 * m)) % 360)
    obliquity = math.radians(23.44 - 0.0000004 * n)
    dec = math.asin(math.sin(obliquity) * math.sin(ecl_lon))

    # equation of time, hours
    eq_time = (2.466 * math.sin(2 * ecl_lon) - 7.352 * math.cos(ecl_lon) + 9.707 * math.sin(ecl_lon)) / 60
    noon_h = 12 - eq_time - lon / 15

    day_start = datetime.combine(instant.date(), time(0, 0), tzinfo=timezone.utc)
    result = {
        "sunriseUtc": None,
        "sunsetUtc": None,
        "noonUtc": iso_z(day_start + timedelta(hours=noon_h)),
    }

    phi = math.radians(lat)
    denom = math.cos(phi) * math.cos(dec)
    if abs(denom) < 1e-12:
        return result
    cos_h = (math.sin(math.radians(SUNRISE_ALTITUDE_DEG)) - math.sin(phi) * math.sin(dec)) / denom
    if cos_h <= -1 or cos_h >= 1:
        return result

    half_day_h = math.degrees(math.acos(cos_h)) / 15
    result["sunriseUtc"] = iso_z(day_start + timedelta(hours=noon_h - half_day_h))
    result["sunsetUtc"] = iso_z(day_start + timedelta(hours=noon_h + half_day_h))
    return result


def _wrap_lon(lon: float) -> float:
    x = ((lon + 180) % 360 + 360) % 360 - 180
    return -180.0 if x == 180 else x


def _split_at_wrap(points: list[list[float]]) -> list[list[list[float]]]:
    segments = []
    seg = []
    for p in points:
        if seg and abs(p[1] - seg[-1][1]) > 30:
            segments.append(seg)
            seg = []
        seg.append(p)
    if seg:
        segments.append(seg)
    return segments


def _terminator_points(instant: datetime, step_deg: float) -> list[list[float]]:
    dec, sub_lon = solar_state(instant)
    tan_dec = math.tan(dec)
    points = []
    count = int(360 // step_deg)
    for k in range(count + 1):
        lon = -180 + k * step_deg
        h = math.radians(lon - sub_lon)
        if abs(tan_dec) < 1e-6:
            lat = 0.0
        else:
            lat = math.degrees(math.atan(-math.cos(h) / tan_dec))
        points.append([lat, _wrap_lon(lon)])
    return points


def terminator_line(instant: datetime, step_deg: float = 1.0) -> list[list[list[float]]]:
    """Day/night boundary as [lat, lon] segments split at the dateline."""
    return _split_at_wrap(_terminator_points(instant, step_deg))


def night_polygons(instant: datetime, step_deg: float = 1.0) -> list[list[list[float]]]:
    """Night-side rings: each terminator segment closed over the dark pole."""
    dec, _ = solar_state(instant)
    pole_lat = -90.0 if dec > 0 else 90.0
    polygons = []
    for seg in terminator_line(instant, step_deg):
        start_lon = seg[0][1]
        end_lon = seg[-1][1]
        polygons.append(seg + [[pole_lat, end_lon], [pole_lat, start_lon]])
    return polygons
