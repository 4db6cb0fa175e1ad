"""Terrain elevation profile along a path (Open-Elevation) and LOS check."""

import logging
import math

import requests

from .geo_utils import calc_distance_km
from .models import GeoPoint

logger = logging.getLogger(__name__)

OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"
PROFILE_SAMPLES = 48
LOS_MARGIN_M = 15


def sample_path(origin: GeoPoint, destination: GeoPoint, samples: int = PROFILE_SAMPLES) -> list[GeoPoint]:
    """samples+1 points linearly interpolated in lat/lon, endpoints included."""
    return [
        GeoPoint(origin.lat + (destination.lat - origin.lat) * i / samples,
                 origin.lon + (destination.lon - origin.lon) * i / samples)
        for i in range(samples + 1)
    ]


def build_profile(results: list[dict]) -> dict | None:
    """Turn Open-Elevation results into {samples, minElevation, maxElevation}."""
    rows = [r for r in results or [] if isinstance(r, dict)]
    if not rows:
        return None
    first = rows[0]
    elevations = []
    samples = []
    for idx, r in enumerate(rows):
        lat, lon, elevation = r.get("latitude"), r.get("longitude"), r.get("elevation")
        dist = 0.0 if idx == 0 else calc_distance_km(first["latitude"], first["longitude"], lat, lon)
        if isinstance(elevation, (int, float)) and math.isfinite(elevation):
            elevations.append(elevation)
        samples.append({"lat": lat, "lon": lon, "elevation": elevation, "distKm": dist})
    return {
        "samples": samples,
        "minElevation": min(elevations) if elevations else None,
        "maxElevation": max(elevations) if elevations else None,
    }


def line_of_sight(profile: dict | None, margin_m: float = LOS_MARGIN_M) -> tuple[bool, float | None]:
    """Check terrain against the straight line between the path endpoints.

    Returns:
        (clear, obstructed_at_km); clear is True when there is no profile
    """
    if not profile or len(profile.get("samples") or []) < 2:
        return True, None
    samples = profile["samples"]
    dist_total = samples[-1]["distKm"] or 1
    elev_start = samples[0]["elevation"]
    elev_end = samples[-1]["elevation"]
    if not all(isinstance(e, (int, float)) for e in (elev_start, elev_end)):
        return True, None

    for s in samples[1:-1]:
        terrain = s["elevation"]
        if not isinstance(terrain, (int, float)) or not math.isfinite(terrain):
            continue
        los_h = elev_start + (elev_end - elev_start) * (s["distKm"] / dist_total) + margin_m
        if terrain > los_h:
            return False, round(s["distKm"], 1)
    return True, None


class ElevationClient:
    """Fetches elevation profiles. Errors give None, never an exception."""

    def __init__(self, url: str = OPEN_ELEVATION_URL, timeout: float = 10,
                 samples: int = PROFILE_SAMPLES):
        self.url = url
        self.timeout = timeout
        self.samples = samples

    def profile(self, origin: GeoPoint, destination: GeoPoint) -> dict | None:
        points = sample_path(origin, destination, self.samples)
        locations = "|".join(f"{p.lat},{p.lon}" for p in points)
        try:
            resp = requests.get(self.url, params={"locations": locations}, timeout=self.timeout)
            resp.raise_for_status()
            results = resp.json().get("results")
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning("Elevation lookup failed: %s", e)
            return None
        if not isinstance(results, list):
            return None
        try:
            return build_profile(results)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("Unexpected elevation response: %s", e)
            return None
