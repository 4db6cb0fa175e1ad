"""Solar flux and planetary K-index from NOAA SWPC.

Fetch failures never raise: the affected field is None and the ionosphere
model falls back to its defaults (SFI 100, no Kp).
"""

import logging
from datetime import datetime, timezone

import requests

from .cache import TTLCache
from .models import SpaceWeatherSample
from .safe import finite_or

logger = logging.getLogger(__name__)

SOLAR_FLUX_URL = "https://services.swpc.noaa.gov/json/f107_cm_flux.json"
KP_URL = "https://services.swpc.noaa.gov/products/noaa-planetary-k-index.json"
USER_AGENT = "shack-propagation/1.0"
CACHE_KEY = "propagation_sfi_kp"
CACHE_TTL = 60


def _get_json(url: str, timeout: float):
    resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def fetch_solar_flux(timeout: float = 10) -> float | None:
    """Latest 10.7 cm solar flux, or None on error."""
    try:
        data = _get_json(SOLAR_FLUX_URL, timeout)
        last = data[-1] if data else None
        flux = finite_or(last.get("flux") if isinstance(last, dict) else None, -1.0)
        return flux if flux > 0 else None
    except (requests.RequestException, ValueError, TypeError, KeyError, IndexError) as e:
        logger.warning("NOAA solar flux fetch error: %s", e)
        return None


def fetch_kp(timeout: float = 10) -> float | None:
    """Latest planetary K-index, or None on error.

    The product is either a table (header row, then [time, Kp, ...] rows) or
    a list of objects with a "Kp" / "kp_index" field.
    """
    try:
        data = _get_json(KP_URL, timeout)
        if not data:
            return None
        latest = data[-1]
        if isinstance(latest, dict):
            raw = latest.get("Kp", latest.get("kp_index", latest.get("kp")))
        else:
            raw = latest[1]
        kp = finite_or(raw, -1.0)
        return kp if kp >= 0 else None
    except (requests.RequestException, ValueError, TypeError, KeyError, IndexError) as e:
        logger.warning("NOAA Kp fetch error: %s", e)
        return None


def fetch_space_weather(timeout: float = 10) -> SpaceWeatherSample:
    """Fetch SFI and Kp from the two NOAA feeds."""
    return SpaceWeatherSample(
        solar_flux=fetch_solar_flux(timeout),
        k_index=fetch_kp(timeout),
        fetched_at=datetime.now(timezone.utc),
    )


class SpaceWeather:
    """Cached space-weather collaborator shared by all propagation requests."""

    def __init__(self, cache: TTLCache | None = None, ttl: float = CACHE_TTL,
                 fetcher=None, timeout: float = 10):
        self.cache = cache or TTLCache()
        self.ttl = ttl
        self.timeout = timeout
        self._fetcher = fetcher or (lambda: fetch_space_weather(self.timeout))

    def sample(self) -> SpaceWeatherSample:
        return self.cache.get_or_fetch(CACHE_KEY, self.ttl, self._fetcher)
