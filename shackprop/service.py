"""Propagation service: composes the models into JSON-ready responses.

All collaborators (config, space weather, spots, elevation, clock) are passed
in at construction time; nothing here reads module-level state.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import requests

from .band_utils import band_grid_range
from .errors import BadRequestError, InvalidQthError, UpstreamError
from .geo_utils import (calc_bearing, calc_distance_km, locator_to_point, midpoint,
                        normalize_lon, point_to_locator, radio_horizon_km)
from .grids import build_band_grid, build_muf_grid, parse_drap_grid
from .ionosphere import (M3000F2, band_status, classify_band, critical_frequency, fot,
                         luf_estimate, path_muf)
from .link_budget import band_reliabilities, link_budget, vhf_link_estimate
from .config import DEFAULT_CONFIG, station_point
from .elevation import ElevationClient, line_of_sight
from .models import GeoPoint, PropagationPath, SpaceWeatherSample
from .safe import safe_kp, safe_sfi
from .solar import SpaceWeather
from .spots import SpotStore
from .sun import iso_z, night_polygons, solar_zenith_cosine, sub_solar_point, sunrise_sunset, terminator_line

logger = logging.getLogger(__name__)

DRAP_URL = "https://services.swpc.noaa.gov/text/drap_global_frequencies.txt"


def fetch_drap_text(timeout: float = 10) -> str:
    try:
        resp = requests.get(DRAP_URL, timeout=timeout)
        resp.raise_for_status()
        return resp.text
    except requests.RequestException as e:
        raise UpstreamError(str(e), code="drap_failed") from e


def _round1(x: float) -> float:
    return round(x, 1) if math.isfinite(x) else 0.0


class PropagationService:
    """Station-relative propagation estimates for the HTTP layer and CLI."""

    def __init__(self, config: dict[str, Any] | None = None,
                 space_weather: SpaceWeather | None = None,
                 spots: SpotStore | None = None,
                 elevation: ElevationClient | None = None,
                 clock: Callable[[], datetime] | None = None,
                 drap_fetcher: Callable[[], str] | None = None):
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        timeout = self.config["http_timeout"]
        self.space = space_weather or SpaceWeather(ttl=self.config["space_weather_ttl"], timeout=timeout)
        self.spots = spots if spots is not None else SpotStore()
        if elevation is None and self.config.get("elevation_enabled"):
            elevation = ElevationClient(timeout=timeout, samples=self.config["elevation_samples"])
        self.elevation = elevation
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.drap_fetcher = drap_fetcher or (lambda: fetch_drap_text(timeout))

    # -- collaborators -------------------------------------------------

    @property
    def m3000f2(self) -> float:
        return float(self.config.get("m3000f2") or M3000F2)

    def station(self) -> GeoPoint:
        """Configured station location.

        Raises:
            InvalidQthError: if neither coordinates nor a valid locator are set
        """
        point = station_point(self.config)
        if point is None:
            raise InvalidQthError("Set locator in config")
        return point

    def space_weather(self) -> SpaceWeatherSample:
        return self.space.sample()

    def _sfi_kp(self) -> tuple[float, float | None, SpaceWeatherSample]:
        sample = self.space_weather()
        if sample.solar_flux is None:
            logger.debug("No solar flux available, using default SFI %s", self.config["default_sfi"])
        sfi = safe_sfi(sample.solar_flux, float(self.config["default_sfi"]))
        return sfi, safe_kp(sample.k_index), sample

    # -- station summary ----------------------------------------------

    def summary(self) -> dict:
        """Vertical MUF/LUF at the station and status of the reference bands."""
        q = self.station()
        sfi, kp, sample = self._sfi_kp()
        now = self.clock()
        cos_chi = solar_zenith_cosine(q.lat, q.lon, now)
        foF2 = critical_frequency(q.lat, q.lon, now, sfi)
        muf = foF2  # vertical incidence at the station
        luf = luf_estimate(cos_chi)
        return {
            "locator": self.config.get("locator"),
            "lat": q.lat,
            "lon": q.lon,
            "updated": iso_z(now),
            "sfi": sfi,
            "kp": sample.k_index,
            "cosChi": cos_chi,
            "foF2": _round1(foF2),
            "mufMHz": _round1(muf),
            "lufMHz": _round1(luf),
            "bands": band_status(muf, kp),
            "bandStatusSource": "qth",
        }

    # -- path forecast -------------------------------------------------

    def resolve_destination(self, to_lat=None, to_lon=None, to_grid: str | None = None) -> GeoPoint:
        if to_grid:
            point = locator_to_point(to_grid)
            if point is not None:
                return point
        if to_lat is None or to_lon is None:
            raise BadRequestError("Provide toLat/toLon or toGrid", code="missing_destination")
        if not (math.isfinite(to_lat) and math.isfinite(to_lon)) or abs(to_lat) > 90:
            raise BadRequestError("Provide toLat/toLon or toGrid", code="missing_destination")
        return GeoPoint(to_lat, normalize_lon(to_lon) if abs(to_lon) > 180 else to_lon)

    def compute_path(self, origin: GeoPoint, destination: GeoPoint, instant: datetime,
                     sfi: float, kp: float | None) -> PropagationPath:
        mid = midpoint(origin.lat, origin.lon, destination.lat, destination.lon)
        foF2_mid = critical_frequency(mid.lat, mid.lon, instant, sfi)
        dist = max(0.0, calc_distance_km(origin.lat, origin.lon, destination.lat, destination.lon))
        muf = path_muf(foF2_mid, dist, self.m3000f2)
        luf = luf_estimate(solar_zenith_cosine(mid.lat, mid.lon, instant))
        fot_path = fot(muf)
        return PropagationPath(
            origin=origin,
            destination=destination,
            distance_km=dist,
            bearing_deg=calc_bearing(origin.lat, origin.lon, destination.lat, destination.lon),
            midpoint=mid,
            foF2_mid=foF2_mid,
            muf_path=muf,
            luf_path=luf,
            fot_path=fot_path,
            bands=band_reliabilities(luf, fot_path, muf, kp or 0.0),
        )

    def _link_budget(self, freq_mhz: float, power_w: float, gain_dbi: float, dist: float) -> dict:
        budget = link_budget(power_w, gain_dbi, freq_mhz, dist)
        los_range = float(self.config["los_range_km"])
        sensitivity = float(self.config["sensitivity_dbm"])
        return {
            "freqMHz": freq_mhz,
            "powerW": power_w,
            "gainDbi": gain_dbi,
            "eirpDbm": _round1(budget.eirp_dbm),
            "pathLossDb": _round1(budget.fspl_db),
            "signalAtRepeaterDbm": _round1(budget.received_dbm),
            "linkEstimate": vhf_link_estimate(budget, dist, los_range, sensitivity),
            "sensitivityDbm": sensitivity,
            "losRangeKm": los_range,
            "radioHorizonKm": _round1(2 * radio_horizon_km(float(self.config["antenna_height_m"]))),
        }

    def path_forecast(self, to_lat: float | None = None, to_lon: float | None = None,
                      to_grid: str | None = None, freq_mhz: float | None = None,
                      power_w: float | None = None, gain_dbi: float | None = None) -> dict:
        """Station -> DX forecast: path MUF/LUF, band reliability, link budget.

        Raises:
            InvalidQthError: no station location
            BadRequestError: no usable destination
        """
        origin = self.station()
        dest = self.resolve_destination(to_lat, to_lon, to_grid)
        sfi, kp, sample = self._sfi_kp()
        path = self.compute_path(origin, dest, self.clock(), sfi, kp)

        profile = None
        if self.elevation is not None and path.distance_km > 0:
            profile = self.elevation.profile(origin, dest)
        clear, obstructed_at = line_of_sight(profile)

        budget = None
        if freq_mhz is not None and math.isfinite(freq_mhz) and freq_mhz > 0 and path.distance_km > 0:
            power = power_w if power_w is not None and math.isfinite(power_w) and power_w > 0 \
                else float(self.config["default_power_w"])
            gain = gain_dbi if gain_dbi is not None and math.isfinite(gain_dbi) else 0.0
            budget = self._link_budget(freq_mhz, power, gain, path.distance_km)

        return {
            "from": {"lat": origin.lat, "lon": origin.lon, "locator": self.config.get("locator")},
            "to": {"lat": dest.lat, "lon": dest.lon, "grid": to_grid or None},
            "distanceKm": round(path.distance_km),
            "bearingDeg": _round1(path.bearing_deg),
            "foF2Mid": _round1(path.foF2_mid),
            "mufPath": _round1(path.muf_path),
            "lufPath": _round1(path.luf_path),
            "fotPath": _round1(path.fot_path),
            "sfi": sfi,
            "kp": sample.k_index,
            "bands": [b.to_dict() for b in path.bands],
            "elevationProfile": profile,
            "lineOfSightClear": clear,
            "obstructedAtKm": obstructed_at,
            "linkBudget": budget,
        }

    # -- grids ---------------------------------------------------------

    def muf_grid(self) -> dict:
        q = self.station()
        sfi, _, _ = self._sfi_kp()
        now = self.clock()
        grid = build_muf_grid(q, sfi, now, m3000f2=self.m3000f2)
        return {
            **grid.to_dict(),
            "sfi": sfi,
            "updated": iso_z(now),
            "locator": self.config.get("locator"),
            "fromQth": True,
        }

    def band_grid(self, band: str | None) -> dict:
        """Band-opening raster from live spots, falling back to the MUF model.

        Raises:
            BadRequestError: missing/unknown band token
            InvalidQthError: MUF fallback needed but no station location
        """
        token = str(band or "").strip()
        try:
            band_mhz = float(token)
        except ValueError:
            band_mhz = math.nan
        if not math.isfinite(band_mhz) or band_mhz <= 0:
            raise BadRequestError("Provide band (e.g. 28)", code="invalid_band")
        entry = band_grid_range(token)
        if entry is None:
            raise BadRequestError(f"Unknown band {token}", code="unknown_band")

        now = self.clock()
        window = float(self.config["spot_window_minutes"])
        recent = self.spots.recent((entry[1], entry[2]), window, now)
        station = station_point(self.config)
        sfi, kp, _ = self._sfi_kp()
        result = build_band_grid(entry, recent, station, sfi, now, kp=kp,
                                 min_spots=int(self.config["min_spots_for_map"]),
                                 window_minutes=window, m3000f2=self.m3000f2)
        out = {
            **result.grid.to_dict(),
            "status": result.status,
            "source": result.source,
            "spotCount": result.spot_count,
            "windowMinutes": window,
            "bandMHz": band_mhz,
            "updated": iso_z(now),
        }
        if result.source == "muf":
            out["locator"] = self.config.get("locator")
            out["sfi"] = sfi
        return out

    def band_grid_from_qth(self, freq_mhz: float | None) -> dict:
        """Path-MUF grid with a status raster for an arbitrary frequency."""
        q = self.station()
        if freq_mhz is None or not math.isfinite(freq_mhz) or freq_mhz <= 0:
            raise BadRequestError("Provide band (MHz)", code="invalid_band")
        sfi, kp, _ = self._sfi_kp()
        now = self.clock()
        grid = build_muf_grid(q, sfi, now, m3000f2=self.m3000f2)
        return {
            **grid.to_dict(),
            "status": [[classify_band(freq_mhz, v, kp) for v in row] for row in grid.values],
            "sfi": sfi,
            "updated": iso_z(now),
            "fromQth": True,
            "locator": self.config.get("locator"),
            "bandMHz": freq_mhz,
        }

    def drap_grid(self) -> dict:
        """NOAA D-RAP highest affected frequency, reformatted as a grid."""
        grid = parse_drap_grid(self.drap_fetcher())
        return {**grid.to_dict(), "updated": iso_z(self.clock())}

    # -- sun -----------------------------------------------------------

    def sun(self, to_lat: float | None = None, to_lon: float | None = None,
            to_grid: str | None = None) -> dict:
        """Sunrise/sunset today and tomorrow at the station, optionally at DX."""
        q = self.station()
        now = self.clock()
        tomorrow = now + timedelta(days=1)
        out = {
            "locator": self.config.get("locator"),
            "lat": q.lat,
            "lon": q.lon,
            "today": sunrise_sunset(q.lat, q.lon, now),
            "tomorrow": sunrise_sunset(q.lat, q.lon, tomorrow),
        }
        if to_grid or (to_lat is not None and to_lon is not None):
            dx = self.resolve_destination(to_lat, to_lon, to_grid)
            out["dx"] = {
                "lat": dx.lat,
                "lon": dx.lon,
                "today": sunrise_sunset(dx.lat, dx.lon, now),
                "tomorrow": sunrise_sunset(dx.lat, dx.lon, tomorrow),
            }
        return out

    def terminator(self, step_deg: float = 1.0) -> dict:
        now = self.clock()
        sub = sub_solar_point(now)
        return {
            "segments": terminator_line(now, step_deg),
            "nightPolygons": night_polygons(now, step_deg),
            "subSolar": {"lat": sub.lat, "lon": sub.lon},
            "updated": iso_z(now),
        }

    def qth(self) -> dict:
        q = self.station()
        return {
            "callsign": self.config.get("callsign"),
            "locator": self.config.get("locator"),
            "qthName": self.config.get("qth_name"),
            "lat": q.lat,
            "lon": q.lon,
            "grid6": point_to_locator(q.lat, q.lon),
        }
