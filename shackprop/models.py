"""Value types shared by the propagation modules."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple


class GeoPoint(NamedTuple):
    """Latitude/longitude in degrees. Unpacks like a (lat, lon) tuple."""
    lat: float
    lon: float


class SolarState(NamedTuple):
    declination: float  # radians
    sub_solar_lon: float  # degrees, [-180, 180)


@dataclass(frozen=True)
class SpaceWeatherSample:
    """Solar flux / Kp as last fetched from NOAA. Either field may be None."""
    solar_flux: float | None = None
    k_index: float | None = None
    fetched_at: datetime | None = None


@dataclass(frozen=True)
class Spot:
    freq_mhz: float
    lat: float
    lon: float
    timestamp: datetime
    source: str = ""


@dataclass
class Grid:
    """Lat/lon raster. values[i][j] belongs to lats[i], lons[j]."""
    lats: list[float]
    lons: list[float]
    values: list[list[float]]

    def to_dict(self) -> dict:
        return {"lats": self.lats, "lons": self.lons, "values": self.values}


@dataclass
class BandGrid:
    grid: Grid
    source: str  # "spots" or "muf"
    spot_count: int
    status: list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class BandReliability:
    name: str
    freq: float
    reliability: int
    muf_ratio: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "freq": self.freq,
            "reliability": self.reliability,
            "mufRatio": self.muf_ratio,
        }


@dataclass(frozen=True)
class PropagationPath:
    origin: GeoPoint
    destination: GeoPoint
    distance_km: float
    bearing_deg: float
    midpoint: GeoPoint
    foF2_mid: float
    muf_path: float
    luf_path: float
    fot_path: float
    bands: list[BandReliability]
