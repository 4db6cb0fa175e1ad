"""Simple ionosphere model: foF2, single-hop path MUF, LUF and band status.

foF2 scales with sqrt(1 + 0.01*SFI) and with sqrt(cos(solar zenith)); the
cosine is floored at 0.01 so the night-side F2 layer keeps residual
ionization instead of collapsing to zero.
"""

import math
from datetime import datetime

from .band_utils import REFERENCE_BANDS
from .safe import safe_cosine, safe_kp, safe_lat, safe_lon, safe_non_negative, safe_sfi
from .sun import solar_zenith_cosine

M3000F2 = 3.0           # oblique MUF / foF2 at 3000 km, typical 2.5-3.5
SINGLE_HOP_KM = 3000.0
COS_CHI_FLOOR = 0.01
FOT_FACTOR = 0.85       # ITU-R convention
DISTURBED_KP = 5
OPEN_MARGIN = 1.2
LUF_MAX = 6.0


def critical_frequency(lat: float, lon: float, instant: datetime, sfi) -> float:
    """Vertical-incidence critical frequency foF2 in MHz. Always finite, >= 0."""
    cos_chi = solar_zenith_cosine(safe_lat(lat), safe_lon(lon), instant)
    flux_term = math.sqrt(1 + 0.01 * safe_sfi(sfi))
    return max(0.0, 9 * flux_term * math.sqrt(max(COS_CHI_FLOOR, cos_chi)))


def path_muf(foF2: float, distance_km: float, m3000f2: float = M3000F2) -> float:
    """Single-hop F2 path MUF in MHz.

    Equals foF2 at zero distance and saturates at foF2 * m3000f2 from 3000 km.
    """
    f = safe_non_negative(foF2)
    d = safe_non_negative(distance_km)
    m_factor = 1 + (m3000f2 - 1) * min(1.0, d / SINGLE_HOP_KM)
    return f * m_factor


def luf_estimate(cos_chi: float) -> float:
    """D-layer absorption proxy for the lowest usable frequency, 2-6 MHz."""
    luf = 2 + 4 * max(0.0, 1 - safe_cosine(cos_chi))
    return min(LUF_MAX, luf)


def fot(muf: float) -> float:
    """Frequency of optimum traffic."""
    return max(0.0, FOT_FACTOR * safe_non_negative(muf))


def classify_band(freq_mhz: float, muf_mhz: float, kp=None) -> str:
    """Band status: open, marginal, closed, or disturbed when Kp >= 5."""
    kp = safe_kp(kp)
    if kp is not None and kp >= DISTURBED_KP:
        return "disturbed"
    if muf_mhz >= freq_mhz * OPEN_MARGIN:
        return "open"
    if muf_mhz >= freq_mhz:
        return "marginal"
    return "closed"


def band_status(muf_mhz: float, kp=None) -> list[dict]:
    """Status of each reference band for a station MUF."""
    return [
        {"name": name, "freq": freq, "status": classify_band(freq, muf_mhz, kp)}
        for name, freq in REFERENCE_BANDS
    ]
