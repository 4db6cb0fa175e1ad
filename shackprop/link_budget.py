"""Free-space link budget and HF path reliability.

The VHF/UHF estimate has no terrain or earth-curvature model, so anything
beyond a fixed line-of-sight range is reported as out of range.
"""

import math
from dataclasses import dataclass

from .band_utils import REFERENCE_BANDS
from .models import BandReliability
from .safe import finite_or, safe_kp, safe_non_negative

LOS_RANGE_KM = 50.0
SENSITIVITY_DBM = -120.0
MARGIN_OK_DB = 10.0
MARGIN_MARGINAL_DB = 3.0
KP_SCALE = 12.0


@dataclass(frozen=True)
class LinkBudget:
    eirp_dbm: float
    fspl_db: float
    received_dbm: float


def free_space_path_loss(distance_km: float, freq_mhz: float) -> float:
    """FSPL in dB for distance in km and frequency in MHz.

    Raises:
        ValueError: if either argument is not strictly positive
    """
    if distance_km <= 0 or freq_mhz <= 0:
        raise ValueError("distance and frequency must be positive")
    return 32.44 + 20 * math.log10(freq_mhz) + 20 * math.log10(distance_km)


def link_budget(power_w: float, gain_dbi: float, freq_mhz: float, distance_km: float) -> LinkBudget:
    """EIRP, path loss and received power for a free-space link."""
    if power_w <= 0:
        raise ValueError("power must be positive")
    eirp = 10 * math.log10(power_w * 1000) + gain_dbi
    fspl = free_space_path_loss(distance_km, freq_mhz)
    return LinkBudget(eirp_dbm=eirp, fspl_db=fspl, received_dbm=eirp - fspl)


def vhf_link_estimate(budget: LinkBudget, distance_km: float,
                      los_range_km: float = LOS_RANGE_KM,
                      sensitivity_dbm: float = SENSITIVITY_DBM) -> str:
    """Classify a VHF/UHF link: out_of_range, ok, marginal or unlikely."""
    if distance_km > los_range_km:
        return "out_of_range"
    margin = budget.received_dbm - sensitivity_dbm
    if margin >= MARGIN_OK_DB:
        return "ok"
    if margin >= MARGIN_MARGINAL_DB:
        return "marginal"
    return "unlikely"


def path_reliability(freq: float, luf: float, fot: float, muf: float, kp=None) -> int:
    """Percent reliability of a frequency on a path.

    Linear ramp from 0 at LUF to 100 at FOT, back to 0 at MUF, scaled by
    max(0, 1 - kp/12).
    """
    f = finite_or(freq, 0.0)
    luf = safe_non_negative(luf)
    fot = safe_non_negative(fot)
    muf = safe_non_negative(muf)

    if muf <= 0 or f >= muf or f <= luf or fot <= luf:
        reliability = 0.0
    elif f <= fot:
        reliability = 100 * (f - luf) / (fot - luf)
    else:
        denom = muf - fot
        reliability = 100 * (muf - f) / denom if denom > 0 else 0.0

    kp = safe_kp(kp) or 0.0
    reliability *= max(0.0, 1 - kp / KP_SCALE)
    # half-up, not banker's rounding
    return int(math.floor(min(100.0, max(0.0, reliability)) + 0.5))


def band_reliabilities(luf: float, fot: float, muf: float, kp=None) -> list[BandReliability]:
    """Reliability and MUF ratio for each reference band."""
    out = []
    for name, freq in REFERENCE_BANDS:
        ratio = muf / freq if freq > 0 else 0.0
        out.append(BandReliability(
            name=name,
            freq=freq,
            reliability=path_reliability(freq, luf, fot, muf, kp),
            muf_ratio=round(ratio, 2) if math.isfinite(ratio) else 0.0,
        ))
    return out
