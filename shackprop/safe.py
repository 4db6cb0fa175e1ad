"""Finite-value guards applied at the model function boundaries.

Grid output is rasterized straight into pixel colours, so nothing produced by
the model may be NaN or infinite.
"""

import math

DEFAULT_SFI = 100.0


def finite_or(value, default: float) -> float:
    """Return value as float if it is a finite number, else default."""
    try:
        x = float(value)
    except (TypeError, ValueError):
        return default
    return x if math.isfinite(x) else default


def safe_lat(lat) -> float:
    return max(-90.0, min(90.0, finite_or(lat, 0.0)))


def safe_lon(lon) -> float:
    """Wrap longitude into [-180, 180]."""
    x = finite_or(lon, 0.0)
    while x < -180:
        x += 360
    while x > 180:
        x -= 360
    return x


def safe_sfi(sfi, default: float = DEFAULT_SFI) -> float:
    """Solar flux index; missing, non-positive or non-finite -> default."""
    x = finite_or(sfi, default)
    return x if x > 0 else default


def safe_kp(kp) -> float | None:
    """Kp index or None when absent/invalid."""
    if kp is None:
        return None
    x = finite_or(kp, -1.0)
    return x if x >= 0 else None


def safe_cosine(c) -> float:
    return max(-1.0, min(1.0, finite_or(c, 0.0)))


def safe_non_negative(x) -> float:
    v = finite_or(x, 0.0)
    return v if v >= 0 else 0.0
