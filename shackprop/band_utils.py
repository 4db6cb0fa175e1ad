"""Band and frequency utilities for amateur radio."""

# Band edges for categorization (MHz)
BANDS = {
    "160m": (1.8, 2.0),
    "80m": (3.5, 4.0),
    "60m": (5.3, 5.4),
    "40m": (7.0, 7.2),
    "30m": (10.1, 10.15),
    "20m": (14.0, 14.35),
    "17m": (18.068, 18.168),
    "15m": (21.0, 21.45),
    "12m": (24.89, 24.99),
    "10m": (28.0, 29.7),
    "6m": (50.0, 54.0),
    "4m": (70.0, 70.5),
    "2m": (144.0, 146.0),
    "70cm": (430.0, 440.0),
}

# Bands reported by the propagation summary and path forecast
REFERENCE_BANDS = [
    ("10m", 28.0),
    ("15m", 21.0),
    ("20m", 14.0),
    ("40m", 7.0),
]

# band-grid tokens -> (reference MHz, low edge, high edge)
# "10" is the 10 m band, same as "28"
BAND_GRID_BANDS = {
    "1.8": (1.8, 1.8, 2.0),
    "3.5": (3.5, 3.5, 4.0),
    "5.3": (5.3, 5.3, 5.4),
    "7": (7.0, 7.0, 7.2),
    "10": (28.0, 28.0, 29.7),
    "14": (14.0, 14.0, 14.35),
    "18": (18.068, 18.068, 18.168),
    "21": (21.0, 21.0, 21.45),
    "24": (24.89, 24.89, 24.99),
    "28": (28.0, 28.0, 29.7),
    "50": (50.0, 50.0, 54.0),
}


def freq_to_band(freq: float) -> str | None:
    """Convert frequency to band name.

    Args:
        freq: Frequency in MHz (values >= 1000 are taken as kHz)

    Returns:
        Band name (e.g., "20m") or None if not in a known band
    """
    if freq >= 1000:
        freq = freq / 1000
    for band, (low, high) in BANDS.items():
        if low <= freq < high:
            return band
    return None


def band_grid_range(token: str) -> tuple[float, float, float] | None:
    """Look up a band-grid token ("28", "14", ...).

    Returns:
        (reference MHz, low MHz, high MHz) or None for an unknown token
    """
    key = str(token).strip()
    if key in BAND_GRID_BANDS:
        return BAND_GRID_BANDS[key]
    try:
        value = float(key)
    except ValueError:
        return None
    # "28.0", "7.00" etc.
    for k, entry in BAND_GRID_BANDS.items():
        if float(k) == value:
            return entry
    return None
