"""Configuration loader for the shack propagation service."""

import logging
import math
import os
from pathlib import Path
from typing import Any

import yaml

from .geo_utils import locator_to_point
from .models import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "callsign": "DN9MTK",
    "locator": "JO40FD",  # Taunus Mountains
    "qth_name": "Taunus Mountains * Germany",
    "lat": None,          # explicit coordinates win over the locator
    "lon": None,
    # model parameters
    "m3000f2": 3.0,
    "default_sfi": 100,
    "los_range_km": 50,
    "sensitivity_dbm": -120,
    "default_power_w": 5,
    "antenna_height_m": 10,
    # collaborators
    "space_weather_ttl": 60,
    "spot_window_minutes": 15,
    "min_spots_for_map": 5,
    "elevation_enabled": True,
    "elevation_samples": 48,
    "http_timeout": 10,
}

ENV_OVERRIDES = {
    "CALLSIGN": ("callsign", str),
    "LOCATOR": ("locator", str),
    "QTH_NAME": ("qth_name", str),
    "QTH_LAT": ("lat", float),
    "QTH_LON": ("lon", float),
}


def _search_paths(config_path: Path | None) -> list[Path]:
    paths = []
    if config_path:
        paths.append(Path(config_path))

    # Local config (gitignored, stays with repo)
    repo_root = Path(__file__).parent.parent
    paths.append(repo_root / "local" / "config" / "config.yaml")

    # XDG config
    paths.append(Path.home() / ".config" / "shack-propagation" / "config.yaml")
    return paths


def _apply_env(config: dict[str, Any]) -> None:
    for var, (key, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            config[key] = cast(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", var, raw, cast.__name__)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file with defaults.

    Searches for config in:
    1. Provided path
    2. local/config/config.yaml (user config, gitignored)
    3. ~/.config/shack-propagation/config.yaml (XDG standard)
    4. Falls back to defaults

    Environment variables (CALLSIGN, LOCATOR, QTH_NAME, QTH_LAT, QTH_LON)
    override whatever was loaded.

    Args:
        config_path: Optional path to config file

    Returns:
        Dict with configuration values
    """
    config = DEFAULT_CONFIG.copy()

    for path in _search_paths(config_path):
        if path.exists():
            try:
                with open(path) as f:
                    user_config = yaml.safe_load(f)
                if user_config:
                    config.update(user_config)
                break
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Could not load config from %s: %s", path, e)

    _apply_env(config)
    return config


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration dict to save
        config_path: Optional path to save to (defaults to local/config/config.yaml)
    """
    if config_path is None:
        repo_root = Path(__file__).parent.parent
        config_path = repo_root / "local" / "config" / "config.yaml"

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def _coordinate(value, limit: float) -> float | None:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(x) or abs(x) > limit:
        return None
    return x


def station_point(config: dict[str, Any]) -> GeoPoint | None:
    """Station location: explicit lat/lon if valid, else the locator center."""
    lat = _coordinate(config.get("lat"), 90)
    lon = _coordinate(config.get("lon"), 180)
    if lat is not None and lon is not None:
        return GeoPoint(lat, lon)
    locator = config.get("locator")
    return locator_to_point(locator) if locator else None
