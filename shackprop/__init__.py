"""Shack propagation - HF propagation estimates for a ham-radio dashboard."""

from .band_utils import BANDS, REFERENCE_BANDS, freq_to_band, band_grid_range
from .geo_utils import (locator_to_point, point_to_locator, calc_bearing, calc_distance_km,
                        destination_point, midpoint, bearing_to_direction)
from .config import load_config, save_config, station_point
from .sun import solar_state, solar_zenith_cosine, sunrise_sunset
from .ionosphere import critical_frequency, path_muf, luf_estimate, classify_band, band_status
from .link_budget import free_space_path_loss, link_budget, path_reliability
from .grids import build_muf_grid, build_band_grid, parse_drap_grid
from .models import GeoPoint, Grid, Spot, SpaceWeatherSample
from .service import PropagationService

__all__ = [
    # Bands
    'BANDS',
    'REFERENCE_BANDS',
    'freq_to_band',
    'band_grid_range',
    # Geodesy
    'locator_to_point',
    'point_to_locator',
    'calc_bearing',
    'calc_distance_km',
    'destination_point',
    'midpoint',
    'bearing_to_direction',
    # Config
    'load_config',
    'save_config',
    'station_point',
    # Sun
    'solar_state',
    'solar_zenith_cosine',
    'sunrise_sunset',
    # Ionosphere
    'critical_frequency',
    'path_muf',
    'luf_estimate',
    'classify_band',
    'band_status',
    # Link budget
    'free_space_path_loss',
    'link_budget',
    'path_reliability',
    # Grids
    'build_muf_grid',
    'build_band_grid',
    'parse_drap_grid',
    # Types
    'GeoPoint',
    'Grid',
    'Spot',
    'SpaceWeatherSample',
    'PropagationService',
]
