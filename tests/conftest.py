"""Shared fixtures: fixed clock, fake space weather, service and Flask client."""

from datetime import datetime, timezone

import pytest

from shackprop.models import SpaceWeatherSample
from shackprop.service import PropagationService
from shackprop.spots import SpotStore
from shackprop.web import create_app

# Spring equinox 2024, midday UTC
FIXED_NOW = datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)


class FakeSpaceWeather:
    """Stands in for the cached NOAA collaborator."""

    def __init__(self, solar_flux=150.0, k_index=2.0):
        self.solar_flux = solar_flux
        self.k_index = k_index
        self.calls = 0

    def sample(self):
        self.calls += 1
        return SpaceWeatherSample(solar_flux=self.solar_flux, k_index=self.k_index, fetched_at=FIXED_NOW)


def drap_text(rows=(89, 87, 85)):
    lons = list(range(-178, 180, 4))
    lines = [
        ":Product: drap_global_frequencies.txt",
        "# Prepared by the U.S. Dept. of Commerce, NOAA, Space Weather Prediction Center",
        "#",
        "     " + " ".join(f"{lon:5d}" for lon in lons),
        "    " + "-" * 40,
    ]
    for lat in rows:
        lines.append(f"{lat:4d} | " + " ".join("0.5" for _ in lons))
    return "\n".join(lines) + "\n"


@pytest.fixture
def space_weather():
    return FakeSpaceWeather()


@pytest.fixture
def spot_store():
    return SpotStore()


@pytest.fixture
def make_service(space_weather, spot_store):
    def factory(elevation=None, drap_fetcher=drap_text, **config):
        cfg = {"locator": "JO40FD", "callsign": "DN9MTK", "elevation_enabled": False}
        cfg.update(config)
        return PropagationService(
            cfg,
            space_weather=space_weather,
            spots=spot_store,
            elevation=elevation,
            clock=lambda: FIXED_NOW,
            drap_fetcher=drap_fetcher,
        )
    return factory


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def client(service):
    app = create_app(service, url_prefix="")
    app.testing = True
    return app.test_client()
