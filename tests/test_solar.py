#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "requests",
#   "pytest",
# ]
# ///
"""Test NOAA space-weather fetching and caching."""

import threading
import time
from unittest.mock import Mock, patch

import pytest
import requests

from shackprop import solar
from shackprop.cache import TTLCache
from shackprop.models import SpaceWeatherSample


def json_response(payload):
    resp = Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class FakeClock:

    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t


class TestFetchSolarFlux:

    @patch("shackprop.solar.requests.get")
    def test_latest_entry(self, mock_get):
        mock_get.return_value = json_response([
            {"time_tag": "2024-03-19T20:00:00", "flux": 140.1},
            {"time_tag": "2024-03-20T20:00:00", "flux": 152.3},
        ])
        assert solar.fetch_solar_flux() == 152.3
        assert mock_get.call_args[0][0] == solar.SOLAR_FLUX_URL

    @patch("shackprop.solar.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")
        assert solar.fetch_solar_flux() is None

    @patch("shackprop.solar.requests.get")
    def test_http_error(self, mock_get):
        resp = json_response([])
        resp.raise_for_status.side_effect = requests.HTTPError("503")
        mock_get.return_value = resp
        assert solar.fetch_solar_flux() is None

    @pytest.mark.parametrize("payload", [[], [{"flux": None}], [{"flux": "junk"}], [{"flux": -1}], {"flux": 100}])
    def test_unusable_payload(self, payload):
        with patch("shackprop.solar.requests.get", return_value=json_response(payload)):
            assert solar.fetch_solar_flux() is None


class TestFetchKp:

    @patch("shackprop.solar.requests.get")
    def test_table_rows(self, mock_get):
        mock_get.return_value = json_response([
            ["time_tag", "Kp", "a_running", "station_count"],
            ["2024-03-20 09:00:00.000", "2.33", "9", "8"],
            ["2024-03-20 12:00:00.000", "3.67", "22", "8"],
        ])
        assert solar.fetch_kp() == 3.67

    @patch("shackprop.solar.requests.get")
    def test_object_rows(self, mock_get):
        mock_get.return_value = json_response([
            {"time_tag": "2024-03-20T09:00:00", "Kp": 2.0},
            {"time_tag": "2024-03-20T12:00:00", "Kp": 5.33},
        ])
        assert solar.fetch_kp() == 5.33

    @patch("shackprop.solar.requests.get")
    def test_kp_index_field(self, mock_get):
        mock_get.return_value = json_response([{"kp_index": 4}])
        assert solar.fetch_kp() == 4.0

    @patch("shackprop.solar.requests.get")
    def test_errors(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        assert solar.fetch_kp() is None
        mock_get.side_effect = None
        mock_get.return_value = json_response([["time_tag", "Kp"], ["2024-03-20", "n/a"]])
        assert solar.fetch_kp() is None


class TestSpaceWeather:

    def test_fetch_space_weather(self):
        with patch("shackprop.solar.fetch_solar_flux", return_value=120.0), \
                patch("shackprop.solar.fetch_kp", return_value=None):
            sample = solar.fetch_space_weather()
        assert sample.solar_flux == 120.0
        assert sample.k_index is None
        assert sample.fetched_at is not None

    def test_cached_within_ttl(self):
        clock = FakeClock()
        fetcher = Mock(return_value=SpaceWeatherSample(solar_flux=130.0, k_index=2.0))
        sw = solar.SpaceWeather(cache=TTLCache(clock=clock), ttl=60, fetcher=fetcher)

        assert sw.sample().solar_flux == 130.0
        clock.t += 59
        sw.sample()
        assert fetcher.call_count == 1

        clock.t += 1
        sw.sample()
        assert fetcher.call_count == 2

    def test_default_fetcher_is_module_function(self):
        sample = SpaceWeatherSample(solar_flux=99.0, k_index=1.0)
        with patch("shackprop.solar.fetch_space_weather", return_value=sample) as fetch:
            sw = solar.SpaceWeather(timeout=3)
            assert sw.sample() is sample
        fetch.assert_called_once_with(3)

    def test_concurrent_callers_share_one_fetch(self):
        calls = []

        def slow_fetch():
            calls.append(1)
            time.sleep(0.2)
            return SpaceWeatherSample(solar_flux=140.0, k_index=3.0)

        sw = solar.SpaceWeather(ttl=60, fetcher=slow_fetch)
        results = []
        threads = [threading.Thread(target=lambda: results.append(sw.sample())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len(results) == 8
        assert all(r.solar_flux == 140.0 for r in results)
