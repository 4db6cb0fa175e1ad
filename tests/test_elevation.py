#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "requests",
#   "pytest",
# ]
# ///
"""Test elevation profile sampling and the line-of-sight check."""

from unittest.mock import Mock, patch

import requests

from shackprop.elevation import ElevationClient, build_profile, line_of_sight, sample_path
from shackprop.models import GeoPoint

ORIGIN = GeoPoint(50.0, 8.0)
DEST = GeoPoint(50.0, 8.5)


def results(elevations):
    n = len(elevations) - 1
    return [
        {"latitude": 50.0, "longitude": 8.0 + 0.5 * i / n, "elevation": e}
        for i, e in enumerate(elevations)
    ]


class TestSamplePath:

    def test_endpoints_included(self):
        points = sample_path(ORIGIN, DEST, 48)
        assert len(points) == 49
        assert points[0] == ORIGIN
        assert points[-1] == DEST


class TestProfile:

    def test_build_profile(self):
        profile = build_profile(results([100, 250, None, 120]))
        assert profile["minElevation"] == 100
        assert profile["maxElevation"] == 250
        assert profile["samples"][0]["distKm"] == 0.0
        assert 35 < profile["samples"][-1]["distKm"] < 36

    def test_empty(self):
        assert build_profile([]) is None

    def test_non_dict_rows_skipped(self):
        assert build_profile([None, None]) is None
        profile = build_profile([None] + results([100, 200]))
        assert profile["maxElevation"] == 200

    def test_clear_path(self):
        assert line_of_sight(build_profile(results([100, 110, 120, 130, 140]))) == (True, None)

    def test_obstructed(self):
        clear, at_km = line_of_sight(build_profile(results([100, 110, 400, 130, 140])))
        assert clear is False
        assert 17 < at_km < 18.5

    def test_margin(self):
        # 14 m over the straight line is inside the default 15 m margin
        assert line_of_sight(build_profile(results([100, 114, 100])))[0] is True
        assert line_of_sight(build_profile(results([100, 116, 100])))[0] is False

    def test_no_profile_counts_as_clear(self):
        assert line_of_sight(None) == (True, None)
        assert line_of_sight({"samples": []}) == (True, None)


class TestElevationClient:

    @patch("shackprop.elevation.requests.get")
    def test_profile(self, mock_get):
        resp = Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = {"results": results([100, 200, 150])}
        mock_get.return_value = resp

        profile = ElevationClient(samples=2).profile(ORIGIN, DEST)
        assert profile["maxElevation"] == 200
        locations = mock_get.call_args.kwargs["params"]["locations"]
        assert locations.count("|") == 2

    @patch("shackprop.elevation.requests.get")
    def test_failure_gives_none(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")
        assert ElevationClient().profile(ORIGIN, DEST) is None

    @patch("shackprop.elevation.requests.get")
    def test_unexpected_payload(self, mock_get):
        resp = Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = {"error": "rate limited"}
        mock_get.return_value = resp
        assert ElevationClient().profile(ORIGIN, DEST) is None

    @patch("shackprop.elevation.requests.get")
    def test_null_rows(self, mock_get):
        resp = Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = {"results": [None, None]}
        mock_get.return_value = resp
        assert ElevationClient().profile(ORIGIN, DEST) is None
