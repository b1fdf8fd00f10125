"""Tests for the Open-Meteo upper-air client with mocked HTTP."""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses
from conftest import JET_COLUMN, make_payload

from turbocast.errors import DecodeFailure, UpstreamUnavailable
from turbocast.fetch.open_meteo import DEFAULT_BASE_URL, OpenMeteoClient, parse_upper_air
from turbocast.fetch.variables import build_hourly_params, parse_level_key
from turbocast.models import Coordinate

COORD = Coordinate(lat=50.0, lon=-30.0)
TIMES = ["2026-03-10T12:00", "2026-03-10T13:00"]


class TestVariables:
    def test_hourly_params_cover_all_levels(self):
        params = build_hourly_params().split(",")
        assert len(params) == 24
        assert "wind_speed_250hPa" in params
        assert "geopotential_height_700hPa" in params

    def test_parse_level_key(self):
        assert parse_level_key("wind_direction_300hPa") == ("wind_direction", 300)
        assert parse_level_key("temperature_850hPa") is None
        assert parse_level_key("cloud_cover_250hPa") is None
        assert parse_level_key("temperature_2m") is None


@responses.activate
def test_fetch_upper_air_parses_response():
    responses.add(responses.GET, DEFAULT_BASE_URL, json=make_payload(TIMES, JET_COLUMN), status=200)

    profile = OpenMeteoClient().fetch_upper_air(COORD, days=3)

    assert profile.coordinate == COORD
    assert len(profile.hourly) == 2
    hour = profile.hourly[0]
    assert hour.time == datetime(2026, 3, 10, 12, tzinfo=timezone.utc)
    assert [l.pressure_hpa for l in hour.levels] == [200, 250, 300, 400, 500, 700]

    jet = hour.level_at(250)
    assert jet.flight_level == 340
    assert jet.wind_speed_kt == 100.0
    assert jet.wind_direction_deg == 270.0
    assert jet.geopotential_height_m == 10400.0
    assert jet.is_complete


@responses.activate
def test_fetch_upper_air_request_params():
    responses.add(responses.GET, DEFAULT_BASE_URL, json=make_payload(TIMES), status=200)

    OpenMeteoClient().fetch_upper_air(COORD, days=5)

    query = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert query["latitude"] == ["50.0"]
    assert query["longitude"] == ["-30.0"]
    assert query["forecast_days"] == ["5"]
    assert query["wind_speed_unit"] == ["kn"]
    assert query["timezone"] == ["UTC"]
    assert "wind_speed_200hPa" in query["hourly"][0]


@responses.activate
def test_no_content_is_empty_series():
    responses.add(responses.GET, DEFAULT_BASE_URL, status=204)

    profile = OpenMeteoClient().fetch_upper_air(Coordinate(lat=0.0, lon=0.0), days=1)

    assert profile.hourly == []
    assert profile.coordinate == Coordinate(lat=0.0, lon=0.0)


@responses.activate
def test_empty_body_is_empty_series():
    responses.add(responses.GET, DEFAULT_BASE_URL, body="", status=200)

    assert OpenMeteoClient().fetch_upper_air(COORD, days=1).hourly == []


@responses.activate
def test_server_error_is_upstream_unavailable():
    responses.add(responses.GET, DEFAULT_BASE_URL, status=500)

    with pytest.raises(UpstreamUnavailable) as excinfo:
        OpenMeteoClient().fetch_upper_air(COORD, days=1)
    assert excinfo.value.status_code == 500


@responses.activate
def test_connection_error_is_upstream_unavailable():
    responses.add(responses.GET, DEFAULT_BASE_URL, body=requests.ConnectionError("refused"))

    with pytest.raises(UpstreamUnavailable):
        OpenMeteoClient().fetch_upper_air(COORD, days=1)


@responses.activate
def test_invalid_json_is_decode_failure():
    responses.add(responses.GET, DEFAULT_BASE_URL, body="<html>oops</html>", status=200)

    with pytest.raises(DecodeFailure):
        OpenMeteoClient().fetch_upper_air(COORD, days=1)


class TestParseUpperAir:
    def test_missing_parameters_are_none(self):
        payload = {"hourly": {
            "time": TIMES,
            "wind_speed_250hPa": [80.0, 82.0],
            "wind_direction_250hPa": [260.0, None],
        }}
        profile = parse_upper_air(payload, COORD)
        first = profile.hourly[0].level_at(250)
        assert first.wind_speed_kt == 80.0
        assert first.temperature_c is None
        assert not first.is_complete
        assert profile.hourly[1].level_at(250).wind_direction_deg is None
        assert profile.hourly[0].level_at(500).wind_speed_kt is None

    def test_short_arrays_are_none(self):
        payload = {"hourly": {"time": TIMES, "wind_speed_300hPa": [55.0]}}
        profile = parse_upper_air(payload, COORD)
        assert profile.hourly[0].level_at(300).wind_speed_kt == 55.0
        assert profile.hourly[1].level_at(300).wind_speed_kt is None

    def test_unknown_keys_ignored(self):
        payload = make_payload(TIMES)
        payload["hourly"]["temperature_2m"] = [10.0, 11.0]
        profile = parse_upper_air(payload, COORD)
        assert len(profile.hourly) == 2

    def test_no_hourly_block_is_empty(self):
        assert parse_upper_air({"latitude": 50.0}, COORD).hourly == []

    def test_bad_timestamp_skipped(self):
        payload = make_payload(["not-a-time", "2026-03-10T13:00"])
        profile = parse_upper_air(payload, COORD)
        assert [h.time.hour for h in profile.hourly] == [13]

    @pytest.mark.parametrize("payload", [
        [],
        {"hourly": []},
        {"hourly": {"time": "2026-03-10T12:00"}},
        {"hourly": {"time": TIMES, "wind_speed_250hPa": 80.0}},
    ])
    def test_bad_shape_is_decode_failure(self, payload):
        with pytest.raises(DecodeFailure):
            parse_upper_air(payload, COORD)
