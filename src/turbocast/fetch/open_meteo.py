"""Open-Meteo client for hourly upper-air winds and temperatures."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import requests

from turbocast.errors import DecodeFailure, UpstreamUnavailable
from turbocast.fetch.variables import (
    LEVEL_PARAMETERS,
    PRESSURE_LEVELS,
    build_hourly_params,
    parse_level_key,
)
from turbocast.models import Coordinate, LevelReading, UpperAirHour, UpperAirProfile

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.open-meteo.com/v1/forecast"

# Provider parameter -> LevelReading field
_READING_FIELDS = dict(zip(LEVEL_PARAMETERS, [
    "wind_speed_kt",
    "wind_direction_deg",
    "temperature_c",
    "geopotential_height_m",
]))


class OpenMeteoClient:
    """Client for fetching pressure-level forecasts from the Open-Meteo API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_upper_air(self, coordinate: Coordinate, days: int) -> UpperAirProfile:
        """Fetch the hourly upper-air series for one point.

        Raises:
            UpstreamUnavailable: Transport error or non-success status.
            DecodeFailure: The response body is not a usable payload.

        A 204 or an empty body is an empty series, not an error.
        """
        params = {
            "latitude": coordinate.lat,
            "longitude": coordinate.lon,
            "hourly": build_hourly_params(),
            "forecast_days": days,
            "wind_speed_unit": "kn",
            "timezone": "UTC",
        }

        logger.debug("Fetching upper air for %.3f,%.3f (%d days)", coordinate.lat, coordinate.lon, days)

        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise UpstreamUnavailable(
                f"Open-Meteo returned {exc.response.status_code} for "
                f"{coordinate.lat:.3f},{coordinate.lon:.3f}",
                status_code=exc.response.status_code,
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"Open-Meteo request failed: {exc}") from exc

        if resp.status_code == 204 or not resp.content.strip():
            logger.debug("No upper-air data for %.3f,%.3f", coordinate.lat, coordinate.lon)
            return UpperAirProfile(
                coordinate=coordinate,
                fetched_at=datetime.now(timezone.utc),
                hourly=[],
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise DecodeFailure("Open-Meteo response is not valid JSON") from exc

        return parse_upper_air(payload, coordinate)


def _level_table(hourly: dict) -> dict[tuple[str, int], list]:
    """Index per-level arrays by ``(parameter, pressure_hpa)``."""
    table: dict[tuple[str, int], list] = {}
    for key, values in hourly.items():
        if key == "time":
            continue
        parsed = parse_level_key(key)
        if parsed is None:
            logger.debug("Ignoring unexpected hourly key %s", key)
            continue
        if not isinstance(values, list):
            raise DecodeFailure(f"Hourly values for {key} are not a list")
        table[parsed] = values
    return table


def _parse_time(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_upper_air(payload: object, coordinate: Coordinate) -> UpperAirProfile:
    """Turn an Open-Meteo JSON payload into an UpperAirProfile.

    Missing parameters, short arrays and nulls all become ``None`` readings.
    A payload without an ``hourly`` block is an empty series.
    """
    if not isinstance(payload, dict):
        raise DecodeFailure("Open-Meteo payload is not a JSON object")

    hourly = payload.get("hourly")
    if hourly is None:
        hourly = {}
    if not isinstance(hourly, dict):
        raise DecodeFailure("Open-Meteo 'hourly' block is not an object")
    timestamps = hourly.get("time", [])
    if not isinstance(timestamps, list):
        raise DecodeFailure("Open-Meteo 'hourly.time' is not a list")

    table = _level_table(hourly)

    def get(param: str, level: int, idx: int) -> float | None:
        arr = table.get((param, level))
        if arr is None or idx >= len(arr):
            return None
        value = arr[idx]
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    hours: list[UpperAirHour] = []
    for idx, raw_time in enumerate(timestamps):
        ts = _parse_time(raw_time)
        if ts is None:
            logger.debug("Skipping unparseable timestamp %r", raw_time)
            continue

        levels = [
            LevelReading(
                pressure_hpa=level,
                flight_level=fl,
                **{
                    field: get(param, level, idx)
                    for param, field in _READING_FIELDS.items()
                },
            )
            for level, fl in PRESSURE_LEVELS.items()
        ]
        hours.append(UpperAirHour(time=ts, levels=levels))

    return UpperAirProfile(
        coordinate=coordinate,
        fetched_at=datetime.now(timezone.utc),
        hourly=hours,
    )
