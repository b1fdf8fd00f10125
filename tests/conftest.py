"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from turbocast.fetch.variables import PRESSURE_LEVELS, level_key
from turbocast.models import (
    Coordinate,
    ForecastPoint,
    LevelReading,
    RouteConfig,
    UpperAirHour,
    UpperAirProfile,
    Waypoint,
)
from turbocast.severity import TurbulenceSeverity

# Calm column: identical westerly wind at every level, so no shear anywhere.
# hPa -> (wind_speed_kt, wind_direction_deg, temperature_c, geopotential_height_m)
CALM_COLUMN = {
    200: (40.0, 270.0, -56.0, 11800.0),
    250: (40.0, 270.0, -52.0, 10400.0),
    300: (40.0, 270.0, -44.0, 9200.0),
    400: (40.0, 270.0, -30.0, 7200.0),
    500: (40.0, 270.0, -18.0, 5600.0),
    700: (40.0, 270.0, -2.0, 3000.0),
}

# A 100 kt jet at 250 hPa above 40 kt at 300 hPa: 60 kt over 1200 m.
JET_COLUMN = {
    **CALM_COLUMN,
    200: (100.0, 270.0, -56.0, 11800.0),
    250: (100.0, 270.0, -52.0, 10400.0),
}


def make_payload(times: list[str], column: dict | None = None) -> dict:
    """Open-Meteo style JSON body with the same column repeated for every hour."""
    column = column or CALM_COLUMN
    hourly: dict[str, list] = {"time": list(times)}
    for hpa in PRESSURE_LEVELS:
        speed, direction, temp, height = column[hpa]
        hourly[level_key("wind_speed", hpa)] = [speed] * len(times)
        hourly[level_key("wind_direction", hpa)] = [direction] * len(times)
        hourly[level_key("temperature", hpa)] = [temp] * len(times)
        hourly[level_key("geopotential_height", hpa)] = [height] * len(times)
    return {"latitude": 50.0, "longitude": -30.0, "hourly": hourly}


def make_hour(time: datetime, column: dict | None = None) -> UpperAirHour:
    column = column or CALM_COLUMN
    levels = []
    for hpa, fl in PRESSURE_LEVELS.items():
        speed, direction, temp, height = column[hpa]
        levels.append(LevelReading(
            pressure_hpa=hpa,
            flight_level=fl,
            wind_speed_kt=speed,
            wind_direction_deg=direction,
            temperature_c=temp,
            geopotential_height_m=height,
        ))
    return UpperAirHour(time=time, levels=levels)


def make_point(
    time: datetime,
    flight_level: int = 340,
    severity: TurbulenceSeverity = TurbulenceSeverity.LIGHT,
    lat: float = 50.0,
    lon: float = -30.0,
) -> ForecastPoint:
    return ForecastPoint(
        lat=lat,
        lon=lon,
        flight_level=flight_level,
        forecast_time=time,
        severity=severity,
        probability=0.5,
        wind_shear=5.0,
        jet_stream_speed_kt=70.0,
    )


@pytest.fixture
def t0():
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def jet_profile(t0):
    """Two hours of upper air with a jet-level shear layer at FL340."""
    coord = Coordinate(lat=50.0, lon=-30.0)
    return UpperAirProfile(
        coordinate=coord,
        fetched_at=t0,
        hourly=[
            make_hour(t0, JET_COLUMN),
            make_hour(t0.replace(hour=13), JET_COLUMN),
        ],
    )


@pytest.fixture
def sample_route():
    """Transatlantic route with intermediate report anchors."""
    return RouteConfig(
        name="JFK to Heathrow",
        departure=Waypoint(icao="KJFK", name="New York JFK", lat=40.6413, lon=-73.7781),
        arrival=Waypoint(icao="EGLL", name="London Heathrow", lat=51.47, lon=-0.4543),
        report_anchors=["KJFK", "CYQX", "EGLL"],
    )


@pytest.fixture
def short_route():
    """Route along the equator, 10 degrees of longitude."""
    return RouteConfig(
        name="Equator test",
        departure=Waypoint(icao="AAAA", name="West", lat=0.0, lon=0.0),
        arrival=Waypoint(icao="BBBB", name="East", lat=0.0, lon=10.0),
    )
