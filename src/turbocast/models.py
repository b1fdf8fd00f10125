"""Pydantic v2 models for turbocast."""

from __future__ import annotations

import uuid
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from turbocast.severity import TurbulenceSeverity, parse_severity, worst_severity

NM_TO_M = 1852.0


def _new_id() -> str:
    return uuid.uuid4().hex


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, matching the provider's naive timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Coordinate(BaseModel):
    """A latitude/longitude sample point in degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class Waypoint(BaseModel):
    """An aviation waypoint with coordinates."""

    icao: str
    name: str
    lat: float
    lon: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)


class RouteConfig(BaseModel):
    """A named departure/arrival pair loaded from config."""

    name: str
    departure: Waypoint
    arrival: Waypoint
    report_anchors: list[str] = Field(default_factory=list)
    forecast_days: int = Field(default=3, ge=1, le=14)

    @property
    def anchors(self) -> list[str]:
        """ICAO stations to query for reports; endpoints when none configured."""
        return self.report_anchors or [self.departure.icao, self.arrival.icao]


# --- Upper-air data ---


class LevelReading(BaseModel):
    """Upper-air values at one pressure level for one time step."""

    pressure_hpa: int
    flight_level: int
    wind_speed_kt: Optional[float] = None
    wind_direction_deg: Optional[float] = None
    temperature_c: Optional[float] = None
    geopotential_height_m: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.wind_speed_kt is not None
            and self.wind_direction_deg is not None
            and self.temperature_c is not None
            and self.geopotential_height_m is not None
        )


class UpperAirHour(BaseModel):
    """All pressure levels at one point for one hour."""

    time: datetime
    levels: list[LevelReading] = Field(default_factory=list)

    def level_at(self, pressure_hpa: int) -> Optional[LevelReading]:
        """Get data at a specific pressure level."""
        for lvl in self.levels:
            if lvl.pressure_hpa == pressure_hpa:
                return lvl
        return None


class UpperAirProfile(BaseModel):
    """Hourly upper-air series for one sample point."""

    coordinate: Coordinate
    fetched_at: datetime
    hourly: list[UpperAirHour] = Field(default_factory=list)


# --- Forecast output ---


class TurbulenceType(str, Enum):
    """Turbulence mechanism."""

    CAT = "CAT"
    CONVECTIVE = "CONV"
    MOUNTAIN_WAVE = "MWT"
    COMBINED = "ALL"


class ForecastPoint(BaseModel):
    """One graded turbulence forecast at a point, level and hour.

    Two points are equal only when they share the same synthetic id.
    """

    id: str = Field(default_factory=_new_id)
    lat: float
    lon: float
    flight_level: int
    forecast_time: datetime
    severity: TurbulenceSeverity
    probability: float = Field(ge=0.0, le=1.0)
    wind_shear: float  # kt per 1000 ft, before jet amplification
    jet_stream_speed_kt: float
    type: TurbulenceType = TurbulenceType.CAT

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ForecastPoint):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)

    @property
    def altitude_ft(self) -> int:
        return self.flight_level * 100


class ForecastLayer(BaseModel):
    """All forecast points sharing one valid time and flight level."""

    id: str = Field(default_factory=_new_id)
    valid_time: datetime
    flight_level: int
    points: list[ForecastPoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_points(self) -> ForecastLayer:
        for p in self.points:
            if p.forecast_time != self.valid_time or p.flight_level != self.flight_level:
                raise ValueError(
                    f"Point at FL{p.flight_level} {p.forecast_time.isoformat()} does not "
                    f"belong in layer FL{self.flight_level} {self.valid_time.isoformat()}"
                )
        return self

    @property
    def severity_summary(self) -> dict[TurbulenceSeverity, int]:
        return dict(Counter(p.severity for p in self.points))


class DailySummary(BaseModel):
    """Worst severity and point count for one calendar day."""

    day: date
    worst: TurbulenceSeverity
    count: int


class TurbulenceForecast(BaseModel):
    """A complete forecast: layers sorted ascending by valid time."""

    id: str = Field(default_factory=_new_id)
    generated_at: datetime
    layers: list[ForecastLayer] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> TurbulenceForecast:
        return cls(generated_at=datetime.now(timezone.utc), layers=[])

    @property
    def all_points(self) -> list[ForecastPoint]:
        return [p for layer in self.layers for p in layer.points]

    @property
    def forecast_horizon_hours(self) -> int:
        """Whole hours from generation to the latest layer, 0 when empty."""
        if not self.layers:
            return 0
        last = max(layer.valid_time for layer in self.layers)
        delta = _as_utc(last) - _as_utc(self.generated_at)
        return int(delta.total_seconds() / 3600)

    @property
    def worst_severity(self) -> TurbulenceSeverity:
        return worst_severity(p.severity for p in self.all_points)

    def layers_for_level(self, flight_level: int) -> list[ForecastLayer]:
        return [layer for layer in self.layers if layer.flight_level == flight_level]

    def layers_at(
        self, at: datetime, tolerance: timedelta = timedelta(hours=1)
    ) -> list[ForecastLayer]:
        """Layers whose valid time lies within ``tolerance`` of ``at`` (inclusive)."""
        target = _as_utc(at)
        return [
            layer for layer in self.layers
            if abs(_as_utc(layer.valid_time) - target) <= tolerance
        ]

    def points_along_route(
        self,
        start: Coordinate,
        end: Coordinate,
        corridor_nm: float = 100.0,
    ) -> list[ForecastPoint]:
        """Points within ``corridor_nm`` of the straight segment start→end."""
        from turbocast.analysis.corridor import is_within_corridor

        corridor_m = corridor_nm * NM_TO_M
        return [
            p for p in self.all_points
            if is_within_corridor(p.coordinate, start, end, corridor_m)
        ]

    def daily_summary(self, tz: tzinfo = timezone.utc) -> list[DailySummary]:
        """Group points by calendar day of their forecast time in ``tz``."""
        by_day: dict[date, list[ForecastPoint]] = defaultdict(list)
        for p in self.all_points:
            by_day[_as_utc(p.forecast_time).astimezone(tz).date()].append(p)

        return [
            DailySummary(
                day=day,
                worst=worst_severity(p.severity for p in points),
                count=len(points),
            )
            for day, points in sorted(by_day.items())
        ]


# --- Observations ---


class TurbulenceLayerReport(BaseModel):
    """One reported turbulence intensity with its vertical extent."""

    intensity: Optional[str] = None
    base_ft: Optional[int] = None
    top_ft: Optional[int] = None

    @property
    def severity(self) -> TurbulenceSeverity:
        return parse_severity(self.intensity)


class PilotReport(BaseModel):
    """A pilot report (PIREP) of observed turbulence."""

    id: str = Field(default_factory=_new_id)
    receipt_time: Optional[datetime] = None
    observation_time: Optional[datetime] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    flight_level: Optional[int] = None
    aircraft_type: Optional[str] = None
    turbulence: list[TurbulenceLayerReport] = Field(default_factory=list, max_length=2)
    icing_intensity: Optional[str] = None
    raw_text: Optional[str] = None
    report_type: Optional[str] = None  # UA (routine) or UUA (urgent)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PilotReport):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def coordinate(self) -> Optional[Coordinate]:
        """Report location, or None when missing or out of range."""
        if self.lat is None or self.lon is None:
            return None
        if not (-90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0):
            return None
        return Coordinate(lat=self.lat, lon=self.lon)

    @property
    def severity(self) -> TurbulenceSeverity:
        """Worse of the reported turbulence intensities."""
        return worst_severity(t.severity for t in self.turbulence)

    @property
    def altitude_ft(self) -> Optional[int]:
        if self.flight_level is None:
            return None
        return self.flight_level * 100


class HazardPolygon(BaseModel):
    """A SIGMET/AIRMET hazard area with its validity window."""

    id: str = Field(default_factory=_new_id)
    hazard: Optional[str] = None
    qualifier: Optional[str] = None
    vertices: list[Coordinate] = Field(min_length=3)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    base_ft: Optional[int] = None
    top_ft: Optional[int] = None
    raw_text: Optional[str] = None

    @property
    def severity(self) -> TurbulenceSeverity:
        qualified = parse_severity(self.qualifier)
        if qualified != TurbulenceSeverity.NONE:
            return qualified
        return parse_severity(self.hazard)

    @property
    def is_turbulence(self) -> bool:
        return bool(self.hazard) and "TURB" in self.hazard.upper()

    def is_active(self, at: datetime) -> bool:
        """True if ``at`` falls inside the validity window (open ends allowed)."""
        at = _as_utc(at)
        if self.valid_from is not None and at < _as_utc(self.valid_from):
            return False
        if self.valid_to is not None and at > _as_utc(self.valid_to):
            return False
        return True

    def contains(self, point: Coordinate) -> bool:
        """Ray-casting point-in-polygon test in lat/lon space."""
        inside = False
        n = len(self.vertices)
        j = n - 1
        for i in range(n):
            yi, xi = self.vertices[i].lat, self.vertices[i].lon
            yj, xj = self.vertices[j].lat, self.vertices[j].lon
            if (yi > point.lat) != (yj > point.lat):
                x_cross = (xj - xi) * (point.lat - yi) / (yj - yi) + xi
                if point.lon < x_cross:
                    inside = not inside
            j = i
        return inside
