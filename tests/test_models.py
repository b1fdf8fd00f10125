"""Tests for forecast, report and hazard models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_point
from pydantic import ValidationError

from turbocast.analysis.layers import assemble_forecast, build_layers
from turbocast.models import (
    Coordinate,
    ForecastLayer,
    HazardPolygon,
    PilotReport,
    RouteConfig,
    TurbulenceForecast,
    TurbulenceLayerReport,
    Waypoint,
)
from turbocast.severity import TurbulenceSeverity

S = TurbulenceSeverity


class TestCoordinate:
    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            Coordinate(lat=91.0, lon=0.0)
        with pytest.raises(ValidationError):
            Coordinate(lat=0.0, lon=-180.5)

    def test_bounds_accepted(self):
        c = Coordinate(lat=-90.0, lon=180.0)
        assert c.lat == -90.0


class TestRouteConfig:
    def test_anchors_default_to_endpoints(self):
        route = RouteConfig(
            name="x",
            departure=Waypoint(icao="LEBL", name="Barcelona", lat=41.3, lon=2.08),
            arrival=Waypoint(icao="LEMD", name="Madrid", lat=40.5, lon=-3.57),
        )
        assert route.anchors == ["LEBL", "LEMD"]

    def test_configured_anchors(self, sample_route):
        assert sample_route.anchors == ["KJFK", "CYQX", "EGLL"]

    def test_forecast_days_range(self, sample_route):
        with pytest.raises(ValidationError):
            RouteConfig(
                name="x",
                departure=sample_route.departure,
                arrival=sample_route.arrival,
                forecast_days=15,
            )


class TestForecastPoint:
    def test_identity_equality(self, t0):
        a = make_point(t0)
        b = a.model_copy(update={"id": "other"})
        assert a != b
        assert a == a.model_copy()
        assert len({a, b}) == 2

    def test_altitude(self, t0):
        assert make_point(t0, flight_level=340).altitude_ft == 34000


class TestForecastLayer:
    def test_rejects_foreign_point(self, t0):
        with pytest.raises(ValidationError):
            ForecastLayer(
                valid_time=t0,
                flight_level=340,
                points=[make_point(t0, flight_level=300)],
            )
        with pytest.raises(ValidationError):
            ForecastLayer(
                valid_time=t0,
                flight_level=340,
                points=[make_point(t0 + timedelta(hours=1))],
            )

    def test_severity_summary(self, t0):
        layer = ForecastLayer(valid_time=t0, flight_level=340, points=[
            make_point(t0, severity=S.LIGHT),
            make_point(t0, severity=S.LIGHT),
            make_point(t0, severity=S.SEVERE),
        ])
        assert layer.severity_summary == {S.LIGHT: 2, S.SEVERE: 1}


class TestBuildLayers:
    def test_groups_by_time_and_level(self, t0):
        t1 = t0 + timedelta(hours=1)
        points = [
            make_point(t1, 300),
            make_point(t0, 340),
            make_point(t0, 300),
            make_point(t0, 340, lon=-20.0),
        ]
        layers = build_layers(points)
        keys = [(l.valid_time, l.flight_level) for l in layers]
        assert keys == [(t0, 300), (t0, 340), (t1, 300)]
        assert len(layers[1].points) == 2

    def test_order_independent_of_input(self, t0):
        points = [make_point(t0 + timedelta(hours=h), fl) for h in (2, 0, 1) for fl in (390, 180)]
        forward = [(l.valid_time, l.flight_level) for l in build_layers(points)]
        backward = [(l.valid_time, l.flight_level) for l in build_layers(points[::-1])]
        assert forward == backward

    def test_empty(self):
        forecast = assemble_forecast([])
        assert forecast.layers == []


class TestTurbulenceForecast:
    def test_empty_forecast(self):
        forecast = TurbulenceForecast.empty()
        assert forecast.all_points == []
        assert forecast.forecast_horizon_hours == 0
        assert forecast.worst_severity == S.NONE
        assert forecast.daily_summary() == []

    def test_horizon_uses_latest_layer(self, t0):
        points = [make_point(t0 + timedelta(hours=h)) for h in (3, 30, 12)]
        forecast = assemble_forecast(points, generated_at=t0)
        assert forecast.forecast_horizon_hours == 30

    def test_horizon_truncates(self, t0):
        forecast = assemble_forecast([make_point(t0 + timedelta(minutes=150))], generated_at=t0)
        assert forecast.forecast_horizon_hours == 2

    def test_worst_severity(self, t0):
        forecast = assemble_forecast([
            make_point(t0, severity=S.LIGHT),
            make_point(t0, 300, severity=S.SEVERE),
            make_point(t0, 240, severity=S.MODERATE),
        ])
        assert forecast.worst_severity == S.SEVERE

    def test_layers_for_level(self, t0):
        forecast = assemble_forecast([
            make_point(t0, 340),
            make_point(t0 + timedelta(hours=1), 340),
            make_point(t0, 300),
        ])
        assert len(forecast.layers_for_level(340)) == 2
        assert forecast.layers_for_level(100) == []

    def test_layers_at_tolerance_inclusive(self, t0):
        forecast = assemble_forecast([
            make_point(t0),
            make_point(t0 + timedelta(hours=1)),
            make_point(t0 + timedelta(hours=2)),
        ])
        layers = forecast.layers_at(t0 + timedelta(minutes=60))
        assert [l.valid_time for l in layers] == [
            t0, t0 + timedelta(hours=1), t0 + timedelta(hours=2),
        ]
        narrow = forecast.layers_at(t0, tolerance=timedelta(minutes=30))
        assert [l.valid_time for l in narrow] == [t0]

    def test_daily_summary_splits_at_midnight(self):
        late = datetime(2026, 3, 10, 23, 59, tzinfo=timezone.utc)
        early = datetime(2026, 3, 11, 0, 1, tzinfo=timezone.utc)
        forecast = assemble_forecast([
            make_point(late, severity=S.MODERATE),
            make_point(late, 300, severity=S.LIGHT),
            make_point(early, severity=S.SEVERE),
        ])
        summary = forecast.daily_summary()
        assert [d.day.isoformat() for d in summary] == ["2026-03-10", "2026-03-11"]
        assert summary[0].worst == S.MODERATE
        assert summary[0].count == 2
        assert summary[1].worst == S.SEVERE
        assert summary[1].count == 1

    def test_daily_summary_in_other_timezone(self):
        late = datetime(2026, 3, 10, 23, 59, tzinfo=timezone.utc)
        early = datetime(2026, 3, 11, 0, 1, tzinfo=timezone.utc)
        forecast = assemble_forecast([make_point(late), make_point(early)])
        summary = forecast.daily_summary(tz=timezone(timedelta(hours=2)))
        assert len(summary) == 1
        assert summary[0].count == 2

    def test_points_along_route(self, t0):
        forecast = assemble_forecast([
            make_point(t0, lat=0.5, lon=5.0),
            make_point(t0, 300, lat=5.0, lon=5.0),
        ])
        start = Coordinate(lat=0.0, lon=0.0)
        end = Coordinate(lat=0.0, lon=10.0)
        kept = forecast.points_along_route(start, end, corridor_nm=100)
        assert [(p.lat, p.lon) for p in kept] == [(0.5, 5.0)]


class TestPilotReport:
    def test_light_and_severe_layers(self):
        report = PilotReport(turbulence=[
            TurbulenceLayerReport(intensity="LGT"),
            TurbulenceLayerReport(intensity="SEV"),
        ])
        assert report.severity == S.SEVERE

    def test_severity_is_worst_layer(self):
        report = PilotReport(turbulence=[
            TurbulenceLayerReport(intensity="LGT"),
            TurbulenceLayerReport(intensity="MOD-SEV"),
        ])
        assert report.severity == S.SEVERE

    def test_at_most_two_layers(self):
        with pytest.raises(ValidationError):
            PilotReport(turbulence=[TurbulenceLayerReport(intensity="LGT")] * 3)

    def test_coordinate_missing_or_invalid(self):
        assert PilotReport(lat=None, lon=10.0).coordinate is None
        assert PilotReport(lat=95.0, lon=10.0).coordinate is None
        assert PilotReport(lat=45.0, lon=10.0).coordinate == Coordinate(lat=45.0, lon=10.0)

    def test_equality_by_id(self):
        a = PilotReport(raw_text="UA /OV ABC")
        b = PilotReport(raw_text="UA /OV ABC")
        assert a != b


class TestHazardPolygon:
    @pytest.fixture
    def square(self):
        return HazardPolygon(
            hazard="TURB",
            qualifier="MOD",
            vertices=[
                Coordinate(lat=0.0, lon=0.0),
                Coordinate(lat=0.0, lon=10.0),
                Coordinate(lat=10.0, lon=10.0),
                Coordinate(lat=10.0, lon=0.0),
            ],
            valid_from=datetime(2026, 3, 10, 12, tzinfo=timezone.utc),
            valid_to=datetime(2026, 3, 10, 18, tzinfo=timezone.utc),
        )

    def test_needs_three_vertices(self):
        with pytest.raises(ValidationError):
            HazardPolygon(hazard="TURB", vertices=[
                Coordinate(lat=0.0, lon=0.0), Coordinate(lat=1.0, lon=1.0),
            ])

    def test_contains(self, square):
        assert square.contains(Coordinate(lat=5.0, lon=5.0))
        assert not square.contains(Coordinate(lat=15.0, lon=5.0))
        assert not square.contains(Coordinate(lat=5.0, lon=-1.0))

    def test_is_active(self, square):
        assert square.is_active(datetime(2026, 3, 10, 12, tzinfo=timezone.utc))
        assert square.is_active(datetime(2026, 3, 10, 15, tzinfo=timezone.utc))
        assert not square.is_active(datetime(2026, 3, 10, 19, tzinfo=timezone.utc))
        open_ended = square.model_copy(update={"valid_to": None})
        assert open_ended.is_active(datetime(2030, 1, 1, tzinfo=timezone.utc))

    def test_severity_qualifier_then_hazard(self, square):
        assert square.severity == S.MODERATE
        fallback = square.model_copy(update={"qualifier": None, "hazard": "SEV TURB"})
        assert fallback.severity == S.SEVERE

    def test_is_turbulence(self, square):
        assert square.is_turbulence
        assert not square.model_copy(update={"hazard": "ICE"}).is_turbulence
        assert not square.model_copy(update={"hazard": None}).is_turbulence
