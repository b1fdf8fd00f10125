"""Forecast and report pipelines, shared by the CLI and any embedding caller.

Orchestrates: sample → fetch (one task per point/anchor) → shear/classify →
assemble. Returns structured results without printing or exiting.

Each task computes only from its own response; results are merged in a
single step after every task has finished. A failed task contributes
nothing; only a batch in which every task failed is raised to the caller.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from turbocast.analysis.corridor import (
    filter_hazards_along_route,
    filter_hazards_by_altitude,
    filter_reports_along_route,
    filter_reports_by_altitude,
)
from turbocast.analysis.dedup import deduplicate_reports
from turbocast.analysis.layers import assemble_forecast
from turbocast.analysis.turbulence import compute_turbulence
from turbocast.config import Settings
from turbocast.errors import DecodeFailure, InvalidRequest, UpstreamUnavailable
from turbocast.fetch.aviation_weather import AviationWeatherClient
from turbocast.fetch.open_meteo import OpenMeteoClient
from turbocast.fetch.route_points import grid_samples, route_samples
from turbocast.models import (
    Coordinate,
    ForecastPoint,
    HazardPolygon,
    PilotReport,
    RouteConfig,
    TurbulenceForecast,
    UpperAirProfile,
)

logger = logging.getLogger(__name__)

MIN_FORECAST_DAYS = 1
MAX_FORECAST_DAYS = 14


@runtime_checkable
class UpperAirSource(Protocol):
    """Anything that can supply an upper-air series for one point."""

    def fetch_upper_air(self, coordinate: Coordinate, days: int) -> UpperAirProfile: ...


@dataclass
class ForecastOptions:
    """Clients and limits used by the pipelines."""

    settings: Settings = field(default_factory=Settings)
    upper_air_client: UpperAirSource | None = None
    report_client: AviationWeatherClient | None = None
    max_workers: int | None = None

    @property
    def workers(self) -> int:
        return self.max_workers or self.settings.max_workers

    def upper_air(self) -> UpperAirSource:
        if self.upper_air_client is None:
            self.upper_air_client = OpenMeteoClient(
                base_url=self.settings.open_meteo_url,
                timeout=self.settings.timeout_seconds,
            )
        return self.upper_air_client

    def reports(self) -> AviationWeatherClient:
        if self.report_client is None:
            self.report_client = AviationWeatherClient(
                base_url=self.settings.aviation_weather_url,
                timeout=self.settings.timeout_seconds,
            )
        return self.report_client


@dataclass
class RouteReports:
    """Merged observations from one report batch."""

    pireps: list[PilotReport] = field(default_factory=list)
    hazards: list[HazardPolygon] = field(default_factory=list)
    failed_anchors: list[str] = field(default_factory=list)
    failed_hazard_sources: list[str] = field(default_factory=list)

    @property
    def hazards_failed(self) -> bool:
        return bool(self.failed_hazard_sources)


def make_coordinate(lat: float, lon: float) -> Coordinate:
    """Build a Coordinate, reporting out-of-range values as InvalidRequest."""
    try:
        return Coordinate(lat=lat, lon=lon)
    except ValidationError as exc:
        raise InvalidRequest(f"Invalid coordinate {lat},{lon}") from exc


def _validate_days(days: int) -> None:
    if not MIN_FORECAST_DAYS <= days <= MAX_FORECAST_DAYS:
        raise InvalidRequest(
            f"Forecast days must be between {MIN_FORECAST_DAYS} and {MAX_FORECAST_DAYS}, got {days}"
        )


def _batch_failure(what: str, failures: list[Exception]) -> Exception:
    """Pick the error kind for a batch in which every task failed."""
    message = f"All {len(failures)} {what} fetches failed"
    if all(isinstance(f, DecodeFailure) for f in failures):
        return DecodeFailure(message)
    return UpstreamUnavailable(message)


def forecast_for_points(
    points: list[Coordinate],
    days: int,
    client: UpperAirSource,
    max_workers: int = 8,
) -> list[ForecastPoint]:
    """Fetch and classify every sample point concurrently, one task per point."""
    if not points:
        return []

    def _fetch_one(coord: Coordinate) -> list[ForecastPoint]:
        profile = client.fetch_upper_air(coord, days)
        return compute_turbulence(profile)

    batches: list[list[ForecastPoint]] = []
    failures: list[Exception] = []

    with ThreadPoolExecutor(max_workers=min(max_workers, len(points))) as pool:
        futures = {pool.submit(_fetch_one, c): c for c in points}
        for future in as_completed(futures):
            coord = futures[future]
            try:
                batches.append(future.result())
            except Exception as exc:
                logger.warning(
                    "Upper-air fetch failed for %.3f,%.3f", coord.lat, coord.lon,
                    exc_info=True,
                )
                failures.append(exc)

    if len(failures) == len(points):
        raise _batch_failure("upper-air", failures) from failures[0]

    merged = [p for batch in batches for p in batch]
    logger.info(
        "Upper air: %d/%d points fetched, %d turbulence points",
        len(batches), len(points), len(merged),
    )
    return merged


def _run_forecast(
    samples: list[Coordinate], days: int, options: ForecastOptions
) -> TurbulenceForecast:
    points = forecast_for_points(samples, days, options.upper_air(), options.workers)
    return assemble_forecast(points)


def fetch_route_forecast(
    departure: Coordinate,
    arrival: Coordinate,
    days: int = 3,
    spacing_deg: float | None = None,
    options: ForecastOptions | None = None,
) -> TurbulenceForecast:
    """Turbulence forecast for points sampled along departure → arrival.

    Raises:
        InvalidRequest: Bad day count or spacing.
        UpstreamUnavailable / DecodeFailure: Every sample point failed.
    """
    options = options or ForecastOptions()
    _validate_days(days)
    spacing = spacing_deg if spacing_deg is not None else options.settings.route_spacing_deg
    samples = route_samples(departure, arrival, spacing)

    logger.info(
        "Route forecast %.2f,%.2f -> %.2f,%.2f: %d samples, %d days",
        departure.lat, departure.lon, arrival.lat, arrival.lon, len(samples), days,
    )
    return _run_forecast(samples, days, options)


def fetch_region_forecast(
    center: Coordinate,
    span_lat: float = 30.0,
    span_lon: float = 60.0,
    days: int = 3,
    step: float | None = None,
    options: ForecastOptions | None = None,
) -> TurbulenceForecast:
    """Turbulence forecast on a grid around ``center``."""
    options = options or ForecastOptions()
    _validate_days(days)
    grid_step = step if step is not None else options.settings.grid_step_deg
    samples = grid_samples(center, span_lat, span_lon, grid_step)

    logger.info(
        "Region forecast around %.2f,%.2f (%gx%g deg): %d samples, %d days",
        center.lat, center.lon, span_lat, span_lon, len(samples), days,
    )
    return _run_forecast(samples, days, options)


def fetch_reports(
    anchors: list[str],
    hours_back: int | None = None,
    distance_nm: int | None = None,
    options: ForecastOptions | None = None,
) -> RouteReports:
    """Fetch PIREPs around every anchor plus hazard areas, concurrently.

    One task per anchor, one for AIRMET/SIGMETs and one for G-AIRMETs.
    PIREP batches are merged in completion order through the deduplicator;
    hazard areas are listed AIRMET/SIGMETs first. With no anchors, a single
    unanchored PIREP query is made.
    """
    options = options or ForecastOptions()
    settings = options.settings
    hours = hours_back or settings.report_hours
    distance = distance_nm or settings.report_distance_nm
    client = options.reports()

    queries: list[str | None] = list(anchors) or [None]
    hazard_sources = {"airsigmet": client.fetch_airsigmets, "gairmet": client.fetch_gairmets}
    total_tasks = len(queries) + len(hazard_sources)

    pirep_batches: list[list[PilotReport]] = []
    hazards_by_source: dict[str, list[HazardPolygon]] = {}
    result = RouteReports()
    failures: list[Exception] = []

    with ThreadPoolExecutor(max_workers=min(options.workers, total_tasks)) as pool:
        pirep_futures = {
            pool.submit(client.fetch_pireps, anchor, distance, hours): anchor
            for anchor in queries
        }
        hazard_futures = {pool.submit(fetch): source for source, fetch in hazard_sources.items()}

        for future in as_completed([*pirep_futures, *hazard_futures]):
            try:
                batch = future.result()
            except Exception as exc:
                failures.append(exc)
                if future in hazard_futures:
                    source = hazard_futures[future]
                    logger.warning("Hazard area fetch failed for %s", source, exc_info=True)
                    result.failed_hazard_sources.append(source)
                else:
                    anchor = pirep_futures[future]
                    logger.warning("PIREP fetch failed for %s", anchor or "all stations", exc_info=True)
                    result.failed_anchors.append(anchor or "*")
                continue
            if future in hazard_futures:
                hazards_by_source[hazard_futures[future]] = batch
            else:
                pirep_batches.append(batch)

    if len(failures) == total_tasks:
        raise _batch_failure("report", failures) from failures[0]

    result.pireps = deduplicate_reports(pirep_batches)
    result.hazards = [p for source in hazard_sources for p in hazards_by_source.get(source, [])]
    logger.info(
        "Reports: %d PIREPs from %d/%d queries, %d hazard areas",
        len(result.pireps), len(pirep_batches), len(queries), len(result.hazards),
    )
    return result


def fetch_route_reports(
    route: RouteConfig,
    corridor_nm: float | None = None,
    hours_back: int | None = None,
    active_at: datetime | None = None,
    min_alt_ft: float | None = None,
    max_alt_ft: float | None = None,
    options: ForecastOptions | None = None,
) -> RouteReports:
    """Reports and hazard areas inside the corridor of a route.

    Giving either altitude bound restricts results to that band (inclusive);
    the missing bound is open.
    """
    options = options or ForecastOptions()
    corridor = corridor_nm if corridor_nm is not None else options.settings.corridor_nm
    band = _altitude_band(min_alt_ft, max_alt_ft)
    start = route.departure.coordinate
    end = route.arrival.coordinate

    reports = fetch_reports(route.anchors, hours_back=hours_back, options=options)
    reports.pireps = filter_reports_along_route(reports.pireps, start, end, corridor)
    reports.hazards = filter_hazards_along_route(reports.hazards, start, end, corridor, at=active_at)
    if band is not None:
        reports.pireps = filter_reports_by_altitude(reports.pireps, *band)
        reports.hazards = filter_hazards_by_altitude(reports.hazards, *band)

    logger.info(
        "%s: %d PIREPs and %d hazard areas within %g nm",
        route.name, len(reports.pireps), len(reports.hazards), corridor,
    )
    return reports


def _altitude_band(
    min_alt_ft: float | None, max_alt_ft: float | None
) -> tuple[float, float] | None:
    if min_alt_ft is None and max_alt_ft is None:
        return None
    low = min_alt_ft if min_alt_ft is not None else 0.0
    high = max_alt_ft if max_alt_ft is not None else math.inf
    if low > high:
        raise InvalidRequest(f"Altitude band is empty: {low:g} ft above {high:g} ft")
    return low, high
