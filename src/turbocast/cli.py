"""CLI entry point."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from turbocast.config import list_routes, load_route, load_settings
from turbocast.digest.text import format_forecast, format_reports
from turbocast.errors import TurbulenceError
from turbocast.models import Coordinate
from turbocast.pipeline import (
    ForecastOptions,
    fetch_region_forecast,
    fetch_route_forecast,
    fetch_route_reports,
    make_coordinate,
)

logger = logging.getLogger(__name__)


def _parse_coordinate(text: str) -> Coordinate:
    """Parse ``LAT,LON`` into a Coordinate."""
    try:
        lat_str, lon_str = text.split(",")
        lat, lon = float(lat_str), float(lon_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected LAT,LON, got '{text}'")
    return make_coordinate(lat, lon)


def _run_route(args: argparse.Namespace, options: ForecastOptions) -> str:
    if args.route:
        route = load_route(args.route)
        departure, arrival = route.departure.coordinate, route.arrival.coordinate
        days = args.days or route.forecast_days
        title = route.name
    elif args.origin and args.destination:
        departure, arrival = args.origin, args.destination
        days = args.days or 3
        title = f"{departure.lat:.2f},{departure.lon:.2f} -> {arrival.lat:.2f},{arrival.lon:.2f}"
    else:
        raise TurbulenceError("Provide --route NAME or both --from and --to.")

    forecast = fetch_route_forecast(
        departure, arrival, days=days, spacing_deg=args.spacing, options=options,
    )
    return format_forecast(forecast, title)


def _run_region(args: argparse.Namespace, options: ForecastOptions) -> str:
    forecast = fetch_region_forecast(
        args.center,
        span_lat=args.span_lat,
        span_lon=args.span_lon,
        days=args.days,
        step=args.step,
        options=options,
    )
    title = f"Region {args.center.lat:.1f},{args.center.lon:.1f} ({args.span_lat:g}x{args.span_lon:g} deg)"
    return format_forecast(forecast, title)


def _run_reports(args: argparse.Namespace, options: ForecastOptions) -> str:
    route = load_route(args.route)
    reports = fetch_route_reports(
        route,
        corridor_nm=args.corridor,
        hours_back=args.hours,
        min_alt_ft=args.min_alt,
        max_alt_ft=args.max_alt,
        options=options,
    )
    return format_reports(reports, f"{route.name} ({route.departure.icao} -> {route.arrival.icao})")


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="turbocast",
        description="Shear-based turbulence forecasts and route PIREP correlation",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Concurrent fetches (default: settings)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    route_parser = subparsers.add_parser("route", help="Forecast along a route")
    route_parser.add_argument("--route", help="Named route from routes.yaml")
    route_parser.add_argument(
        "--from", dest="origin", type=_parse_coordinate, metavar="LAT,LON",
        help="Departure coordinate",
    )
    route_parser.add_argument(
        "--to", dest="destination", type=_parse_coordinate, metavar="LAT,LON",
        help="Arrival coordinate",
    )
    route_parser.add_argument("--days", type=int, default=None, help="Forecast days (1-14)")
    route_parser.add_argument(
        "--spacing", type=float, default=None, help="Sample spacing in degrees"
    )

    region_parser = subparsers.add_parser("region", help="Forecast over a lat/lon box")
    region_parser.add_argument(
        "--center", required=True, type=_parse_coordinate, metavar="LAT,LON",
    )
    region_parser.add_argument("--span-lat", type=float, default=30.0)
    region_parser.add_argument("--span-lon", type=float, default=60.0)
    region_parser.add_argument("--step", type=float, default=None, help="Grid step in degrees")
    region_parser.add_argument("--days", type=int, default=3, help="Forecast days (1-14)")

    reports_parser = subparsers.add_parser("reports", help="PIREPs and hazards along a route")
    reports_parser.add_argument("--route", required=True, help="Named route from routes.yaml")
    reports_parser.add_argument(
        "--corridor", type=float, default=None, help="Corridor half-width in nm"
    )
    reports_parser.add_argument("--hours", type=int, default=None, help="Hours of reports")
    reports_parser.add_argument(
        "--min-alt", type=float, default=None, help="Lowest altitude of interest in ft"
    )
    reports_parser.add_argument(
        "--max-alt", type=float, default=None, help="Highest altitude of interest in ft"
    )

    subparsers.add_parser("routes", help="List available routes")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.command == "routes":
        for name in list_routes():
            print(f"  {name}")
        return

    runners = {"route": _run_route, "region": _run_region, "reports": _run_reports}

    try:
        options = ForecastOptions(settings=load_settings(), max_workers=args.workers)
        output = runners[args.command](args, options)
    except (TurbulenceError, KeyError, ValidationError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    print(output)
