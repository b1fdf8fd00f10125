"""Plain text digest formatter for turbulence forecasts and route reports."""

from __future__ import annotations

from collections import Counter

from turbocast.fetch.variables import PRESSURE_LEVELS
from turbocast.models import PilotReport, TurbulenceForecast
from turbocast.pipeline import RouteReports
from turbocast.severity import TurbulenceSeverity

SEPARATOR = "=" * 60


def format_forecast(forecast: TurbulenceForecast, title: str) -> str:
    """Format a plain-text summary of a turbulence forecast."""
    lines: list[str] = []

    lines.append(SEPARATOR)
    lines.append(f"  {title}")
    lines.append(f"  Generated: {forecast.generated_at.strftime('%Y-%m-%d %H:%MZ')}"
                 f"  Horizon: {forecast.forecast_horizon_hours}h")
    lines.append(f"  Worst: {forecast.worst_severity.display_name}")
    lines.append(SEPARATOR)
    lines.append("")

    if not forecast.layers:
        lines.append("  No turbulence forecast")
        lines.append(SEPARATOR)
        return "\n".join(lines)

    lines.append("--- Daily Summary ---")
    for day in forecast.daily_summary():
        lines.append(f"  {day.day.isoformat()}  {day.worst.display_name:<9} {day.count:>5} points")
    lines.append("")

    lines.append("--- By Flight Level ---")
    for fl in PRESSURE_LEVELS.values():
        layers = forecast.layers_for_level(fl)
        counts: Counter[TurbulenceSeverity] = Counter()
        for layer in layers:
            counts.update(layer.severity_summary)
        if not counts:
            continue
        parts = [
            f"{s.value} {counts[s]}"
            for s in sorted(counts, key=lambda s: s.rank, reverse=True)
        ]
        lines.append(f"  FL{fl:03d}  {', '.join(parts)}")

    lines.append(SEPARATOR)
    return "\n".join(lines)


def _format_pirep(report: PilotReport) -> str:
    when = report.observation_time.strftime("%d %H:%MZ") if report.observation_time else "--"
    level = f"FL{report.flight_level:03d}" if report.flight_level is not None else "FL---"
    raw = report.raw_text or ""
    return f"  {when}  {level}  {report.severity.value:<4} {raw}"


def format_reports(reports: RouteReports, title: str) -> str:
    """Format correlated PIREPs and hazard areas for a route."""
    lines: list[str] = [SEPARATOR, f"  {title}", SEPARATOR, ""]

    lines.append(f"--- PIREPs ({len(reports.pireps)}) ---")
    ordered = sorted(reports.pireps, key=lambda r: r.severity.rank, reverse=True)
    for report in ordered:
        lines.append(_format_pirep(report))
    if reports.failed_anchors:
        lines.append(f"  (no data from: {', '.join(reports.failed_anchors)})")
    lines.append("")

    lines.append(f"--- Hazard Areas ({len(reports.hazards)}) ---")
    for hazard in reports.hazards:
        extent = ""
        if hazard.base_ft is not None and hazard.top_ft is not None:
            extent = f" {hazard.base_ft}-{hazard.top_ft} ft"
        lines.append(f"  {hazard.severity.display_name} {hazard.hazard or ''}{extent}")
    if reports.hazards_failed:
        lines.append(f"  (hazard areas unavailable: {', '.join(reports.failed_hazard_sources)})")

    lines.append(SEPARATOR)
    return "\n".join(lines)
