"""Group forecast points into time/altitude layers."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

from turbocast.models import ForecastLayer, ForecastPoint, TurbulenceForecast


def build_layers(points: list[ForecastPoint]) -> list[ForecastLayer]:
    """Group points by (forecast time, flight level), earliest layer first.

    Flight level breaks ties between layers at the same time, so the
    order does not depend on the order points arrived in.
    """
    grouped: dict[tuple[datetime, int], list[ForecastPoint]] = defaultdict(list)
    for p in points:
        grouped[(p.forecast_time, p.flight_level)].append(p)

    return [
        ForecastLayer(valid_time=valid_time, flight_level=fl, points=pts)
        for (valid_time, fl), pts in sorted(grouped.items(), key=lambda kv: kv[0])
    ]


def assemble_forecast(
    points: list[ForecastPoint],
    generated_at: datetime | None = None,
) -> TurbulenceForecast:
    return TurbulenceForecast(
        generated_at=generated_at or datetime.now(timezone.utc),
        layers=build_layers(points),
    )
