"""Sample-point generation along a route or across a lat/lon grid."""

from __future__ import annotations

import math

from turbocast.errors import InvalidRequest
from turbocast.models import Coordinate

# Slack on inclusive grid bounds so float error never drops the last row/column.
_GRID_EPSILON = 1e-9


def route_samples(
    start: Coordinate, end: Coordinate, spacing_deg: float = 2.0
) -> list[Coordinate]:
    """Evenly spaced points from ``start`` to ``end``, both included.

    Interpolates linearly in latitude/longitude (not great-circle). Always
    returns at least three points.
    """
    if spacing_deg <= 0:
        raise InvalidRequest(f"Route spacing must be positive, got {spacing_deg}")

    d_lat = end.lat - start.lat
    d_lon = end.lon - start.lon
    steps = max(2, int(math.hypot(d_lat, d_lon) / spacing_deg))

    return [
        Coordinate(lat=start.lat + d_lat * i / steps, lon=start.lon + d_lon * i / steps)
        for i in range(steps + 1)
    ]


def _axis_values(lo: float, hi: float, step: float) -> list[float]:
    count = int(math.floor((hi - lo) / step + _GRID_EPSILON)) + 1
    return [min(lo + i * step, hi) for i in range(count)]


def grid_samples(
    center: Coordinate,
    span_lat: float,
    span_lon: float,
    step: float = 5.0,
) -> list[Coordinate]:
    """Cartesian grid covering a box around ``center``, bounds inclusive.

    The box is clamped to valid latitude/longitude. Values are generated by
    index from the minimum, so accumulated float error cannot skip or repeat
    the final row or column. Points are ordered by latitude, then longitude.
    """
    if step <= 0:
        raise InvalidRequest(f"Grid step must be positive, got {step}")
    if span_lat <= 0 or span_lon <= 0:
        raise InvalidRequest(f"Grid span must be positive, got {span_lat}x{span_lon}")

    min_lat = max(-90.0, center.lat - span_lat / 2)
    max_lat = min(90.0, center.lat + span_lat / 2)
    min_lon = max(-180.0, center.lon - span_lon / 2)
    max_lon = min(180.0, center.lon + span_lon / 2)

    return [
        Coordinate(lat=lat, lon=lon)
        for lat in _axis_values(min_lat, max_lat, step)
        for lon in _axis_values(min_lon, max_lon, step)
    ]
