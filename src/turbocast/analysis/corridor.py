"""Route-corridor correlation using a planar point-to-segment projection.

The projection is done in flat latitude/longitude space; only the final
distance is great-circle. This is adequate at corridor scale (~100 nm)
but drifts at continental scale and breaks across the antimeridian and
near the poles.

Altitude-band filters for reports and hazard areas live here too.
"""

from __future__ import annotations

import math
from datetime import datetime

from turbocast.models import NM_TO_M, Coordinate, HazardPolygon, PilotReport

EARTH_RADIUS_M = 6_371_008.8


def nm_to_m(nm: float) -> float:
    return nm * NM_TO_M


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def distance_to_segment_m(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """Distance from ``p`` to the closest point of segment a→b, in metres."""
    ab_lat = b.lat - a.lat
    ab_lon = b.lon - a.lon
    length_sq = ab_lat * ab_lat + ab_lon * ab_lon
    if length_sq == 0:
        return haversine_m(p, a)

    ap_lat = p.lat - a.lat
    ap_lon = p.lon - a.lon
    t = max(0.0, min(1.0, (ap_lat * ab_lat + ap_lon * ab_lon) / length_sq))

    closest = Coordinate(lat=a.lat + t * ab_lat, lon=a.lon + t * ab_lon)
    return haversine_m(p, closest)


def is_within_corridor(
    p: Coordinate, a: Coordinate, b: Coordinate, corridor_m: float
) -> bool:
    """True if ``p`` lies within ``corridor_m`` of segment a→b (boundary included)."""
    return distance_to_segment_m(p, a, b) <= corridor_m


def filter_reports_along_route(
    reports: list[PilotReport],
    start: Coordinate,
    end: Coordinate,
    corridor_nm: float = 100.0,
) -> list[PilotReport]:
    """Reports inside the route corridor; reports without a location are dropped."""
    corridor_m = nm_to_m(corridor_nm)
    kept = []
    for report in reports:
        coord = report.coordinate
        if coord is None:
            continue
        if is_within_corridor(coord, start, end, corridor_m):
            kept.append(report)
    return kept


def filter_hazards_along_route(
    polygons: list[HazardPolygon],
    start: Coordinate,
    end: Coordinate,
    corridor_nm: float = 100.0,
    at: datetime | None = None,
) -> list[HazardPolygon]:
    """Turbulence hazard areas touching the route corridor.

    A polygon is kept if any vertex lies in the corridor, or if the route's
    start, end or midpoint falls inside it. With ``at``, only areas valid
    at that instant are kept.
    """
    corridor_m = nm_to_m(corridor_nm)
    midpoint = Coordinate(lat=(start.lat + end.lat) / 2, lon=(start.lon + end.lon) / 2)

    kept = []
    for polygon in polygons:
        if not polygon.is_turbulence:
            continue
        if at is not None and not polygon.is_active(at):
            continue
        near = any(is_within_corridor(v, start, end, corridor_m) for v in polygon.vertices)
        if near or any(polygon.contains(c) for c in (start, end, midpoint)):
            kept.append(polygon)
    return kept


def filter_reports_by_altitude(
    reports: list[PilotReport], low_ft: float, high_ft: float
) -> list[PilotReport]:
    """Reports inside the inclusive altitude band; unknown altitudes are kept."""
    return [
        r for r in reports
        if r.altitude_ft is None or low_ft <= r.altitude_ft <= high_ft
    ]


def filter_hazards_by_altitude(
    polygons: list[HazardPolygon], low_ft: float, high_ft: float
) -> list[HazardPolygon]:
    """Hazard areas whose vertical extent overlaps the band.

    An area missing its base or top is kept.
    """
    return [
        p for p in polygons
        if p.base_ft is None or p.top_ft is None
        or (p.top_ft >= low_ft and p.base_ft <= high_ft)
    ]
