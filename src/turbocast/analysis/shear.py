"""Vertical wind shear between adjacent pressure levels."""

from __future__ import annotations

import math
from dataclasses import dataclass

from turbocast.fetch.variables import adjacent_level_pairs
from turbocast.models import LevelReading, UpperAirHour

M_TO_FT = 3.28084


@dataclass(frozen=True)
class ShearLayer:
    """Shear across one adjacent level pair at one time step."""

    upper: LevelReading
    lower: LevelReading
    shear_kt_per_1000ft: float


def wind_components(speed_kt: float, direction_deg: float) -> tuple[float, float]:
    """Split a wind into (u, v) using the meteorological "from" convention."""
    rad = math.radians(direction_deg)
    return -speed_kt * math.sin(rad), -speed_kt * math.cos(rad)


def vector_wind_shear(
    upper_speed: float,
    upper_dir: float,
    lower_speed: float,
    lower_dir: float,
    height_diff_m: float,
) -> float:
    """Vector wind shear magnitude in knots per 1,000 ft."""
    u_upper, v_upper = wind_components(upper_speed, upper_dir)
    u_lower, v_lower = wind_components(lower_speed, lower_dir)

    magnitude = math.hypot(u_upper - u_lower, v_upper - v_lower)
    height_ft = abs(height_diff_m) * M_TO_FT
    if height_ft <= 0:
        return 0.0
    return magnitude / (height_ft / 1000)


def compute_shear_layers(hour: UpperAirHour) -> list[ShearLayer]:
    """Shear for every adjacent level pair with complete data at this hour.

    A level with missing values breaks both pairs it belongs to; levels on
    either side of the gap are never paired with each other.
    """
    layers: list[ShearLayer] = []
    for upper_hpa, lower_hpa in adjacent_level_pairs():
        upper = hour.level_at(upper_hpa)
        lower = hour.level_at(lower_hpa)
        if upper is None or lower is None:
            continue
        if not (upper.is_complete and lower.is_complete):
            continue

        height_diff_m = abs(upper.geopotential_height_m - lower.geopotential_height_m)
        if height_diff_m == 0:
            continue

        shear = vector_wind_shear(
            upper.wind_speed_kt, upper.wind_direction_deg,
            lower.wind_speed_kt, lower.wind_direction_deg,
            height_diff_m,
        )
        layers.append(ShearLayer(upper=upper, lower=lower, shear_kt_per_1000ft=shear))
    return layers
