"""Clear-air turbulence classification from vertical wind shear.

Shear is amplified near the jet stream, then bucketed into a severity:

    effective = shear × jet factor(upper-level wind)
    ≥ 8 severe, ≥ 6 moderate, ≥ 4 light, else none (not emitted)
"""

from __future__ import annotations

import logging

from turbocast.analysis.shear import compute_shear_layers
from turbocast.models import ForecastPoint, TurbulenceType, UpperAirProfile
from turbocast.severity import TurbulenceSeverity

logger = logging.getLogger(__name__)

# Effective shear thresholds (kt per 1000 ft), lower edge inclusive
_SEVERE = 8.0
_MODERATE = 6.0
_LIGHT = 4.0

# Jet-stream amplification
_JET_STRONG_KT = 80.0
_JET_MODERATE_KT = 60.0


def jet_stream_factor(speed_kt: float) -> float:
    """Amplifier for jet-stream proximity: stronger jet, more CAT."""
    if speed_kt > _JET_STRONG_KT:
        return 1.3
    if speed_kt > _JET_MODERATE_KT:
        return 1.15
    return 1.0


def effective_shear(shear: float, jet_speed_kt: float) -> float:
    return shear * jet_stream_factor(jet_speed_kt)


def classify_severity(shear: float, jet_speed_kt: float) -> TurbulenceSeverity:
    """Map shear and upper-level wind speed to a turbulence severity."""
    effective = effective_shear(shear, jet_speed_kt)
    if effective >= _SEVERE:
        return TurbulenceSeverity.SEVERE
    if effective >= _MODERATE:
        return TurbulenceSeverity.MODERATE
    if effective >= _LIGHT:
        return TurbulenceSeverity.LIGHT
    return TurbulenceSeverity.NONE


def probability_from_shear(shear: float, jet_speed_kt: float) -> float:
    effective = effective_shear(shear, jet_speed_kt)
    return min(1.0, max(0.0, (effective - 2) / 10))


def compute_turbulence(profile: UpperAirProfile) -> list[ForecastPoint]:
    """Graded CAT points for one sample point's upper-air series.

    Pairs classified as NONE are dropped so the forecast stays sparse.
    """
    coord = profile.coordinate
    points: list[ForecastPoint] = []

    for hour in profile.hourly:
        for layer in compute_shear_layers(hour):
            jet_speed = layer.upper.wind_speed_kt
            shear = layer.shear_kt_per_1000ft
            severity = classify_severity(shear, jet_speed)
            if severity == TurbulenceSeverity.NONE:
                continue

            points.append(ForecastPoint(
                lat=coord.lat,
                lon=coord.lon,
                flight_level=layer.upper.flight_level,
                forecast_time=hour.time,
                severity=severity,
                probability=probability_from_shear(shear, jet_speed),
                wind_shear=shear,
                jet_stream_speed_kt=jet_speed,
                type=TurbulenceType.CAT,
            ))

    logger.debug(
        "%.3f,%.3f: %d turbulence points from %d hours",
        coord.lat, coord.lon, len(points), len(profile.hourly),
    )
    return points
