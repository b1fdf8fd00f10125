"""Pressure-level table and hourly parameter names for the upper-air provider."""

from __future__ import annotations

import re

# Pressure level (hPa) -> approximate flight level in the standard atmosphere,
# ordered from the highest altitude down.
PRESSURE_LEVELS: dict[int, int] = {
    200: 390,
    250: 340,
    300: 300,
    400: 240,
    500: 180,
    700: 100,
}

LEVEL_PARAMETERS = [
    "wind_speed",
    "wind_direction",
    "temperature",
    "geopotential_height",
]

_LEVEL_KEY_RE = re.compile(r"^(?P<param>[a-z_]+)_(?P<level>\d+)hPa$")


def adjacent_level_pairs() -> list[tuple[int, int]]:
    """(upper, lower) pressure pairs in fixed high-to-low altitude order."""
    levels = list(PRESSURE_LEVELS)
    return list(zip(levels[:-1], levels[1:]))


def level_key(param: str, pressure_hpa: int) -> str:
    """Provider key for one parameter at one level, e.g. ``wind_speed_250hPa``."""
    return f"{param}_{pressure_hpa}hPa"


def build_hourly_params() -> str:
    """Build the comma-separated hourly parameter string for all levels."""
    return ",".join(
        level_key(param, level)
        for level in PRESSURE_LEVELS
        for param in LEVEL_PARAMETERS
    )


def parse_level_key(key: str) -> tuple[str, int] | None:
    """Split a provider key into ``(parameter, pressure_hpa)``.

    Returns None for keys outside the fixed parameter and level set.
    """
    match = _LEVEL_KEY_RE.match(key)
    if match is None:
        return None
    param = match.group("param")
    level = int(match.group("level"))
    if param not in LEVEL_PARAMETERS or level not in PRESSURE_LEVELS:
        return None
    return param, level
