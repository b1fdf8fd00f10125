"""Settings and named-route loading from YAML, with environment overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from turbocast.models import RouteConfig

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

ENV_PREFIX = "TURBOCAST_"


class Settings(BaseModel):
    """Provider endpoints and sampling defaults."""

    open_meteo_url: str = "https://api.open-meteo.com/v1/forecast"
    aviation_weather_url: str = "https://aviationweather.gov/api/data"
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_workers: int = Field(default=8, ge=1)
    route_spacing_deg: float = Field(default=2.0, gt=0)
    grid_step_deg: float = Field(default=5.0, gt=0)
    corridor_nm: float = Field(default=100.0, gt=0)
    report_hours: int = Field(default=6, ge=1)
    report_distance_nm: int = Field(default=200, ge=1)


def _read_yaml(path: Path) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings.

    Resolution order (later wins):
    1. Built-in defaults
    2. ``settings.yaml`` in the config directory, if present
    3. ``TURBOCAST_<FIELD>`` environment variables
    """
    config_dir = config_dir or CONFIG_DIR
    settings_file = config_dir / "settings.yaml"

    raw: dict = {}
    if settings_file.exists():
        raw.update(_read_yaml(settings_file).get("settings", {}))

    for name in Settings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            raw[name] = value

    return Settings.model_validate(raw)


def load_route(name: str, config_dir: Path | None = None) -> RouteConfig:
    """Load a named route from routes.yaml.

    Args:
        name: Route key in routes.yaml.
        config_dir: Override for config directory (testing).
    """
    config_dir = config_dir or CONFIG_DIR
    data = _read_yaml(config_dir / "routes.yaml")

    routes = data.get("routes", {})
    if name not in routes:
        available = ", ".join(routes.keys())
        raise KeyError(f"Route '{name}' not found. Available: {available}")

    r = routes[name]
    return RouteConfig(
        name=r.get("name", name),
        departure=r["departure"],
        arrival=r["arrival"],
        report_anchors=r.get("report_anchors", []),
        forecast_days=r.get("forecast_days", 3),
    )


def list_routes(config_dir: Path | None = None) -> list[str]:
    """List available route names."""
    config_dir = config_dir or CONFIG_DIR
    data = _read_yaml(config_dir / "routes.yaml")
    return list(data.get("routes", {}).keys())
