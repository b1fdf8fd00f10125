"""aviationweather.gov client for pilot reports and turbulence hazard areas.

PIREPs: https://aviationweather.gov/api/data/pirep
AIRMET/SIGMET: https://aviationweather.gov/api/data/airsigmet
G-AIRMET: https://aviationweather.gov/api/data/gairmet
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import requests
from pydantic import ValidationError

from turbocast.errors import DecodeFailure, UpstreamUnavailable
from turbocast.models import Coordinate, HazardPolygon, PilotReport, TurbulenceLayerReport

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://aviationweather.gov/api/data"

# Numeric turbulence intensity codes -> PIREP intensity text
_TB_INTENSITY = {
    0: "NEG", 1: "LGT", 2: "LGT", 3: "MOD",
    4: "MOD", 5: "SEV", 6: "SEV", 7: "EXTM", 8: "EXTM",
}


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_time(value: Any) -> Optional[datetime]:
    """Accept epoch seconds or an ISO-8601 string; anything else is None."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _intensity_text(value: Any) -> Optional[str]:
    if isinstance(value, int) and not isinstance(value, bool):
        return _TB_INTENSITY.get(value, str(value))
    return _to_text(value)


def parse_pirep(item: dict) -> PilotReport:
    """Convert one aviationweather.gov PIREP object to a PilotReport."""
    turbulence = []
    for i in (1, 2):
        intensity = _intensity_text(item.get(f"tbInt{i}"))
        if intensity is None:
            continue
        turbulence.append(TurbulenceLayerReport(
            intensity=intensity,
            base_ft=_to_int(item.get(f"tbBas{i}")),
            top_ft=_to_int(item.get(f"tbTop{i}")),
        ))

    pirep_type = str(item.get("pirepType") or "")
    report_type = "UUA" if "Urgent" in pirep_type or pirep_type == "UUA" else "UA"

    return PilotReport(
        receipt_time=_parse_time(item.get("receiptTime")),
        observation_time=_parse_time(item.get("obsTime")),
        lat=_to_float(item.get("lat")),
        lon=_to_float(item.get("lon")),
        flight_level=_to_int(item.get("fltLvl")),
        aircraft_type=_to_text(item.get("acType")),
        turbulence=turbulence,
        icing_intensity=_intensity_text(item.get("icgInt1")),
        raw_text=_to_text(item.get("rawOb")),
        report_type=report_type,
    )


def parse_airsigmet(item: dict) -> HazardPolygon:
    """Convert one AIRMET/SIGMET object to a HazardPolygon.

    Raises:
        ValidationError: Fewer than three usable vertices.
    """
    vertices = []
    for c in item.get("coords") or []:
        if not isinstance(c, dict):
            continue
        lat, lon = _to_float(c.get("lat")), _to_float(c.get("lon"))
        if lat is None or lon is None:
            continue
        vertices.append(Coordinate(lat=lat, lon=lon))

    base = item.get("altitudeLow1", item.get("base"))
    top = item.get("altitudeHi2") or item.get("altitudeHi1") or item.get("top")

    return HazardPolygon(
        hazard=_to_text(item.get("hazard")),
        qualifier=_to_text(item.get("qualifier") or item.get("severity")),
        vertices=vertices,
        valid_from=_parse_time(item.get("validTimeFrom")),
        valid_to=_parse_time(item.get("validTimeTo")),
        base_ft=_to_int(base),
        top_ft=_to_int(top),
        raw_text=_to_text(item.get("rawAirSigmet") or item.get("rawSigmet")),
    )


class AviationWeatherClient:
    """Client for PIREPs and AIRMET/SIGMETs from aviationweather.gov."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_items(self, endpoint: str, params: dict, wrapper_key: str) -> list[dict]:
        """GET an endpoint and return its list of JSON objects.

        A 204 or an empty body is an empty result, not an error.
        """
        url = f"{self.base_url}/{endpoint}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise UpstreamUnavailable(
                f"{endpoint} returned {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"{endpoint} request failed: {exc}") from exc

        if resp.status_code == 204 or not resp.content.strip():
            return []

        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeFailure(f"{endpoint} response is not valid JSON") from exc

        # Either a bare list or a wrapper object around one
        if isinstance(data, dict):
            data = data.get(wrapper_key)
            if data is None:
                return []
        if not isinstance(data, list):
            raise DecodeFailure(f"{endpoint} response is not a list")
        return [item for item in data if isinstance(item, dict)]

    def fetch_pireps(
        self,
        anchor: str | None = None,
        distance_nm: int = 200,
        hours_back: int = 6,
    ) -> list[PilotReport]:
        """Fetch turbulence PIREPs, optionally around an anchor station.

        Reports that cannot be parsed are skipped. Coordinates are not
        checked here; deduplication and corridor filtering handle that.
        """
        params: dict[str, object] = {"format": "json", "age": hours_back, "type": "turb"}
        if anchor:
            params["id"] = anchor
            params["distance"] = distance_nm

        logger.info("Fetching PIREPs around %s (%d h)", anchor or "all stations", hours_back)
        items = self._get_items("pirep", params, "pireps")

        reports = []
        for item in items:
            try:
                reports.append(parse_pirep(item))
            except ValidationError:
                logger.debug("Skipping malformed PIREP %r", item.get("rawOb"))
        return reports

    def _fetch_hazards(self, endpoint: str, wrapper_key: str) -> list[HazardPolygon]:
        items = self._get_items(endpoint, {"format": "json", "hazard": "turb"}, wrapper_key)

        polygons = []
        for item in items:
            try:
                polygon = parse_airsigmet(item)
            except ValidationError:
                logger.debug("Skipping hazard area with too few vertices: %r", item.get("hazard"))
                continue
            if polygon.is_turbulence:
                polygons.append(polygon)
        return polygons

    def fetch_airsigmets(self) -> list[HazardPolygon]:
        """Fetch AIRMET/SIGMET areas, keeping turbulence hazards only."""
        logger.info("Fetching turbulence AIRMET/SIGMETs")
        return self._fetch_hazards("airsigmet", "airsigmets")

    def fetch_gairmets(self) -> list[HazardPolygon]:
        """Fetch graphical AIRMET (G-AIRMET) turbulence areas."""
        logger.info("Fetching turbulence G-AIRMETs")
        return self._fetch_hazards("gairmet", "gairmets")
