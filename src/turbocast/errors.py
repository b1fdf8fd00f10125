"""Error kinds raised by the forecasting core."""

from __future__ import annotations


class TurbulenceError(Exception):
    """Base class for all turbocast errors."""


class InvalidRequest(TurbulenceError, ValueError):
    """Malformed coordinates, region or request parameters."""


class UpstreamUnavailable(TurbulenceError):
    """Provider unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(TurbulenceError):
    """Provider answered but the payload could not be decoded."""
