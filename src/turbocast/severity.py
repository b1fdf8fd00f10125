"""Turbulence severity scale and free-text intensity parsing."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class TurbulenceSeverity(str, Enum):
    """Ordered turbulence severity, valued by its PIREP intensity code."""

    NONE = "NEG"
    LIGHT = "LGT"
    MODERATE = "MOD"
    SEVERE = "SEV"
    EXTREME = "EXTM"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


_RANKS = {
    TurbulenceSeverity.NONE: 0,
    TurbulenceSeverity.LIGHT: 1,
    TurbulenceSeverity.MODERATE: 2,
    TurbulenceSeverity.SEVERE: 3,
    TurbulenceSeverity.EXTREME: 4,
}

# Checked top to bottom; the first matching token wins.
_PARSE_PRIORITY: list[tuple[TurbulenceSeverity, tuple[str, ...]]] = [
    (TurbulenceSeverity.EXTREME, ("EXTREME", "EXTM")),
    (TurbulenceSeverity.SEVERE, ("SEV", "SEVERE")),
    (TurbulenceSeverity.MODERATE, ("MOD", "MODERATE")),
    (TurbulenceSeverity.LIGHT, ("LGT", "LIGHT")),
    (TurbulenceSeverity.NONE, ("NEG", "SMOOTH", "NONE")),
]


def parse_severity(token: str | None) -> TurbulenceSeverity:
    """Parse a free-text intensity such as ``"MOD-SEV CAT"`` into a severity.

    Matching is a case-insensitive substring test in fixed priority order,
    so a range like ``LGT-MOD`` resolves to the worse of the two.
    Unknown or absent input gives ``NONE``.
    """
    if not token:
        return TurbulenceSeverity.NONE
    text = token.upper()
    for severity, keys in _PARSE_PRIORITY:
        if any(key in text for key in keys):
            return severity
    return TurbulenceSeverity.NONE


def worst_severity(severities: Iterable[TurbulenceSeverity]) -> TurbulenceSeverity:
    """Return the highest-ranked severity, or NONE for an empty input."""
    worst = TurbulenceSeverity.NONE
    for s in severities:
        if s.rank > worst.rank:
            worst = s
    return worst
