"""Merge PIREP batches from overlapping anchor queries."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from turbocast.models import PilotReport

logger = logging.getLogger(__name__)


def deduplicate_reports(batches: Iterable[list[PilotReport]]) -> list[PilotReport]:
    """Flatten report batches, dropping repeats and unlocated reports.

    Batches are consumed in the order given, normally the order their
    queries completed. The first report with a given raw text wins; reports
    without raw text are never treated as duplicates. A report without a
    valid coordinate is dropped, but only after its raw text is recorded,
    so it still suppresses a later located copy of the same text.
    """
    seen: set[str] = set()
    merged: list[PilotReport] = []
    duplicates = 0
    unlocated = 0

    for batch in batches:
        for report in batch:
            if report.raw_text is not None:
                if report.raw_text in seen:
                    duplicates += 1
                    continue
                seen.add(report.raw_text)
            if report.coordinate is None:
                unlocated += 1
                continue
            merged.append(report)

    logger.debug(
        "Merged %d reports (%d duplicates, %d without location dropped)",
        len(merged), duplicates, unlocated,
    )
    return merged
