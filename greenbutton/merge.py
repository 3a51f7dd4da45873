from __future__ import annotations
from typing import Sequence

from .types import MergeReport, Reading


def merge_readings(primary: Sequence[Reading], secondary: Sequence[Reading]) -> list[Reading]:
    """
    Combine two exports; primary wins every timestamp it covers.

    Secondary readings only fill timestamps missing from primary. The result
    is re-sorted by timestamp (stable, so primary order is kept on ties).
    """
    taken = {r.timestamp for r in primary}
    merged = [*primary, *(r for r in secondary if r.timestamp not in taken)]
    merged.sort(key=lambda r: r.timestamp)
    return merged


def merge_with_report(
    primary: Sequence[Reading], secondary: Sequence[Reading]
) -> tuple[list[Reading], MergeReport]:
    merged = merge_readings(primary, secondary)
    report = MergeReport(
        primary_count=len(primary),
        secondary_count=len(secondary),
        added_from_secondary=len(merged) - len(primary),
        merged_count=len(merged),
    )
    return merged, report
