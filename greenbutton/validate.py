from __future__ import annotations
from typing import Sequence

from . import exceptions
from .types import Reading, SeriesPoint


def assert_ascending(points: Sequence[SeriesPoint] | Sequence[Reading]) -> None:
    """Timestamps must be non-decreasing for cumulative sums to be meaningful."""
    for prev, cur in zip(points, points[1:]):
        if cur.timestamp < prev.timestamp:
            raise exceptions.StatementError(
                f"Series is not sorted by timestamp: {cur.timestamp} follows {prev.timestamp}."
            )

