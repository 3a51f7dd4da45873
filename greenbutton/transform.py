from __future__ import annotations
from typing import Iterable, Optional, Sequence

from . import utils
from .config import BackfillConfig, default_config
from .types import DailyTotal, Reading, SeriesPoint, SourceField, TouPartitions, TouTier


def split_by_tou(readings: Iterable[Reading]) -> TouPartitions:
    """
    Partition readings into on/mid/off-peak, keeping input order in each.

    Codes other than 1 and 2 fall through to off-peak via TouTier.from_code.
    """
    bins: dict[TouTier, list[Reading]] = {tier: [] for tier in TouTier}
    for reading in readings:
        bins[reading.tier].append(reading)
    return TouPartitions(
        on_peak=bins[TouTier.ON_PEAK],
        mid_peak=bins[TouTier.MID_PEAK],
        off_peak=bins[TouTier.OFF_PEAK],
    )


def aggregate_daily(
    readings: Sequence[Reading], config: Optional[BackfillConfig] = None
) -> list[DailyTotal]:
    """
    Sum hourly readings per local calendar date in config.timezone.

    Each day is stamped at config.daily_utc_hour:00 UTC whatever its DST
    status, so every date maps to exactly one row.
    """
    config = config or default_config()
    if not readings:
        return []

    df = utils.readings_to_frame(readings, config.timezone)
    df["day"] = df.index.strftime("%Y-%m-%d")
    out = df.groupby("day", sort=True)[["consumption_kwh", "cost"]].sum()

    return [
        DailyTotal(
            date=str(day),
            timestamp=utils.date_at_utc_hour(str(day), config.daily_utc_hour),
            consumption_kwh=float(row.consumption_kwh),
            cost=float(row.cost),
        )
        for day, row in out.iterrows()
    ]


def to_points(
    items: Iterable[Reading] | Iterable[DailyTotal], field: SourceField
) -> list[SeriesPoint]:
    """Project readings or daily totals onto (timestamp, value) pairs."""
    return [SeriesPoint(timestamp=i.timestamp, value=getattr(i, field)) for i in items]


def tier_counts(parts: TouPartitions) -> dict[str, int]:
    return {
        "on_peak": len(parts.for_tier(TouTier.ON_PEAK)),
        "mid_peak": len(parts.for_tier(TouTier.MID_PEAK)),
        "off_peak": len(parts.for_tier(TouTier.OFF_PEAK)),
    }
