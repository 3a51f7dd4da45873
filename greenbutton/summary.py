from __future__ import annotations
from typing import Optional, Sequence, cast

from . import utils, transform
from .types import DailyTotal, MergeReport, Reading, SummaryPayload, TierCounts, TouPartitions


def summarise(
    readings: Sequence[Reading],
    daily: Sequence[DailyTotal],
    parts: TouPartitions,
    merge: Optional[MergeReport] = None,
) -> SummaryPayload:
    start = utils.utc_date(readings[0].timestamp) if readings else None
    end = utils.utc_date(readings[-1].timestamp) if readings else None

    payload: SummaryPayload = {
        "reading_count": len(readings),
        "daily_count": len(daily),
        "start": start,
        "end": end,
        "tiers": cast(TierCounts, transform.tier_counts(parts)),
        "total_consumption_kwh": float(sum(r.consumption_kwh for r in readings)),
        "total_cost": float(sum(r.cost for r in readings)),
        "merge": None,
    }
    if merge is not None:
        payload["merge"] = {
            "primary_count": merge.primary_count,
            "secondary_count": merge.secondary_count,
            "added_from_secondary": merge.added_from_secondary,
        }
    return payload
