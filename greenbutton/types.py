from __future__ import annotations
from typing import TypedDict, Literal, List, Dict, Optional
from dataclasses import dataclass, field
from enum import IntEnum

from pydantic import BaseModel

SourceField = Literal["consumption_kwh", "cost"]
Dialect = Literal["mysql", "sqlite", "postgresql"]


class TouTier(IntEnum):
    ON_PEAK = 1
    MID_PEAK = 2
    OFF_PEAK = 3

    @classmethod
    def from_code(cls, code: int) -> "TouTier":
        """Resolve a raw tou code; anything unrecognised is off-peak."""
        try:
            return cls(code)
        except ValueError:
            return cls.OFF_PEAK


## Readings
@dataclass(frozen=True)
class Reading:
    """One hourly interval reading in physical units."""

    timestamp: int  # epoch seconds, UTC, interval start
    consumption_kwh: float
    cost: float
    tou: int = 3

    @property
    def tier(self) -> TouTier:
        return TouTier.from_code(self.tou)


@dataclass(frozen=True)
class DailyTotal:
    date: str  # YYYY-MM-DD in the reference timezone
    timestamp: int  # date at the fixed UTC hour
    consumption_kwh: float
    cost: float


@dataclass(frozen=True)
class TouPartitions:
    on_peak: List[Reading] = field(default_factory=list)
    mid_peak: List[Reading] = field(default_factory=list)
    off_peak: List[Reading] = field(default_factory=list)

    def for_tier(self, tier: TouTier) -> List[Reading]:
        if tier is TouTier.ON_PEAK:
            return self.on_peak
        if tier is TouTier.MID_PEAK:
            return self.mid_peak
        return self.off_peak

    def __len__(self) -> int:
        return len(self.on_peak) + len(self.mid_peak) + len(self.off_peak)


## Series
class SeriesSpec(BaseModel):
    key: str  # e.g. "on_peak"
    statistic_id: str  # e.g. "hydroone:on_peak"
    name: str
    unit: str
    source_field: SourceField
    origin: Literal["on_peak", "mid_peak", "off_peak", "daily"]
    model_config = {"frozen": True}


@dataclass(frozen=True)
class SeriesPoint:
    timestamp: int
    value: float


@dataclass(frozen=True)
class StatisticRow:
    """A row bound for the statistics table, already rounded."""

    timestamp: int
    state: float
    sum: float


@dataclass(frozen=True)
class MergeReport:
    primary_count: int
    secondary_count: int
    added_from_secondary: int
    merged_count: int


## Summary
class TierCounts(TypedDict):
    on_peak: int
    mid_peak: int
    off_peak: int


class SummaryPayload(TypedDict, total=False):
    reading_count: int
    daily_count: int
    start: Optional[str]  # first reading, UTC date
    end: Optional[str]  # last reading, UTC date
    tiers: TierCounts
    total_consumption_kwh: float
    total_cost: float
    merge: Optional[Dict[str, int]]


@dataclass
class BackfillResult:
    sql: str
    summary: SummaryPayload
    output_path: Optional[str] = None
