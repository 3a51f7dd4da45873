from __future__ import annotations
from typing import Final, Dict

DEFAULT_TZ: Final[str] = "America/Toronto"
DEFAULT_SOURCE: Final[str] = "hydroone"
DEFAULT_DISPLAY_PREFIX: Final[str] = "HydroOne"
DEFAULT_CURRENCY: Final[str] = "CAD"
ENERGY_UNIT: Final[str] = "kWh"

# ESPI scaling: value is Wh * 1000, cost is hundred-thousandths of the currency
CONSUMPTION_DIVISOR: Final[int] = 1_000_000
COST_DIVISOR: Final[int] = 100_000

HOURLY_SECONDS: Final[int] = 3600
DEFAULT_TOU: Final[int] = 3

# 05:00 UTC stands in for local midnight all year (EST offset, never EDT)
DAILY_UTC_HOUR: Final[int] = 5

BATCH_SIZE: Final[int] = 500
PRECISION: Final[int] = 6

TIER_NAMES: Dict[int, str] = {
    1: "On-Peak",
    2: "Mid-Peak",
    3: "Off-Peak",
}

# Local element names walked from the feed root down to a reading
FEED = "feed"
ENTRY = "entry"
CONTENT = "content"
INTERVAL_BLOCK = "IntervalBlock"
INTERVAL_READING = "IntervalReading"
TIME_PERIOD = "timePeriod"

# Destination tables (Home Assistant recorder schema)
META_TABLE: Final[str] = "statistics_meta"
STATS_TABLE: Final[str] = "statistics"
SHORT_TERM_TABLE: Final[str] = "statistics_short_term"
