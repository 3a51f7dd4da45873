# greenbutton/utils.py
from __future__ import annotations
from typing import Sequence
from zoneinfo import ZoneInfo

import pandas as pd

from . import canon
from .types import Reading

READING_COLS = ["timestamp", "consumption_kwh", "cost", "tou"]


def local_name(tag: str) -> str:
    """Drop a '{uri}' namespace and any 'prefix:' qualifier from a tag name."""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    return tag.rsplit(":", 1)[-1]


def readings_to_frame(readings: Sequence[Reading], tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    """
    Build a frame from readings, indexed by tz-aware interval start.

    Index: 't_start' converted from UTC to tz
    Columns: timestamp, consumption_kwh, cost, tou
    """
    df = pd.DataFrame(
        [(r.timestamp, r.consumption_kwh, r.cost, r.tou) for r in readings],
        columns=READING_COLS,
    )
    idx = pd.to_datetime(df["timestamp"].astype("int64"), unit="s", utc=True)
    df.index = pd.DatetimeIndex(idx).tz_convert(ZoneInfo(tz))
    df.index.name = "t_start"
    return df


def date_at_utc_hour(date_label: str, hour: int = canon.DAILY_UTC_HOUR) -> int:
    """Epoch seconds of date_label at hour:00 UTC."""
    ts = pd.Timestamp(date_label, tz="UTC") + pd.Timedelta(hours=hour)
    return int(ts.timestamp())


def utc_date(timestamp: int) -> str:
    return pd.Timestamp(timestamp, unit="s", tz="UTC").strftime("%Y-%m-%d")


def sql_quote(value: str) -> str:
    """Single-quoted SQL string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def format_number(value: float | int, precision: int = canon.PRECISION) -> str:
    """Render a number at precision without exponent notation or trailing zeros."""
    if isinstance(value, int):
        return str(value)
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(f"Cannot render non-finite value {value!r} as SQL")
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text
