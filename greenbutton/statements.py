from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from . import canon, utils, validate
from .config import BackfillConfig, default_config
from .types import Dialect, SeriesPoint, SeriesSpec, StatisticRow

logger = logging.getLogger(__name__)

_META_COLS = "statistic_id, source, unit_of_measurement, has_mean, has_sum, name"
_STATS_COLS = "metadata_id, created_ts, start_ts, state, sum"


def cumulative_rows(
    points: Sequence[SeriesPoint], precision: int = canon.PRECISION
) -> list[StatisticRow]:
    """
    Running total per point, starting from zero for this series.

    The sum accumulates unrounded values; state and sum are rounded only for
    emission so rounding error never compounds.
    """
    validate.assert_ascending(points)
    if not points:
        return []
    values = np.asarray([p.value for p in points], dtype=float)
    sums = np.cumsum(values)
    states = np.round(values, precision)
    sums = np.round(sums, precision)
    return [
        StatisticRow(timestamp=int(p.timestamp), state=float(s), sum=float(c))
        for p, s, c in zip(points, states, sums)
    ]


def insert_prefix(table: str, columns: str, dialect: Dialect) -> str:
    if dialect == "sqlite":
        return f"INSERT OR IGNORE INTO {table} ({columns}) VALUES"
    if dialect == "postgresql":
        return f"INSERT INTO {table} ({columns}) VALUES"
    return f"INSERT IGNORE INTO {table} ({columns}) VALUES"


def insert_suffix(dialect: Dialect) -> str:
    return " ON CONFLICT DO NOTHING" if dialect == "postgresql" else ""


def _flag(value: bool, dialect: Dialect) -> str:
    if dialect == "postgresql":
        return "TRUE" if value else "FALSE"
    return "1" if value else "0"


def _metadata_ref(statistic_id: str) -> str:
    return (
        f"(SELECT id FROM {canon.META_TABLE} "
        f"WHERE statistic_id = {utils.sql_quote(statistic_id)})"
    )


def render_meta_sql(config: Optional[BackfillConfig] = None) -> str:
    """Register every catalogue series; existing registrations are left alone."""
    config = config or default_config()
    sql = "-- Statistics Metadata\n"
    sql += "-- Run these INSERT statements first. If records already exist, they will be ignored.\n\n"
    for spec in config.catalogue():
        values = ", ".join(
            [
                utils.sql_quote(spec.statistic_id),
                utils.sql_quote(config.source),
                utils.sql_quote(spec.unit),
                _flag(False, config.dialect),
                _flag(True, config.dialect),
                utils.sql_quote(spec.name),
            ]
        )
        sql += (
            f"{insert_prefix(canon.META_TABLE, _META_COLS, config.dialect)} "
            f"({values}){insert_suffix(config.dialect)};\n"
        )
    return sql


def render_series_sql(
    spec: SeriesSpec,
    points: Sequence[SeriesPoint],
    config: Optional[BackfillConfig] = None,
) -> str:
    """
    Batched idempotent inserts for one series, or "" when it has no points.

    Rows collide on (metadata_id, start_ts) at the destination and are
    skipped there, never overwritten.
    """
    config = config or default_config()
    if not points:
        return ""

    rows = cumulative_rows(points, config.precision)
    ref = _metadata_ref(spec.statistic_id)
    values = [
        f"({ref}, {row.timestamp}, {row.timestamp}, "
        f"{utils.format_number(row.state, config.precision)}, "
        f"{utils.format_number(row.sum, config.precision)})"
        for row in rows
    ]

    sql = f"\n-- {spec.statistic_id}\n"
    sql += f"-- {len(rows)} records\n"
    prefix = insert_prefix(canon.STATS_TABLE, _STATS_COLS, config.dialect)
    suffix = insert_suffix(config.dialect)
    batches = 0
    for start in range(0, len(values), config.batch_size):
        batch = values[start : start + config.batch_size]
        sql += f"{prefix}\n" + ",\n".join(batch) + f"{suffix};\n"
        batches += 1

    logger.debug(
        "Rendered series",
        extra={"statistic_id": spec.statistic_id, "row_count": len(rows), "batch_count": batches},
    )
    return sql


def clear_statements(config: Optional[BackfillConfig] = None) -> list[str]:
    """DELETEs limited to this source's statistic ids."""
    config = config or default_config()
    pattern = utils.sql_quote(f"{config.source}:%")
    return [
        f"DELETE FROM {table} WHERE metadata_id IN "
        f"(SELECT id FROM {canon.META_TABLE} WHERE statistic_id LIKE {pattern});"
        for table in (canon.STATS_TABLE, canon.SHORT_TERM_TABLE)
    ]


def render_clear_sql(config: Optional[BackfillConfig] = None) -> str:
    sql = "-- ==========================================\n"
    sql += "-- CLEARING EXISTING DATA\n"
    sql += "-- ==========================================\n"
    sql += "".join(f"{stmt}\n" for stmt in clear_statements(config))
    return sql + "\n"


def render_clear_advisory(config: Optional[BackfillConfig] = None) -> str:
    """Commented-out DELETEs for the default, insert-only mode."""
    sql = "-- NOTE: Using idempotent inserts to skip duplicate records.\n"
    sql += "-- To clear existing data first, run with --clear or execute:\n"
    sql += "".join(f"-- {stmt}\n" for stmt in clear_statements(config))
    return sql + "\n"
