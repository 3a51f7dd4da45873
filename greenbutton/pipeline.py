from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from . import ingest, merge, statements, summary, transform
from .config import BackfillConfig, default_config
from .exceptions import EmptyResultError, MergeSourceError, OutputError, require
from .types import (
    BackfillResult,
    DailyTotal,
    MergeReport,
    Reading,
    SeriesPoint,
    SeriesSpec,
    SummaryPayload,
    TouPartitions,
)

logger = logging.getLogger(__name__)

_RULE = "-- ==========================================\n"


def build_series(
    readings: Sequence[Reading],
    config: Optional[BackfillConfig] = None,
    *,
    parts: Optional[TouPartitions] = None,
    daily: Optional[Sequence[DailyTotal]] = None,
) -> list[tuple[SeriesSpec, list[SeriesPoint]]]:
    """All eight catalogue series with their points, in emission order."""
    config = config or default_config()
    parts = parts if parts is not None else transform.split_by_tou(readings)
    daily = daily if daily is not None else transform.aggregate_daily(readings, config)

    origins = {
        "on_peak": parts.on_peak,
        "mid_peak": parts.mid_peak,
        "off_peak": parts.off_peak,
        "daily": daily,
    }
    return [
        (spec, transform.to_points(origins[spec.origin], spec.source_field))
        for spec in config.catalogue()
    ]


def _header(
    payload: SummaryPayload, sources: Sequence[str], generated_at: datetime, merged: bool
) -> str:
    title = "-- Green Button to Home Assistant Statistics Import"
    sql = title + (" (MERGED)\n" if merged else "\n")
    sql += f"-- Generated: {generated_at.isoformat()}\n"
    if merged and len(sources) == 2:
        sql += f"-- Primary source: {sources[0]}\n"
        sql += f"-- Secondary source: {sources[1]}\n"
    else:
        for name in sources:
            sql += f"-- Source: {name}\n"
    sql += f"-- Date range: {payload['start']} to {payload['end']}\n"
    sql += f"-- Total hourly readings: {payload['reading_count']}\n"
    sql += f"-- Total daily records: {payload['daily_count']}\n"
    return sql + "\n"


def render(
    readings: Sequence[Reading],
    config: Optional[BackfillConfig] = None,
    *,
    clear: bool = False,
    sources: Sequence[str] = (),
    generated_at: Optional[datetime] = None,
    merge_report: Optional[MergeReport] = None,
) -> BackfillResult:
    """
    Render the full backfill document for a reading set.

    Sections: header, clear (or advisory), metadata, hourly TOU series,
    daily series. Raises EmptyResultError when there is nothing to import.
    """
    config = config or default_config()
    require(len(readings) > 0, "No valid readings found in input.", EmptyResultError)

    parts = transform.split_by_tou(readings)
    daily = transform.aggregate_daily(readings, config)
    payload = summary.summarise(readings, daily, parts, merge_report)
    generated_at = generated_at or datetime.now(timezone.utc)

    sql = _header(payload, sources, generated_at, merged=merge_report is not None)
    if clear:
        sql += statements.render_clear_sql(config)
    else:
        sql += statements.render_clear_advisory(config)
    sql += statements.render_meta_sql(config) + "\n"

    series = build_series(readings, config, parts=parts, daily=daily)
    for spec, points in series:
        if spec.key == "on_peak":
            sql += "\n" + _RULE + "-- HOURLY TOU STATISTICS\n" + _RULE
        elif spec.key == "daily_usage":
            sql += "\n" + _RULE + "-- DAILY AGGREGATE STATISTICS\n" + _RULE
        sql += statements.render_series_sql(spec, points, config)

    logger.info(
        "Rendered backfill document",
        extra={"mode": "clear" if clear else "insert-only", "reading_count": len(readings)},
    )
    return BackfillResult(sql=sql, summary=payload)


def _write(result: BackfillResult, output: Path) -> BackfillResult:
    try:
        output.write_text(result.sql, encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Cannot write output file {output}: {exc}") from exc
    result.output_path = str(output)
    logger.info("SQL written to %s", output)
    return result


def convert_file(
    input_path: str | Path,
    output_path: Optional[str | Path] = None,
    *,
    clear: bool = False,
    config: Optional[BackfillConfig] = None,
) -> BackfillResult:
    """Convert one export; output defaults to the input path with a .sql suffix."""
    config = config or default_config()
    src = Path(input_path)
    readings = ingest.from_path(src, config=config)
    result = render(readings, config, clear=clear, sources=[src.name])
    output = Path(output_path) if output_path else src.with_suffix(".sql")
    return _write(result, output)


def merge_files(
    primary_path: str | Path,
    secondary_path: str | Path,
    output_path: Optional[str | Path] = None,
    *,
    clear: bool = False,
    config: Optional[BackfillConfig] = None,
) -> BackfillResult:
    """
    Convert two overlapping exports; primary wins shared timestamps.

    Both inputs are checked before either is parsed. Output defaults to
    merged.sql beside the primary file.
    """
    config = config or default_config()
    primary = ingest.check_readable(primary_path, MergeSourceError)
    secondary = ingest.check_readable(secondary_path, MergeSourceError)

    merged, report = merge.merge_with_report(
        ingest.from_path(primary, config=config),
        ingest.from_path(secondary, config=config),
    )
    logger.info(
        "Merged readings: %d added from secondary",
        report.added_from_secondary,
        extra={"reading_count": report.merged_count},
    )
    result = render(
        merged,
        config,
        clear=clear,
        sources=[primary.name, secondary.name],
        merge_report=report,
    )
    output = Path(output_path) if output_path else primary.parent / "merged.sql"
    return _write(result, output)
