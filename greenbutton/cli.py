from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .config import BackfillConfig, build_config
from .exceptions import GreenButtonError
from .logging_config import configure_logging
from .pipeline import convert_file, merge_files
from .types import BackfillResult, TouTier

app = typer.Typer(
    help="Convert Green Button XML exports into Home Assistant statistics SQL.",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
)

_CLEAR_HELP = "Include DELETE statements that clear existing statistics for this source first."
_DIALECT_HELP = "SQL dialect for idempotent inserts: mysql, sqlite or postgresql."


def render_result(result: BackfillResult, config: BackfillConfig) -> None:
    s = result.summary
    typer.echo(f"Found {s['reading_count']} hourly readings")
    merge = s.get("merge")
    if merge:
        typer.echo(f"  Added from secondary: {merge['added_from_secondary']} readings")
    typer.echo(f"Date range: {s['start']} to {s['end']}")
    tiers = s["tiers"]
    for tier in TouTier:
        label = f"{config.tier_name(tier.value)}:"
        typer.echo(f"  {label:<9} {tiers[tier.name.lower()]} readings")
    typer.echo(f"Aggregated to {s['daily_count']} daily records")
    typer.echo("")
    typer.echo("Summary:")
    typer.echo(f"  Total consumption: {s['total_consumption_kwh']:.2f} kWh")
    typer.echo(f"  Total cost: ${s['total_cost']:.2f}")
    if result.output_path:
        typer.secho(f"SQL written to: {result.output_path}", fg=typer.colors.GREEN)


def _fail(exc: GreenButtonError) -> typer.Exit:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


@app.command("convert")
def convert_command(
    input_path: Path = typer.Argument(..., help="Green Button XML export."),
    output_path: Optional[Path] = typer.Argument(
        None, help="SQL file to write (defaults to the input name with .sql)."
    ),
    clear: bool = typer.Option(False, "--clear", help=_CLEAR_HELP),
    dialect: str = typer.Option("mysql", "--dialect", help=_DIALECT_HELP),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Convert one export into a backfill SQL file."""
    try:
        configure_logging(log_level)
        config = build_config(dialect=dialect)
        result = convert_file(input_path, output_path, clear=clear, config=config)
    except GreenButtonError as exc:
        raise _fail(exc) from exc
    render_result(result, config)


@app.command("merge")
def merge_command(
    primary_path: Path = typer.Argument(..., help="Newer export; wins overlapping hours."),
    secondary_path: Path = typer.Argument(..., help="Older export; fills gaps only."),
    output_path: Optional[Path] = typer.Argument(
        None, help="SQL file to write (defaults to merged.sql beside the primary)."
    ),
    clear: bool = typer.Option(False, "--clear", help=_CLEAR_HELP),
    dialect: str = typer.Option("mysql", "--dialect", help=_DIALECT_HELP),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Merge two overlapping exports into one backfill SQL file."""
    try:
        configure_logging(log_level)
        config = build_config(dialect=dialect)
        result = merge_files(
            primary_path, secondary_path, output_path, clear=clear, config=config
        )
    except GreenButtonError as exc:
        raise _fail(exc) from exc
    render_result(result, config)
