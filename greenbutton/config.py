from __future__ import annotations

import os
from typing import Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from . import canon
from .exceptions import ConfigError
from .types import Dialect, SeriesSpec

_LOG_LEVEL_ENV = "GREENBUTTON_LOG_LEVEL"

# (key, display suffix, source field, origin)
_CATALOGUE = (
    ("on_peak", "On-Peak", "consumption_kwh", "on_peak"),
    ("mid_peak", "Mid-Peak", "consumption_kwh", "mid_peak"),
    ("off_peak", "Off-Peak", "consumption_kwh", "off_peak"),
    ("on_peak_cost", "On-Peak Cost", "cost", "on_peak"),
    ("mid_peak_cost", "Mid-Peak Cost", "cost", "mid_peak"),
    ("off_peak_cost", "Off-Peak Cost", "cost", "off_peak"),
    ("daily_usage", "Daily Usage", "consumption_kwh", "daily"),
    ("daily_cost", "Daily Cost", "cost", "daily"),
)


class BackfillConfig(BaseModel):
    """Immutable settings shared by every stage of a run."""

    # Unit scaling
    consumption_divisor: int = Field(default=canon.CONSUMPTION_DIVISOR, gt=0)
    cost_divisor: int = Field(default=canon.COST_DIVISOR, gt=0)

    # Extraction
    interval_seconds: int = Field(default=canon.HOURLY_SECONDS, gt=0)
    default_tou: int = canon.DEFAULT_TOU
    tier_names: Dict[int, str] = Field(default_factory=lambda: dict(canon.TIER_NAMES))

    # Daily aggregation
    timezone: str = canon.DEFAULT_TZ
    daily_utc_hour: int = Field(default=canon.DAILY_UTC_HOUR, ge=0, le=23)

    # Statement output
    batch_size: int = Field(default=canon.BATCH_SIZE, gt=0)
    precision: int = Field(default=canon.PRECISION, ge=0)
    source: str = Field(default=canon.DEFAULT_SOURCE, min_length=1)
    display_prefix: str = canon.DEFAULT_DISPLAY_PREFIX
    currency: str = canon.DEFAULT_CURRENCY
    dialect: Dialect = "mysql"

    model_config = {"frozen": True}

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("source")
    @classmethod
    def _plain_source(cls, value: str) -> str:
        if ":" in value or "'" in value or "%" in value:
            raise ValueError("source must not contain ':', '%' or quotes")
        return value

    def statistic_id(self, key: str) -> str:
        return f"{self.source}:{key}"

    def tier_name(self, code: int) -> str:
        return self.tier_names.get(code, self.tier_names.get(canon.DEFAULT_TOU, "Off-Peak"))

    def catalogue(self) -> List[SeriesSpec]:
        """The eight output series, in emission order."""
        out: List[SeriesSpec] = []
        for key, label, source_field, origin in _CATALOGUE:
            unit = canon.ENERGY_UNIT if source_field == "consumption_kwh" else self.currency
            out.append(
                SeriesSpec(
                    key=key,
                    statistic_id=self.statistic_id(key),
                    name=f"{self.display_prefix} {label}".strip(),
                    unit=unit,
                    source_field=source_field,
                    origin=origin,
                )
            )
        return out

    def with_overrides(self, **changes) -> "BackfillConfig":
        """Return a validated copy with the given fields replaced."""
        return build_config(**{**self.model_dump(), **changes})


def build_config(**overrides) -> BackfillConfig:
    try:
        return BackfillConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def default_config() -> BackfillConfig:
    return BackfillConfig()


def read_log_level(default: str = "INFO") -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()
