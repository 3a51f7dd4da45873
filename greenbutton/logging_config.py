from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Iterable, Sequence

from .config import read_log_level
from .exceptions import ConfigError

_DEFAULT_EXTRA_KEYS = (
    "source",
    "statistic_id",
    "reading_count",
    "row_count",
    "batch_count",
    "mode",
    "reason",
)

_configured = False


class ContextualFormatter(logging.Formatter):

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append(f"{key}={value}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def resolve_level(level: str | int | None = None) -> int:
    """Numeric level for a name or number; falls back to the environment."""
    value = level if level is not None else read_log_level()
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ConfigError(f"Unknown log level: {value!r}")
    return resolved


def configure_logging(level: str | int | None = None) -> None:
    """Configure package logging with contextual formatting. Runs once per process."""
    global _configured
    log_level = resolve_level(level)
    if _configured:
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "greenbutton.logging_config.ContextualFormatter",
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                "greenbutton": {"handlers": ["default"], "level": log_level, "propagate": False},
            },
        }
    )

    _configured = True
