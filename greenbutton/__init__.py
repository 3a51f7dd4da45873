from . import (
    canon,
    config,
    exceptions,
    types,
    utils,
    ingest,
    validate,
    transform,
    merge,
    statements,
    summary,
    pipeline,
)

__all__ = [
    "canon",
    "config",
    "exceptions",
    "types",
    "utils",
    "ingest",
    "validate",
    "transform",
    "merge",
    "statements",
    "summary",
    "pipeline",
]
