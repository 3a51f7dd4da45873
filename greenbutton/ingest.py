from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from lxml import etree

from . import canon, utils
from .config import BackfillConfig, default_config
from .exceptions import InputAccessError, MalformedDocumentError
from .types import Reading

logger = logging.getLogger(__name__)

_PARSER_OPTIONS = dict(resolve_entities=False, no_network=True, huge_tree=True)
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


class _SkipReading(Exception):
    """Raised inside the walk when one IntervalReading cannot be used."""


def _normalise_names(root: etree._Element) -> etree._Element:
    """Rewrite every element and attribute name to its bare local name, in place."""
    for el in root.iter():
        if not isinstance(el.tag, str):
            continue  # comments, processing instructions
        el.tag = utils.local_name(el.tag)
        for name in list(el.attrib):
            bare = utils.local_name(name)
            if bare != name:
                el.attrib[bare] = el.attrib.pop(name)
    return root


def _children(el: etree._Element, name: str) -> Iterator[etree._Element]:
    return (c for c in el if c.tag == name)


def _first(el: etree._Element, name: str) -> Optional[etree._Element]:
    return next(_children(el, name), None)


def _int_field(el: etree._Element, name: str, default: Optional[int]) -> Optional[int]:
    child = _first(el, name)
    raw = (child.text or "").strip() if child is not None else ""
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise _SkipReading(f"non-integer {name}: {raw!r}") from None


def _iter_reading_elements(root: etree._Element) -> Iterator[etree._Element]:
    """feed -> entry -> content -> IntervalBlock -> IntervalReading."""
    if root.tag != canon.FEED:
        return
    for entry in _children(root, canon.ENTRY):
        content = _first(entry, canon.CONTENT)
        if content is None:
            continue
        for block in _children(content, canon.INTERVAL_BLOCK):
            yield from _children(block, canon.INTERVAL_READING)


def _to_reading(el: etree._Element, config: BackfillConfig) -> Optional[Reading]:
    period = _first(el, canon.TIME_PERIOD)
    if period is None:
        return None
    start = _int_field(period, "start", None)
    duration = _int_field(period, "duration", None)
    if start is None or duration != config.interval_seconds:
        return None

    value = _int_field(el, "value", 0)
    cost = _int_field(el, "cost", 0)
    tou = _int_field(el, "tou", config.default_tou)

    # zero/zero blocks are non-billing placeholders
    if value == 0 and cost == 0:
        return None

    return Reading(
        timestamp=start,
        consumption_kwh=value / config.consumption_divisor,
        cost=cost / config.cost_divisor,
        tou=tou,
    )


def _fatal_errors(parser: etree.XMLParser) -> list:
    """Parser errors other than prefixes used without an xmlns declaration."""
    return [
        e
        for e in parser.error_log
        if e.level >= etree.ErrorLevels.ERROR
        and e.type != etree.ErrorTypes.NS_ERR_UNDEFINED_NAMESPACE
    ]


def parse_document(document: str | bytes) -> etree._Element:
    """
    Parse XML text into a tree with namespace-free names.

    Text input is parsed as UTF-8 with its XML declaration dropped.
    Undeclared namespace prefixes are tolerated; any other error is fatal.
    """
    if isinstance(document, str):
        document = _XML_DECLARATION.sub("", document.lstrip("\ufeff"), count=1)
        document = document.encode("utf-8")
    parser = etree.XMLParser(recover=True, **_PARSER_OPTIONS)
    try:
        root = etree.fromstring(document, parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise MalformedDocumentError(f"Document is not well-formed XML: {exc}") from exc
    errors = _fatal_errors(parser)
    if errors:
        raise MalformedDocumentError(f"Document is not well-formed XML: {errors[0].message}")
    if root is None:
        raise MalformedDocumentError("Document has no root element.")
    return _normalise_names(root)


def from_xml(
    document: str | bytes,
    *,
    config: Optional[BackfillConfig] = None,
    source: str = "<memory>",
) -> list[Reading]:
    """
    Extract hourly readings from a Green Button (ESPI) feed.

    - Only intervals of exactly config.interval_seconds are kept.
    - Readings with zero value and zero cost are dropped.
    - Result is sorted by timestamp; equal timestamps keep document order.
    """
    config = config or default_config()
    root = parse_document(document)

    readings: list[Reading] = []
    seen = skipped = 0
    for el in _iter_reading_elements(root):
        seen += 1
        try:
            reading = _to_reading(el, config)
        except _SkipReading as exc:
            logger.warning("Skipping interval reading", extra={"source": source, "reason": str(exc)})
            reading = None
        if reading is None:
            skipped += 1
            continue
        readings.append(reading)

    readings.sort(key=lambda r: r.timestamp)
    logger.debug(
        "Skipped %d of %d interval readings", skipped, seen, extra={"source": source}
    )
    logger.info(
        "Extracted hourly readings", extra={"source": source, "reading_count": len(readings)}
    )
    return readings


def check_readable(path: str | Path, exc: type[InputAccessError] = InputAccessError) -> Path:
    p = Path(path)
    if not p.is_file():
        raise exc(f"Input file not found: {p}")
    return p


def from_path(path: str | Path, *, config: Optional[BackfillConfig] = None) -> list[Reading]:
    """Read and extract a Green Button XML file."""
    p = check_readable(path)
    try:
        document = p.read_bytes()
    except OSError as exc:
        raise InputAccessError(f"Cannot read input file {p}: {exc}") from exc
    return from_xml(document, config=config, source=p.name)
