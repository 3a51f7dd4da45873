from datetime import datetime, timezone

import pytest

from greenbutton.types import Reading

ATOM_NS = "http://www.w3.org/2005/Atom"
ESPI_NS = "http://naesb.org/espi"


def _tag(prefix, name):
    return f"{prefix}:{name}" if prefix else name


def _reading_xml(r, prefix):
    t = lambda name: _tag(prefix, name)  # noqa: E731
    parts = [f"<{t('IntervalReading')}>"]
    if "cost" in r:
        parts.append(f"<{t('cost')}>{r['cost']}</{t('cost')}>")
    parts.append(
        f"<{t('timePeriod')}>"
        f"<{t('duration')}>{r.get('duration', 3600)}</{t('duration')}>"
        f"<{t('start')}>{r['start']}</{t('start')}>"
        f"</{t('timePeriod')}>"
    )
    if "value" in r:
        parts.append(f"<{t('value')}>{r['value']}</{t('value')}>")
    if "tou" in r:
        parts.append(f"<{t('tou')}>{r['tou']}</{t('tou')}>")
    parts.append(f"</{t('IntervalReading')}>")
    return "".join(parts)


def build_feed(blocks, *, prefix="espi", atom_prefix=None):
    """
    Build an ESPI feed. `blocks` is a list of IntervalBlocks, each a list of
    reading dicts with keys start, duration, value, cost, tou.
    """
    ns = f'xmlns:{prefix}="{ESPI_NS}"' if prefix else f'xmlns="{ESPI_NS}"'
    atom = (
        f'xmlns:{atom_prefix}="{ATOM_NS}"' if atom_prefix else f'xmlns="{ATOM_NS}"'
    )
    if not prefix and not atom_prefix:
        atom = ""
    a = lambda name: _tag(atom_prefix, name)  # noqa: E731
    t = lambda name: _tag(prefix, name)  # noqa: E731

    body = "".join(
        f"<{t('IntervalBlock')}>" + "".join(_reading_xml(r, prefix) for r in block)
        + f"</{t('IntervalBlock')}>"
        for block in blocks
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<{a('feed')} {atom} {ns}>"
        f"<{a('entry')}><{a('title')}>Usage</{a('title')}>"
        f"<{a('content')}>{body}</{a('content')}>"
        f"</{a('entry')}>"
        f"</{a('feed')}>"
    )


@pytest.fixture
def make_feed():
    return build_feed


@pytest.fixture
def scenario_readings():
    # one on-peak hour then one off-peak hour
    return [
        {"start": 1700000000, "duration": 3600, "value": 500000, "cost": 10000, "tou": 1},
        {"start": 1700003600, "duration": 3600, "value": 300000, "cost": 6000, "tou": 3},
    ]


@pytest.fixture
def scenario_xml(make_feed, scenario_readings):
    return make_feed([scenario_readings])


@pytest.fixture
def utc_ts():
    def _ts(*args):
        return int(datetime(*args, tzinfo=timezone.utc).timestamp())

    return _ts


@pytest.fixture
def hourly_readings(utc_ts):
    """Three days of hourly readings cycling through tou codes 1, 2, 3."""
    start = utc_ts(2024, 1, 10, 5)
    return [
        Reading(
            timestamp=start + i * 3600,
            consumption_kwh=0.25 + (i % 5) * 0.1,
            cost=0.02 + (i % 3) * 0.01,
            tou=(i % 3) + 1,
        )
        for i in range(72)
    ]
