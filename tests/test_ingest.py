"""Extraction of hourly readings from Green Button feeds."""

import pytest

from greenbutton import ingest
from greenbutton.config import default_config
from greenbutton.exceptions import InputAccessError, MalformedDocumentError


def test_scenario_units_and_order(scenario_xml):
    readings = ingest.from_xml(scenario_xml)
    assert [r.timestamp for r in readings] == [1700000000, 1700003600]
    assert [r.consumption_kwh for r in readings] == [0.5, 0.3]
    assert [r.cost for r in readings] == [0.1, 0.06]
    assert [r.tou for r in readings] == [1, 3]


def test_accepts_bytes(scenario_xml):
    readings = ingest.from_xml(scenario_xml.encode("utf-8"))
    assert len(readings) == 2


@pytest.mark.parametrize("raw", [0, 1, 7, 999_999, 1_000_000, 123_456_789])
def test_unit_conversion_is_plain_division(make_feed, raw):
    xml = make_feed([[{"start": 1700000000, "value": raw, "cost": raw + 1, "tou": 2}]])
    (r,) = ingest.from_xml(xml)
    assert r.consumption_kwh == raw / 1_000_000
    assert r.cost == (raw + 1) / 100_000


def test_non_hourly_durations_are_skipped(make_feed, scenario_readings):
    half_hour = {"start": 1700007200, "duration": 1800, "value": 100000, "cost": 100}
    daily = {"start": 1700010800, "duration": 86400, "value": 100000, "cost": 100}
    xml = make_feed([scenario_readings + [half_hour], [daily]])
    readings = ingest.from_xml(xml)
    assert len(readings) == 2
    assert 1700007200 not in {r.timestamp for r in readings}


def test_zero_value_and_cost_dropped(make_feed):
    xml = make_feed(
        [
            [
                {"start": 1700000000, "value": 0, "cost": 0, "tou": 1},
                {"start": 1700003600, "value": 0, "cost": 500, "tou": 1},
                {"start": 1700007200, "value": 500, "cost": 0, "tou": 1},
            ]
        ]
    )
    readings = ingest.from_xml(xml)
    assert [r.timestamp for r in readings] == [1700003600, 1700007200]


def test_missing_value_and_cost_counts_as_zero(make_feed):
    xml = make_feed([[{"start": 1700000000, "tou": 1}]])
    assert ingest.from_xml(xml) == []


def test_tou_defaults_to_off_peak(make_feed):
    xml = make_feed([[{"start": 1700000000, "value": 1000, "cost": 10}]])
    (r,) = ingest.from_xml(xml)
    assert r.tou == 3


def test_sorted_with_stable_ties(make_feed):
    xml = make_feed(
        [
            [
                {"start": 1700007200, "value": 1, "cost": 1, "tou": 1},
                {"start": 1700000000, "value": 2, "cost": 1, "tou": 1},
            ],
            [
                {"start": 1700007200, "value": 3, "cost": 1, "tou": 2},
            ],
        ]
    )
    readings = ingest.from_xml(xml)
    assert [r.timestamp for r in readings] == [1700000000, 1700007200, 1700007200]
    # equal timestamps keep document order
    assert [r.tou for r in readings[1:]] == [1, 2]


@pytest.mark.parametrize(
    "prefix, atom_prefix",
    [("espi", None), (None, None), (None, "atom"), ("ns3", "ns0")],
)
def test_namespace_decoration_is_ignored(make_feed, scenario_readings, prefix, atom_prefix):
    xml = make_feed([scenario_readings], prefix=prefix, atom_prefix=atom_prefix)
    assert len(ingest.from_xml(xml)) == 2


def test_plain_unqualified_feed():
    xml = """<feed><entry><content><IntervalBlock>
        <IntervalReading>
          <timePeriod><duration>3600</duration><start>1700000000</start></timePeriod>
          <value>1000000</value><cost>100000</cost><tou>2</tou>
        </IntervalReading>
    </IntervalBlock></content></entry></feed>"""
    (r,) = ingest.from_xml(xml)
    assert (r.consumption_kwh, r.cost, r.tou) == (1.0, 1.0, 2)


def test_undeclared_namespace_prefix_is_ignored():
    xml = """<feed><entry><content><espi:IntervalBlock>
        <espi:IntervalReading>
          <espi:timePeriod><espi:duration>3600</espi:duration><espi:start>1700000000</espi:start></espi:timePeriod>
          <espi:value>1000000</espi:value><espi:cost>100000</espi:cost><espi:tou>1</espi:tou>
        </espi:IntervalReading>
    </espi:IntervalBlock></content></entry></feed>"""
    (r,) = ingest.from_xml(xml)
    assert (r.timestamp, r.consumption_kwh, r.cost, r.tou) == (1700000000, 1.0, 1.0, 1)


def test_undeclared_prefix_does_not_hide_broken_markup():
    with pytest.raises(MalformedDocumentError):
        ingest.from_xml("<feed><entry><espi:content></entry></feed>")


@pytest.mark.parametrize("encoding", ["UTF-16", "ISO-8859-1", "utf-8"])
def test_text_with_encoding_declaration(scenario_xml, encoding):
    body = scenario_xml.split("?>", 1)[1]
    text = f'<?xml version="1.0" encoding="{encoding}"?>\n' + body
    assert len(ingest.from_xml(text)) == 2
    assert len(ingest.from_xml("\ufeff" + text)) == 2


def test_missing_structure_yields_nothing():
    assert ingest.from_xml("<notafeed/>") == []
    assert ingest.from_xml("<feed/>") == []
    assert ingest.from_xml("<feed><entry><title>x</title></entry></feed>") == []
    assert ingest.from_xml("<feed><entry><content/></entry></feed>") == []
    # block without readings, reading without timePeriod
    xml = (
        "<feed><entry><content><IntervalBlock/>"
        "<IntervalBlock><IntervalReading><value>5</value></IntervalReading></IntervalBlock>"
        "</content></entry></feed>"
    )
    assert ingest.from_xml(xml) == []


def test_non_integer_field_skips_only_that_reading(make_feed):
    xml = make_feed(
        [
            [
                {"start": 1700000000, "value": "abc", "cost": 10, "tou": 1},
                {"start": 1700003600, "value": 1000, "cost": 10, "tou": 1},
            ]
        ]
    )
    readings = ingest.from_xml(xml)
    assert [r.timestamp for r in readings] == [1700003600]


def test_custom_interval_and_divisors(make_feed):
    cfg = default_config().with_overrides(
        interval_seconds=900, consumption_divisor=1000, cost_divisor=100
    )
    xml = make_feed(
        [
            [
                {"start": 1700000000, "duration": 900, "value": 500, "cost": 25},
                {"start": 1700000900, "duration": 3600, "value": 500, "cost": 25},
            ]
        ]
    )
    (r,) = ingest.from_xml(xml, config=cfg)
    assert (r.consumption_kwh, r.cost) == (0.5, 0.25)


@pytest.mark.parametrize("bad", ["", "<feed>", "<feed><entry></feed>", "not xml at all"])
def test_malformed_document_raises(bad):
    with pytest.raises(MalformedDocumentError):
        ingest.from_xml(bad)


def test_from_path_reads_file(tmp_path, scenario_xml):
    path = tmp_path / "export.xml"
    path.write_text(scenario_xml, encoding="utf-8")
    assert len(ingest.from_path(path)) == 2


def test_from_path_missing_file(tmp_path):
    with pytest.raises(InputAccessError):
        ingest.from_path(tmp_path / "nope.xml")


def test_from_path_directory_is_not_a_file(tmp_path):
    with pytest.raises(InputAccessError):
        ingest.from_path(tmp_path)
