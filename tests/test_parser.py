"""Tests for the counter line parser."""

from __future__ import annotations

import pytest

from conftest import SAMPLE_LINE
from sflux.core.errors import MalformedRecordError
from sflux.core.models import CounterRecord
from sflux.core.parser import EXPECTED_FIELDS, format_line, parse_int, parse_line


def test_parse_sample_line():
    record = parse_line(SAMPLE_LINE)

    assert record == CounterRecord(
        source="eth0",
        if_index=1,
        if_type=6,
        if_speed=1000,
        if_direction=1,
        if_status=1,
        if_in_octets=10,
        if_in_ucast_pkts=20,
        if_in_multicast_pkts=0,
        if_in_broadcast_pkts=0,
        if_in_discards=0,
        if_in_errors=0,
        if_in_unknown_protos=0,
        if_out_octets=5,
        if_out_ucast_pkts=6,
        if_out_multicast_pkts=0,
        if_out_broadcast_pkts=0,
        if_out_discards=1,
        if_out_errors=1,
        if_promiscuous_mode=0,
        timestamp=1700000000,
    )


def test_counters_land_in_input_order(make_line):
    record = parse_line(make_line(timestamp=1700000060, source="core-1", if_index=7))

    assert record.source == "core-1"
    assert record.if_index == 7
    assert record.timestamp == 1700000060
    assert record.if_in_octets == 100
    assert record.if_in_ucast_pkts == 101
    assert record.if_in_unknown_protos == 106
    assert record.if_out_octets == 107
    assert record.if_out_errors == 112
    assert record.if_promiscuous_mode == 113


def test_timestamp_takes_token_before_first_space():
    line = SAMPLE_LINE.replace("1700000000 x", "1700000123 2023-11-14 22:13:20 UTC")
    assert parse_line(line).timestamp == 1700000123


def test_trailing_newline_is_ignored():
    assert parse_line(SAMPLE_LINE + "\r\n") == parse_line(SAMPLE_LINE)


def test_unparseable_counter_becomes_zero():
    columns = SAMPLE_LINE.split(",")
    columns[7] = "n/a"  # ifInOctets
    record = parse_line(",".join(columns))

    assert record.if_in_octets == 0
    assert record.if_in_ucast_pkts == 20


def test_unparseable_timestamp_becomes_zero():
    line = SAMPLE_LINE.replace("1700000000 x", "yesterday")
    assert parse_line(line).timestamp == 0


def test_extra_columns_are_ignored():
    assert parse_line(SAMPLE_LINE + ",42,43") == parse_line(SAMPLE_LINE)


def test_short_line_is_malformed():
    short = ",".join(SAMPLE_LINE.split(",")[:10])

    with pytest.raises(MalformedRecordError) as excinfo:
        parse_line(short)
    assert excinfo.value.field_count == 10
    assert excinfo.value.line == short


def test_exactly_one_missing_column_is_malformed():
    columns = SAMPLE_LINE.split(",")
    assert len(columns) == EXPECTED_FIELDS

    with pytest.raises(MalformedRecordError):
        parse_line(",".join(columns[:-1]))


def test_empty_line_is_malformed():
    with pytest.raises(MalformedRecordError):
        parse_line("")


@pytest.mark.parametrize("text,expected", [
    ("42", 42),
    ("-7", -7),
    ("+7", 7),
    ("0", 0),
    ("0x1F", 31),
    ("0X1f", 31),
    ("0o17", 15),
    ("0b101", 5),
    ("010", 8),
    ("1_000", 1000),
    ("", 0),
    ("abc", 0),
    ("12abc", 0),
    ("3.5", 0),
    ("09", 0),
    ("99999999999999999999", 2 ** 63 - 1),
    ("-99999999999999999999", -(2 ** 63)),
])
def test_parse_int(text, expected):
    assert parse_int(text) == expected


def test_format_line_round_trips_integer_fields(make_line):
    line = make_line(timestamp=1700000300, source="edge-9", if_index=12)
    record = parse_line(line)

    assert format_line(record) == line
    assert parse_line(format_line(record)) == record


def test_format_line_drops_timestamp_suffix():
    assert format_line(parse_line(SAMPLE_LINE)) == SAMPLE_LINE.replace("1700000000 x", "1700000000")
