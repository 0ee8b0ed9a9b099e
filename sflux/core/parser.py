"""Record parser — decodes one comma-separated counter line.

Layout:
    <epoch>[ <anything>],<source>,<19 integer counters in COUNTER_COLUMNS order>

Numeric decoding is best-effort: a column that is present but not an integer
becomes 0. Only a line with too few columns is rejected.
"""

from __future__ import annotations

import re
from dataclasses import astuple

from sflux.core.errors import MalformedRecordError
from sflux.core.models import COUNTER_COLUMNS, CounterRecord

# Timestamp + source + counters.
EXPECTED_FIELDS = 2 + len(COUNTER_COLUMNS)

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

# "010" style octal, which int(text, 0) refuses.
_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7_]+")


def parse_int(text: str) -> int:
    """Parse decimal or 0x/0o/0b prefixed text, returning 0 on failure.

    Out-of-range values are clamped to the signed 64-bit range.
    """
    try:
        value = int(text, 0)
    except ValueError:
        if not _LEGACY_OCTAL.fullmatch(text):
            return 0
        try:
            value = int(text, 8)
        except ValueError:
            return 0
    return max(_INT64_MIN, min(_INT64_MAX, value))


def parse_line(line: str) -> CounterRecord:
    """Decode one input line into a CounterRecord.

    Raises MalformedRecordError when fewer than EXPECTED_FIELDS columns exist.
    Extra trailing columns are ignored.
    """
    line = line.rstrip("\r\n")
    columns = line.split(",")
    if len(columns) < EXPECTED_FIELDS:
        raise MalformedRecordError(
            f"expected {EXPECTED_FIELDS} fields, got {len(columns)}",
            line=line,
            field_count=len(columns),
        )

    timestamp = parse_int(columns[0].split(" ")[0])
    source = columns[1]
    counters = [parse_int(col) for col in columns[2:EXPECTED_FIELDS]]
    return CounterRecord(source, *counters, timestamp=timestamp)


def format_line(record: CounterRecord) -> str:
    """Render a record back into the input line format."""
    source, *counters, timestamp = astuple(record)
    return ",".join([str(timestamp), source, *(str(c) for c in counters)])
