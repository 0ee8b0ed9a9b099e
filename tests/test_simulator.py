"""Tests for the counter line simulator tool."""

from __future__ import annotations

import argparse
import io
import random

import pytest

from sflux.core.errors import MalformedRecordError
from sflux.core.parser import parse_line
from tools.simulator.simulate import run_simulation


def _args(**overrides) -> argparse.Namespace:
    values = dict(sources=2, interfaces=3, sweeps=4, interval=60.0, start=1700000000,
                  source_prefix="sw", malformed_rate=0.0, realtime=False)
    values.update(overrides)
    return argparse.Namespace(**values)


def test_lines_are_parseable_and_counters_grow():
    random.seed(7)
    out = io.StringIO()

    written = run_simulation(_args(), out=out)

    records = [parse_line(line) for line in out.getvalue().splitlines()]
    assert written == len(records) == 2 * 3 * 4
    assert {r.source for r in records} == {"sw1", "sw2"}
    assert sorted({r.timestamp for r in records}) == [1700000000, 1700000060, 1700000120, 1700000180]

    eth = [r for r in records if r.source == "sw1" and r.if_index == 2]
    assert [r.if_in_octets for r in eth] == sorted(r.if_in_octets for r in eth)


def test_malformed_lines_are_rejected_by_parser():
    random.seed(7)
    out = io.StringIO()

    run_simulation(_args(sweeps=1, malformed_rate=1.0), out=out)

    for line in out.getvalue().splitlines():
        with pytest.raises(MalformedRecordError):
            parse_line(line)
