#!/usr/bin/env python3
"""sflux counter record simulator.

Generates realistic interface counter lines for feeding the pipeline.

Usage:
    # 3 switches x 24 ports, 10 polling sweeps, straight into a local InfluxDB
    python -m tools.simulator.simulate --sources 3 --interfaces 24 --sweeps 10 | sflux -d netstats

    # Live feed: one sweep every 30s, with 1% garbage lines
    python -m tools.simulator.simulate --realtime --interval 30 --malformed-rate 0.01 | sflux -d netstats
"""

from __future__ import annotations

import argparse
import random
import sys
import time
from dataclasses import dataclass, replace

from sflux.core.models import CounterRecord
from sflux.core.parser import format_line

# ifType 6 = ethernetCsmacd
IF_TYPE_ETHERNET = 6
SPEEDS = [100_000_000, 1_000_000_000, 10_000_000_000]


@dataclass
class SimInterface:
    record: CounterRecord
    utilization: float  # fraction of link speed used on average


def make_interface(source: str, if_index: int) -> SimInterface:
    record = CounterRecord(
        source=source,
        if_index=if_index,
        if_type=IF_TYPE_ETHERNET,
        if_speed=random.choice(SPEEDS),
        if_direction=random.choices([0, 1, 2], weights=[5, 90, 5])[0],
        if_status=1,
    )
    return SimInterface(record=record, utilization=random.uniform(0.001, 0.3))


def advance(iface: SimInterface, dt_seconds: float, timestamp: int) -> None:
    """Grow the interface counters by one polling interval of traffic."""
    r = iface.record
    bytes_per_s = r.if_speed / 8 * iface.utilization * random.uniform(0.5, 1.5)
    in_octets = int(bytes_per_s * dt_seconds)
    out_octets = int(in_octets * random.uniform(0.3, 1.2))
    in_pkts = in_octets // random.randint(200, 1400)
    out_pkts = out_octets // random.randint(200, 1400)

    iface.record = replace(
        r,
        if_in_octets=r.if_in_octets + in_octets,
        if_out_octets=r.if_out_octets + out_octets,
        if_in_ucast_pkts=r.if_in_ucast_pkts + int(in_pkts * 0.97),
        if_in_multicast_pkts=r.if_in_multicast_pkts + int(in_pkts * 0.02),
        if_in_broadcast_pkts=r.if_in_broadcast_pkts + int(in_pkts * 0.01),
        if_out_ucast_pkts=r.if_out_ucast_pkts + int(out_pkts * 0.98),
        if_out_multicast_pkts=r.if_out_multicast_pkts + int(out_pkts * 0.015),
        if_out_broadcast_pkts=r.if_out_broadcast_pkts + int(out_pkts * 0.005),
        if_in_discards=r.if_in_discards + (random.random() < 0.05),
        if_in_errors=r.if_in_errors + (random.random() < 0.01),
        if_out_discards=r.if_out_discards + (random.random() < 0.05),
        if_out_errors=r.if_out_errors + (random.random() < 0.01),
        timestamp=timestamp,
    )


def malformed_line(iface: SimInterface) -> str:
    """A truncated line, as written by a collector killed mid-write."""
    line = format_line(iface.record)
    columns = line.split(",")
    return ",".join(columns[:random.randint(1, len(columns) - 1)])


def run_simulation(args: argparse.Namespace, out=sys.stdout) -> int:
    """Print all sweeps; returns the number of lines written."""
    interfaces = [
        make_interface(f"{args.source_prefix}{s}", i)
        for s in range(1, args.sources + 1)
        for i in range(1, args.interfaces + 1)
    ]

    timestamp = args.start if args.start is not None else int(time.time())
    written = 0
    sweep = 0
    while args.sweeps == 0 or sweep < args.sweeps:
        for iface in interfaces:
            advance(iface, args.interval, timestamp)
            if random.random() < args.malformed_rate:
                out.write(malformed_line(iface) + "\n")
            else:
                out.write(format_line(iface.record) + "\n")
            written += 1
        out.flush()
        sweep += 1
        timestamp += int(args.interval)
        if args.realtime:
            time.sleep(args.interval)

    print(f"Simulation complete: {written} lines, {sweep} sweeps", file=sys.stderr)
    return written


def main():
    parser = argparse.ArgumentParser(description="sflux counter record simulator")
    parser.add_argument("--sources", type=int, default=2, help="Number of simulated devices")
    parser.add_argument("--interfaces", type=int, default=8, help="Interfaces per device")
    parser.add_argument("--sweeps", type=int, default=5,
                        help="Polling sweeps to emit (0 = until interrupted)")
    parser.add_argument("--interval", type=float, default=60.0, help="Seconds between sweeps")
    parser.add_argument("--start", type=int, default=None, help="Epoch seconds of the first sweep (default: now)")
    parser.add_argument("--source-prefix", default="sw", help="Device name prefix")
    parser.add_argument("--malformed-rate", type=float, default=0.0,
                        help="Fraction of lines emitted truncated (default: 0)")
    parser.add_argument("--realtime", action="store_true", help="Sleep --interval between sweeps")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")

    args = parser.parse_args()
    if args.seed is not None:
        random.seed(args.seed)

    try:
        run_simulation(args)
    except (KeyboardInterrupt, BrokenPipeError):
        pass


if __name__ == "__main__":
    main()
