"""sflux — core internal data models.

These are plain dataclasses with no framework dependencies.
Store client objects are converted to/from these at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Precision marker attached to every point; timestamps are epoch seconds.
PRECISION_SECONDS = "s"


@dataclass(frozen=True)
class CounterRecord:
    """One polled snapshot of an interface's traffic counters.

    Integer attributes appear in the same order as the input columns.
    ``if_direction`` follows the MAU MIB convention (RFC 2668):
    0 = unknown, 1 = full-duplex, 2 = half-duplex, 3 = in, 4 = out.
    """
    source: str
    if_index: int = 0
    if_type: int = 0
    if_speed: int = 0
    if_direction: int = 0
    if_status: int = 0
    if_in_octets: int = 0
    if_in_ucast_pkts: int = 0
    if_in_multicast_pkts: int = 0
    if_in_broadcast_pkts: int = 0
    if_in_discards: int = 0
    if_in_errors: int = 0
    if_in_unknown_protos: int = 0
    if_out_octets: int = 0
    if_out_ucast_pkts: int = 0
    if_out_multicast_pkts: int = 0
    if_out_broadcast_pkts: int = 0
    if_out_discards: int = 0
    if_out_errors: int = 0
    if_promiscuous_mode: int = 0
    timestamp: int = 0


# Integer columns following the source column, in input order.
COUNTER_COLUMNS: tuple[str, ...] = (
    "if_index",
    "if_type",
    "if_speed",
    "if_direction",
    "if_status",
    "if_in_octets",
    "if_in_ucast_pkts",
    "if_in_multicast_pkts",
    "if_in_broadcast_pkts",
    "if_in_discards",
    "if_in_errors",
    "if_in_unknown_protos",
    "if_out_octets",
    "if_out_ucast_pkts",
    "if_out_multicast_pkts",
    "if_out_broadcast_pkts",
    "if_out_discards",
    "if_out_errors",
    "if_promiscuous_mode",
)


@dataclass(frozen=True)
class MetricPoint:
    """One named, tagged, timestamped value destined for the store."""
    measurement: str
    value: int
    timestamp: int
    tags: dict[str, str] = field(default_factory=dict)
    precision: str = PRECISION_SECONDS
