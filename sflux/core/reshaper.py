"""Reshaper — expands one wide counter record into tall metric points.

Each record yields one point per MetricField, in enum order, tagged with the
record's source and interface index. Values are pulled through the explicit
METRIC_ACCESSORS table, never by attribute name.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable

from sflux.core.models import PRECISION_SECONDS, CounterRecord, MetricPoint

TAG_SOURCE = "Source"
TAG_IF_INDEX = "IfIndex"


class MetricField(str, Enum):
    """Counters shipped to the store; member order is point order."""
    IF_IN_OCTETS = "IfInOctets"
    IF_OUT_OCTETS = "IfOutOctets"
    IF_IN_DISCARDS = "IfInDiscards"
    IF_IN_BROADCAST_PKTS = "IfInBroadcastPkts"
    IF_IN_MULTICAST_PKTS = "IfInMulticastPkts"
    IF_IN_UCAST_PKTS = "IfInUcastPkts"
    IF_OUT_UCAST_PKTS = "IfOutUcastPkts"
    IF_OUT_MULTICAST_PKTS = "IfOutMulticastPkts"
    IF_OUT_BROADCAST_PKTS = "IfOutBroadcastPkts"
    IF_OUT_DISCARDS = "IfOutDiscards"
    IF_OUT_ERRORS = "IfOutErrors"


METRIC_ACCESSORS: dict[MetricField, Callable[[CounterRecord], int]] = {
    MetricField.IF_IN_OCTETS: lambda r: r.if_in_octets,
    MetricField.IF_OUT_OCTETS: lambda r: r.if_out_octets,
    MetricField.IF_IN_DISCARDS: lambda r: r.if_in_discards,
    MetricField.IF_IN_BROADCAST_PKTS: lambda r: r.if_in_broadcast_pkts,
    MetricField.IF_IN_MULTICAST_PKTS: lambda r: r.if_in_multicast_pkts,
    MetricField.IF_IN_UCAST_PKTS: lambda r: r.if_in_ucast_pkts,
    MetricField.IF_OUT_UCAST_PKTS: lambda r: r.if_out_ucast_pkts,
    MetricField.IF_OUT_MULTICAST_PKTS: lambda r: r.if_out_multicast_pkts,
    MetricField.IF_OUT_BROADCAST_PKTS: lambda r: r.if_out_broadcast_pkts,
    MetricField.IF_OUT_DISCARDS: lambda r: r.if_out_discards,
    MetricField.IF_OUT_ERRORS: lambda r: r.if_out_errors,
}

_missing = set(MetricField) - set(METRIC_ACCESSORS)
if _missing:
    raise RuntimeError(f"metric fields without accessor: {sorted(m.value for m in _missing)}")

POINTS_PER_RECORD = len(MetricField)


def record_tags(record: CounterRecord) -> dict[str, str]:
    return {TAG_SOURCE: record.source, TAG_IF_INDEX: str(record.if_index)}


def reshape(record: CounterRecord) -> list[MetricPoint]:
    """Return exactly POINTS_PER_RECORD points for ``record``."""
    return [
        MetricPoint(
            measurement=metric.value,
            value=METRIC_ACCESSORS[metric](record),
            timestamp=record.timestamp,
            tags=record_tags(record),
            precision=PRECISION_SECONDS,
        )
        for metric in MetricField
    ]


def reshape_batch(records: Iterable[CounterRecord]) -> list[MetricPoint]:
    """Reshape records in order; points stay grouped per record."""
    points: list[MetricPoint] = []
    for record in records:
        points.extend(reshape(record))
    return points
