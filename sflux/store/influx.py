"""InfluxDB implementation of StoreClient.

Talks to the InfluxDB 1.x compatibility API through influxdb-client:
the bucket is "<database>/<retention policy>" and static credentials are
sent as a "<username>:<password>" token.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Sequence

import structlog
from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from sflux.core.errors import StoreConnectionError, StoreError

if TYPE_CHECKING:
    from sflux.config import StoreConfig
    from sflux.core.models import MetricPoint

log = structlog.get_logger()

# Org is ignored by the 1.x compatibility endpoints.
V1_ORG = "-"

_PRECISIONS = {
    "s": WritePrecision.S,
    "ms": WritePrecision.MS,
    "us": WritePrecision.US,
    "ns": WritePrecision.NS,
}


def to_influx_point(point: MetricPoint) -> Point:
    """Convert a MetricPoint into an influxdb-client Point."""
    influx_point = Point(point.measurement)
    for key, value in point.tags.items():
        influx_point = influx_point.tag(key, value)
    return (
        influx_point
        .field("value", int(point.value))
        .time(point.timestamp, _PRECISIONS[point.precision])
    )


class InfluxStoreClient:
    """StoreClient backed by an influxdb_client.InfluxDBClient."""

    def __init__(self, client: Any, url: str = "") -> None:
        self._client = client
        self._url = url
        self._write_api = client.write_api(write_options=SYNCHRONOUS)

    @classmethod
    def from_config(cls, config: StoreConfig) -> InfluxStoreClient:
        url = f"http://{config.host}:{config.port}"
        token = f"{config.username}:{config.password}" if config.username else None
        client = InfluxDBClient(
            url=url,
            token=token,
            org=V1_ORG,
            timeout=int(config.timeout_seconds * 1000),
        )
        log.info("store_client_created", url=url, user=config.username or None)
        return cls(client, url=url)

    @property
    def url(self) -> str:
        return self._url

    def ping(self) -> tuple[float, str]:
        start = time.monotonic()
        try:
            alive = self._client.ping()
        except Exception as exc:
            raise StoreConnectionError(f"ping {self._url} failed: {exc}") from exc
        if not alive:
            raise StoreConnectionError(f"ping {self._url} failed")
        latency = time.monotonic() - start

        try:
            version = self._client.version()
        except Exception as exc:
            raise StoreConnectionError(f"version query {self._url} failed: {exc}") from exc
        return latency, version

    def write_points(
        self,
        points: Sequence[MetricPoint],
        database: str,
        retention_policy: str,
        precision: str = "s",
    ) -> None:
        if precision not in _PRECISIONS:
            raise StoreError(f"unsupported precision {precision!r}")
        records = [to_influx_point(p) for p in points]
        try:
            self._write_api.write(
                bucket=f"{database}/{retention_policy}",
                org=V1_ORG,
                record=records,
                write_precision=_PRECISIONS[precision],
            )
        except Exception as exc:
            raise StoreError(f"write of {len(records)} points to {database} failed: {exc}") from exc

    def close(self) -> None:
        self._write_api.close()
        self._client.close()
