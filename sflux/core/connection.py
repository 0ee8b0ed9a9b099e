"""Connection manager — owns the single store connection.

A cached handle is pinged before every reuse because it can go stale between
batches with no passive signal. A failed ping discards the handle and makes
exactly one fresh connect attempt.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

import structlog

from sflux.core.errors import StoreConnectionError

if TYPE_CHECKING:
    from sflux.core.stats import PipelineStats
    from sflux.store.base import StoreClient, StoreClientFactory

log = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    DEGRADED = "degraded"


class ConnectionManager:
    """Hands out a pinged StoreClient. Not safe for concurrent callers."""

    def __init__(self, factory: StoreClientFactory, stats: PipelineStats | None = None) -> None:
        self._factory = factory
        self._stats = stats
        self._client: StoreClient | None = None
        self._state = ConnectionState.UNCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    def acquire(self) -> StoreClient:
        """Return a usable client or raise StoreConnectionError."""
        if self._client is not None:
            try:
                latency, version = self._client.ping()
            except StoreConnectionError as exc:
                log.warning("pooled_connection_ping_failed", error=str(exc))
                self._state = ConnectionState.DEGRADED
                self._discard()
            else:
                log.debug("pooled_connection_reused",
                          ping_ms=round(latency * 1000, 2), version=version)
                return self._client

        reconnecting = self._state is ConnectionState.DEGRADED
        try:
            client = self._connect()
        except StoreConnectionError:
            if self._stats is not None:
                self._stats.record_connection_error()
            raise

        if reconnecting and self._stats is not None:
            self._stats.record_reconnect()
        self._client = client
        self._state = ConnectionState.CONNECTED
        return client

    def _connect(self) -> StoreClient:
        try:
            client = self._factory()
        except StoreConnectionError:
            raise
        except Exception as exc:
            log.error("store_client_create_failed", error=str(exc))
            raise StoreConnectionError(f"could not create store client: {exc}") from exc

        try:
            latency, version = client.ping()
        except StoreConnectionError as exc:
            log.error("store_connect_failed", error=str(exc))
            _close_quietly(client)
            raise

        log.info("store_connected", ping_ms=round(latency * 1000, 2), version=version)
        return client

    def _discard(self) -> None:
        if self._client is not None:
            _close_quietly(self._client)
        self._client = None

    def close(self) -> None:
        self._discard()
        self._state = ConnectionState.UNCONNECTED


def _close_quietly(client: StoreClient) -> None:
    try:
        client.close()
    except Exception:
        log.debug("store_client_close_failed", exc_info=True)
