"""Batch writer — reshapes a batch and submits it as one store write.

This is the core output logic. It depends on the ConnectionManager and the
StoreClient protocol, not on a concrete store.

A batch whose last attempt fails is dropped: there is no dead-letter queue,
so transient store outages lose the affected chunks.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, Sequence

import structlog

from sflux.core.errors import StoreConnectionError, StoreError
from sflux.core.models import PRECISION_SECONDS
from sflux.core.reshaper import reshape_batch

if TYPE_CHECKING:
    from sflux.core.connection import ConnectionManager
    from sflux.core.models import CounterRecord
    from sflux.core.stats import PipelineStats

log = structlog.get_logger()

DEFAULT_RETENTION_POLICY = "default"


class BatchWriter:
    """Writes record batches through a ConnectionManager."""

    def __init__(
        self,
        connections: ConnectionManager,
        database: str,
        retention_policy: str = DEFAULT_RETENTION_POLICY,
        stats: PipelineStats | None = None,
        retries: int = 0,
        retry_backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        self._connections = connections
        self._database = database
        self._retention_policy = retention_policy
        self._stats = stats
        self._retries = retries
        self._backoff = retry_backoff_seconds
        self._sleep = sleep

    def write(self, batch: Sequence[CounterRecord]) -> bool:
        """Write one batch. Returns True on success, False if it was dropped."""
        if not batch:
            raise ValueError("refusing to write an empty batch")

        points = reshape_batch(batch)
        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                client = self._connections.acquire()
                log.info("chunk_write_start", records=len(batch), points=len(points),
                         database=self._database, attempt=attempt)
                client.write_points(
                    points,
                    database=self._database,
                    retention_policy=self._retention_policy,
                    precision=PRECISION_SECONDS,
                )
            except StoreError as exc:
                kind = "connection" if isinstance(exc, StoreConnectionError) else "write"
                log.error("chunk_write_failed", kind=kind, records=len(batch),
                          points=len(points), source=batch[0].source,
                          attempt=attempt, attempts=attempts, error=str(exc))
                if self._stats is not None:
                    self._stats.record_write_error()
                if attempt < attempts:
                    delay = self._backoff * (2 ** (attempt - 1))
                    if self._stats is not None:
                        self._stats.record_write_retry()
                    log.warning("chunk_write_retry", delay_seconds=delay,
                                next_attempt=attempt + 1)
                    self._sleep(delay)
                continue

            if self._stats is not None:
                self._stats.record_batch_written(len(points))
            log.debug("chunk_written", records=len(batch), points=len(points))
            return True

        log.error("chunk_dropped", records=len(batch), points=len(points),
                  source=batch[0].source)
        if self._stats is not None:
            self._stats.record_batch_failed()
        return False
