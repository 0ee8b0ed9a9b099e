"""Pipeline loop — batch, write, repeat until the input ends.

A shutdown request is honored between chunks, never in the middle of a write.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sflux.core.batcher import Batcher
    from sflux.core.stats import PipelineStats
    from sflux.core.writer import BatchWriter

log = structlog.get_logger()


class Pipeline:
    def __init__(
        self,
        batcher: Batcher,
        writer: BatchWriter,
        chunk_size: int,
        stats: PipelineStats | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk size must be >= 1, got {chunk_size}")
        self._batcher = batcher
        self._writer = writer
        self._chunk_size = chunk_size
        self._stats = stats
        self._stop = stop_event or threading.Event()

    def run(self) -> dict:
        """Process the whole stream. Returns the stats snapshot (or {})."""
        log.info("pipeline_started", chunk_size=self._chunk_size)
        chunks = 0
        while not self._stop.is_set():
            batch = self._batcher.next_batch(self._chunk_size)
            if not batch:
                break
            chunks += 1
            self._writer.write(batch)
        else:
            log.info("pipeline_stop_requested", chunks=chunks)

        snapshot = self._stats.snapshot() if self._stats is not None else {}
        log.info("pipeline_finished", chunks=chunks, **snapshot)
        return snapshot
