"""Batcher — groups parsed records from a line stream into bounded chunks.

A malformed line is logged and skipped; the rest of the chunk is kept.
Blank lines are ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator

import structlog

from sflux.core.errors import InputInterrupted, MalformedRecordError
from sflux.core.parser import parse_line

if TYPE_CHECKING:
    import threading

    from sflux.core.models import CounterRecord
    from sflux.core.stats import PipelineStats

log = structlog.get_logger()


class Batcher:
    """Pulls lines from ``lines`` lazily and returns records in chunks."""

    def __init__(
        self,
        lines: Iterable[str],
        stats: PipelineStats | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._lines = iter(lines)
        self._stats = stats
        self._stop = stop_event
        self._line_no = 0
        self._exhausted = False
        self._reading = False

    @property
    def lines_read(self) -> int:
        return self._line_no

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def reading(self) -> bool:
        """True while next_batch is pulling lines from the stream."""
        return self._reading

    def next_batch(self, n: int) -> list[CounterRecord]:
        """Return up to ``n`` records; an empty list means the stream is done.

        A set stop event, or InputInterrupted raised while reading (from a
        signal handler), ends the chunk early and returns what was collected.
        """
        if n < 1:
            raise ValueError(f"chunk size must be >= 1, got {n}")

        batch: list[CounterRecord] = []
        if self._exhausted:
            return batch

        try:
            self._reading = True
            for line in self._lines:
                self._line_no += 1
                if self._stats is not None:
                    self._stats.record_line()

                if line.strip():
                    record = self._parse(line)
                    if record is not None:
                        batch.append(record)
                        if len(batch) == n:
                            return batch
                else:
                    log.debug("blank_line_skipped", line_no=self._line_no)

                if self._stop is not None and self._stop.is_set():
                    log.info("chunk_cut_short", records=len(batch), reason="stop_requested")
                    return batch
        except InputInterrupted:
            log.info("chunk_cut_short", records=len(batch), reason="read_interrupted")
            self._exhausted = True
            return batch
        finally:
            self._reading = False

        self._exhausted = True
        return batch

    def _parse(self, line: str) -> CounterRecord | None:
        try:
            record = parse_line(line)
        except MalformedRecordError as exc:
            log.error("malformed_record_skipped", line_no=self._line_no,
                      fields=exc.field_count, error=str(exc),
                      line=exc.line[:120])
            if self._stats is not None:
                self._stats.record_rejected()
            return None

        if self._stats is not None:
            self._stats.record_parsed()
        return record

    def batches(self, n: int) -> Iterator[list[CounterRecord]]:
        """Yield non-empty batches until the stream is exhausted."""
        while True:
            batch = self.next_batch(n)
            if not batch:
                return
            yield batch
