"""Pipeline statistics.

In-memory counters describing one ingestion run. No framework dependencies.
"""

from __future__ import annotations

import threading
import time


class PipelineStats:
    """Thread-safe pipeline counters.

    The pipeline itself is single-threaded; the lock keeps the counters
    consistent if writers are ever run concurrently against one instance.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        # Input side
        self.lines_read: int = 0
        self.records_parsed: int = 0
        self.records_rejected: int = 0

        # Output side
        self.batches_written: int = 0
        self.batches_failed: int = 0
        self.points_written: int = 0
        self.write_errors: int = 0
        self.write_retries: int = 0

        # Connection
        self.connection_errors: int = 0
        self.reconnects: int = 0

    def record_line(self) -> None:
        with self._lock:
            self.lines_read += 1

    def record_parsed(self, count: int = 1) -> None:
        with self._lock:
            self.records_parsed += count

    def record_rejected(self, count: int = 1) -> None:
        with self._lock:
            self.records_rejected += count

    def record_batch_written(self, points: int) -> None:
        """Record a successful batch write of ``points`` points."""
        with self._lock:
            self.batches_written += 1
            self.points_written += points

    def record_batch_failed(self) -> None:
        """Record a batch dropped after its last write attempt failed."""
        with self._lock:
            self.batches_failed += 1

    def record_write_error(self) -> None:
        with self._lock:
            self.write_errors += 1

    def record_write_retry(self) -> None:
        with self._lock:
            self.write_retries += 1

    def record_connection_error(self) -> None:
        with self._lock:
            self.connection_errors += 1

    def record_reconnect(self) -> None:
        with self._lock:
            self.reconnects += 1

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "lines_read": self.lines_read,
                "records_parsed": self.records_parsed,
                "records_rejected": self.records_rejected,
                "batches_written": self.batches_written,
                "batches_failed": self.batches_failed,
                "points_written": self.points_written,
                "write_errors": self.write_errors,
                "write_retries": self.write_retries,
                "connection_errors": self.connection_errors,
                "reconnects": self.reconnects,
            }
