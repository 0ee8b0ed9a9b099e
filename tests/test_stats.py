"""Tests for PipelineStats."""

from __future__ import annotations

import threading

from sflux.core.stats import PipelineStats


def test_initial_stats():
    snap = PipelineStats().snapshot()
    for key in ("lines_read", "records_parsed", "records_rejected", "batches_written",
                "batches_failed", "points_written", "write_errors", "write_retries",
                "connection_errors", "reconnects"):
        assert snap[key] == 0
    assert snap["uptime_seconds"] >= 0


def test_input_counters():
    stats = PipelineStats()
    for _ in range(5):
        stats.record_line()
    stats.record_parsed(3)
    stats.record_rejected()

    snap = stats.snapshot()
    assert snap["lines_read"] == 5
    assert snap["records_parsed"] == 3
    assert snap["records_rejected"] == 1


def test_output_counters():
    stats = PipelineStats()
    stats.record_batch_written(1100)
    stats.record_batch_written(550)
    stats.record_write_error()
    stats.record_write_retry()
    stats.record_batch_failed()
    stats.record_connection_error()
    stats.record_reconnect()

    snap = stats.snapshot()
    assert snap["batches_written"] == 2
    assert snap["points_written"] == 1650
    assert snap["write_errors"] == 1
    assert snap["write_retries"] == 1
    assert snap["batches_failed"] == 1
    assert snap["connection_errors"] == 1
    assert snap["reconnects"] == 1


def test_concurrent_updates():
    stats = PipelineStats()

    def worker():
        for _ in range(1000):
            stats.record_batch_written(11)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = stats.snapshot()
    assert snap["batches_written"] == 4000
    assert snap["points_written"] == 44000
