"""sflux — main entry point.

This is the only file that knows about concrete implementations.
It wires together config, logging, the pipeline stages and the InfluxDB store.

Usage:
    # Ship counters from a collector into the "netstats" database
    collector | sflux -d netstats

    # Remote store, bigger chunks, JSON logs
    sflux -H influx.example.net -p 8086 -u ingest --password s3cret \\
          -d netstats --chunksize 500 --log-format json counters.csv
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Iterable, TextIO

import structlog

from sflux.config import AppConfig, load_config, validate_config
from sflux.core.batcher import Batcher
from sflux.core.connection import ConnectionManager
from sflux.core.errors import ConfigError, InputInterrupted, StoreConnectionError
from sflux.core.pipeline import Pipeline
from sflux.core.stats import PipelineStats
from sflux.core.writer import BatchWriter
from sflux.store.base import StoreClientFactory
from sflux.store.influx import InfluxStoreClient

log = structlog.get_logger()

EXIT_OK = 0
EXIT_STORE_UNREACHABLE = 1
EXIT_CONFIG_ERROR = 2


def _setup_logging(config: AppConfig, stream: TextIO) -> None:
    """Configure structlog based on the logging config, writing to ``stream``."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sflux",
        description="Ship interface counter records from a text stream into InfluxDB",
    )
    parser.add_argument("input", nargs="?", default="-",
                        help="Input file with one counter record per line (default: stdin)")
    parser.add_argument("--config", default=None, help="YAML config file (default: ./sflux.yaml if present)")
    parser.add_argument("--chunksize", type=int, default=None,
                        help="Records written to the database per batch (default: 100)")
    parser.add_argument("-H", "--host", default=None, help="InfluxDB host (default: localhost)")
    parser.add_argument("-p", "--port", type=int, default=None, help="InfluxDB port (default: 8086)")
    parser.add_argument("-u", "--user", default=None, help="InfluxDB username")
    parser.add_argument("--password", default=None, help="InfluxDB password")
    parser.add_argument("-d", "--database", default=None, help="Database to use (required)")
    parser.add_argument("--retention-policy", default=None, help="Retention policy (default: default)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Network timeout in seconds for pings and writes (default: 10)")
    parser.add_argument("--write-retries", type=int, default=None,
                        help="Extra attempts for a failed batch write before dropping it (default: 0)")
    parser.add_argument("--loglevel", default=None,
                        help="ERROR, WARN, INFO or DEBUG (or 0-3), default INFO")
    parser.add_argument("--log-format", choices=["console", "json"], default=None)
    parser.add_argument("--log-file", default=None, help="Append logs to this file instead of stderr")
    return parser


def _apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    """Command-line flags win over file and environment."""
    overrides = [
        (config.pipeline, "chunk_size", args.chunksize),
        (config.pipeline, "write_retries", args.write_retries),
        (config.store, "host", args.host),
        (config.store, "port", args.port),
        (config.store, "username", args.user),
        (config.store, "password", args.password),
        (config.store, "database", args.database),
        (config.store, "retention_policy", args.retention_policy),
        (config.store, "timeout_seconds", args.timeout),
        (config.logging, "level", args.loglevel),
        (config.logging, "format", args.log_format),
        (config.logging, "file", args.log_file),
    ]
    for section, name, value in overrides:
        if value is not None:
            setattr(section, name, value)


def run(
    config: AppConfig,
    lines: Iterable[str],
    factory: StoreClientFactory,
    stop_event: threading.Event | None = None,
    handle_signals: bool = False,
) -> int:
    """Connect, then ship ``lines`` until exhausted. Returns a process exit code.

    With ``handle_signals``, SIGINT/SIGTERM end the run: the chunk being read
    is cut short, written, and the process exits cleanly.
    """
    stop_event = stop_event or threading.Event()
    stats = PipelineStats()
    connections = ConnectionManager(factory, stats=stats)
    try:
        try:
            connections.acquire()
        except StoreConnectionError as exc:
            log.error("store_unreachable_at_startup",
                      host=config.store.host, port=config.store.port, error=str(exc))
            return EXIT_STORE_UNREACHABLE

        writer = BatchWriter(
            connections,
            database=config.store.database,
            retention_policy=config.store.retention_policy,
            stats=stats,
            retries=config.pipeline.write_retries,
            retry_backoff_seconds=config.pipeline.retry_backoff_seconds,
        )
        batcher = Batcher(lines, stats=stats, stop_event=stop_event)
        pipeline = Pipeline(
            batcher,
            writer,
            chunk_size=config.pipeline.chunk_size,
            stats=stats,
            stop_event=stop_event,
        )
        previous = _install_signal_handlers(stop_event, batcher) if handle_signals else {}
        try:
            pipeline.run()
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
        return EXIT_OK
    finally:
        connections.close()


def _install_signal_handlers(stop_event: threading.Event, batcher: Batcher) -> dict:
    """Route SIGINT/SIGTERM to ``stop_event``. Returns the replaced handlers.

    A blocked read resumes after a handler returns, so while the batcher is
    waiting for input the handler raises InputInterrupted to end the chunk.
    A write in progress is never interrupted.
    """
    def handle_signal(signum, frame):
        log.info("shutdown_requested", signal=signum, reading=batcher.reading)
        stop_event.set()
        if batcher.reading:
            raise InputInterrupted(f"signal {signum}")

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handle_signal)
    return previous


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        _apply_cli_overrides(config, args)
        validate_config(config)
    except ConfigError as exc:
        print(f"sflux: configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # stdout may carry data in a pipe; logs go to stderr unless a file is set
    log_stream: TextIO = sys.stderr
    if config.logging.file:
        try:
            log_stream = open(config.logging.file, "a")
        except OSError as exc:
            print(f"sflux: cannot open log file {config.logging.file}: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

    try:
        _setup_logging(config, log_stream)
        return _serve(config, args.input)
    finally:
        if log_stream is not sys.stderr:
            log_stream.close()


def _serve(config: AppConfig, input_path: str) -> int:
    log.info("sflux_starting",
             loglevel=config.logging.level,
             chunk_size=config.pipeline.chunk_size,
             host=config.store.host,
             port=config.store.port,
             database=config.store.database,
             retention_policy=config.store.retention_policy,
             write_retries=config.pipeline.write_retries)

    def factory() -> InfluxStoreClient:
        return InfluxStoreClient.from_config(config.store)

    if input_path == "-":
        return run(config, sys.stdin, factory, handle_signals=True)
    try:
        f = open(input_path, encoding="utf-8", errors="replace")
    except OSError as exc:
        log.error("input_open_failed", path=input_path, error=str(exc))
        return EXIT_CONFIG_ERROR
    with f:
        return run(config, f, factory, handle_signals=True)


if __name__ == "__main__":
    sys.exit(main())
