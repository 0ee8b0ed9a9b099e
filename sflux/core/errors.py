"""Exception hierarchy shared by the pipeline stages."""

from __future__ import annotations


class SfluxError(Exception):
    """Base class for all sflux errors."""


class MalformedRecordError(SfluxError):
    """A line could not be decoded into a counter record."""

    def __init__(self, message: str, line: str = "", field_count: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.field_count = field_count


class StoreError(SfluxError):
    """The time-series store rejected or failed a request."""


class StoreConnectionError(StoreError):
    """Connecting to the store, or probing a cached connection, failed."""


class ConfigError(SfluxError):
    """The configuration is missing a required value or holds an invalid one."""


class InputInterrupted(SfluxError):
    """A shutdown signal arrived while waiting for input lines."""
