"""Shared test fixtures."""

from __future__ import annotations

import pytest
import structlog

from sflux.core.errors import StoreConnectionError, StoreError

# eth0, ifIndex 1: 10 octets in, 5 out, one discard and one error out.
SAMPLE_LINE = "1700000000 x,eth0,1,6,1000,1,1,10,20,0,0,0,0,0,5,6,0,0,1,1,0"


class FakeStoreClient:
    """In-memory StoreClient recording every call."""

    def __init__(self, name: str = "fake", ping_ok: bool = True,
                 fail_writes: int = 0, version: str = "1.8.10") -> None:
        self.name = name
        self.ping_ok = ping_ok
        self.fail_writes = fail_writes
        self.version = version
        self.pings = 0
        self.write_attempts = 0
        self.writes: list[dict] = []
        self.closed = False
        self.on_write = None

    def ping(self) -> tuple[float, str]:
        self.pings += 1
        if not self.ping_ok:
            raise StoreConnectionError(f"{self.name} unreachable")
        return 0.002, self.version

    def write_points(self, points, database, retention_policy, precision="s") -> None:
        self.write_attempts += 1
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise StoreError(f"{self.name}: partial write: field type conflict")
        self.writes.append({
            "points": list(points),
            "database": database,
            "retention_policy": retention_policy,
            "precision": precision,
        })
        if self.on_write is not None:
            self.on_write(self)

    def close(self) -> None:
        self.closed = True


class FakeFactory:
    """StoreClientFactory handing out prepared clients, then healthy ones."""

    def __init__(self, *clients: FakeStoreClient) -> None:
        self._pending = list(clients)
        self.created: list[FakeStoreClient] = []

    def __call__(self) -> FakeStoreClient:
        if self._pending:
            client = self._pending.pop(0)
        else:
            client = FakeStoreClient(name=f"fake-{len(self.created) + 1}")
        self.created.append(client)
        return client

    @property
    def points_written(self) -> list:
        return [p for c in self.created for w in c.writes for p in w["points"]]


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog.configure() done by a test (e.g. through main())."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_line():
    """Build a well-formed counter line; counters default to distinct values."""

    def _make(timestamp: int = 1700000000, source: str = "sw1", if_index: int = 1,
              counters: list[int] | None = None) -> str:
        if counters is None:
            counters = [6, 1_000_000_000, 1, 1] + [100 + i for i in range(14)]
        return ",".join([str(timestamp), source, str(if_index), *(str(c) for c in counters)])

    return _make
