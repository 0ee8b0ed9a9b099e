"""Store interface (port) for writing metric points."""

from __future__ import annotations

from typing import Callable, Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from sflux.core.models import MetricPoint


class StoreClient(Protocol):
    """Port: one live link to a time-series store.

    Implementations raise StoreConnectionError from ``ping`` and StoreError
    from ``write_points``.
    """

    def ping(self) -> tuple[float, str]:
        """Liveness check. Returns (round-trip seconds, server version)."""
        ...

    def write_points(
        self,
        points: Sequence[MetricPoint],
        database: str,
        retention_policy: str,
        precision: str = "s",
    ) -> None: ...

    def close(self) -> None: ...


# Builds a fresh, not yet pinged client.
StoreClientFactory = Callable[[], StoreClient]
