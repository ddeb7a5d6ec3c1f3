"""Collector Protocol — the remote metric collector the sink forwards to."""

from typing import Any, Literal, Protocol

type RunEvent = Literal["started", "finished"]


class Collector(Protocol):
    """Structural interface for the external collector.

    Implementations own transport, authentication, connection pooling and
    retries. Both methods may be called from a background thread and raise
    TransportError when delivery fails.
    """

    def send_metric(
        self,
        run_id: str,
        metric_name: str,
        index: int,
        score: float | None,
        passed: bool | None,
        label: str | None,
        data: dict[str, Any],
        timestamp: int,
    ) -> None: ...

    def send_run_event(
        self, run_id: str, event: RunEvent, metadata: dict[str, Any]
    ) -> None: ...
