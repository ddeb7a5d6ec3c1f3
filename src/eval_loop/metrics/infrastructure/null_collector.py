"""NullCollector — a Collector that accepts and discards everything."""

from typing import Any

from eval_loop.metrics.domain.collector import RunEvent


class NullCollector:
    """Satisfies the Collector protocol for runs with no remote destination."""

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
    ) -> None:
        return None

    def send_run_event(
        self, run_id: str, event: RunEvent, metadata: dict[str, Any]
    ) -> None:
        return None
