"""Observer port for the metrics domain — defines events in domain language."""

from typing import Protocol


class MetricsObserver(Protocol):
    """Observer port emitting structured events from the MetricSink.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def metric_written(
        self, run_id: str, metric_name: str, index: int, overwritten: bool
    ) -> None: ...

    def metric_forward_failed(
        self, run_id: str, metric_name: str, index: int, reason: str
    ) -> None: ...

    def run_event_forward_failed(self, run_id: str, event: str, reason: str) -> None: ...
