"""StructlogMetricsObserver — production metrics observer that delegates to structlog."""

import structlog


class StructlogMetricsObserver:
    """Logs metrics domain events to structlog.

    Does NOT inherit from MetricsObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def metric_written(
        self, run_id: str, metric_name: str, index: int, overwritten: bool
    ) -> None:
        self._log.debug(
            "metrics.written",
            run_id=run_id,
            metric_name=metric_name,
            index=index,
            overwritten=overwritten,
        )

    def metric_forward_failed(
        self, run_id: str, metric_name: str, index: int, reason: str
    ) -> None:
        self._log.warning(
            "metrics.forward_failed",
            run_id=run_id,
            metric_name=metric_name,
            index=index,
            reason=reason,
        )

    def run_event_forward_failed(self, run_id: str, event: str, reason: str) -> None:
        self._log.warning(
            "metrics.run_event_forward_failed",
            run_id=run_id,
            event=event,
            reason=reason,
        )
