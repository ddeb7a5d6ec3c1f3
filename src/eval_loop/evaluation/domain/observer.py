"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events during an evaluation run.

    Unit events arrive on worker threads; implementations must be thread-safe.
    """

    def run_started(self, run_id: str, name: str, threads: int, backlog: int) -> None: ...

    def run_iteration_finished(self, run_id: str, total_rows: int) -> None: ...

    def run_finalizing(self, run_id: str, total_units: int) -> None: ...

    def run_completed(
        self,
        run_id: str,
        total_units: int,
        errored_units: int,
        total_records: int,
        forward_failed: int,
        elapsed_seconds: float,
    ) -> None: ...

    def run_failed(self, run_id: str, reason: str) -> None: ...

    def run_progress(self, run_id: str, completed: int, submitted: int) -> None: ...

    def unit_started(self, run_id: str, index: int) -> None: ...

    def unit_completed(self, run_id: str, index: int) -> None: ...

    def unit_failed(self, run_id: str, index: int, reason: str) -> None: ...

    def unit_cancelled(self, run_id: str, index: int) -> None: ...

    def unit_resubmitted(self, run_id: str, index: int) -> None: ...
