"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from eval_loop.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

    def run_started(self, run_id: str, name: str, threads: int, backlog: int) -> None:
        for obs in self._observers:
            obs.run_started(run_id=run_id, name=name, threads=threads, backlog=backlog)

    def run_iteration_finished(self, run_id: str, total_rows: int) -> None:
        for obs in self._observers:
            obs.run_iteration_finished(run_id=run_id, total_rows=total_rows)

    def run_finalizing(self, run_id: str, total_units: int) -> None:
        for obs in self._observers:
            obs.run_finalizing(run_id=run_id, total_units=total_units)

    def run_completed(
        self,
        run_id: str,
        total_units: int,
        errored_units: int,
        total_records: int,
        forward_failed: int,
        elapsed_seconds: float,
    ) -> None:
        for obs in self._observers:
            obs.run_completed(
                run_id=run_id,
                total_units=total_units,
                errored_units=errored_units,
                total_records=total_records,
                forward_failed=forward_failed,
                elapsed_seconds=elapsed_seconds,
            )

    def run_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_failed(run_id=run_id, reason=reason)

    def run_progress(self, run_id: str, completed: int, submitted: int) -> None:
        for obs in self._observers:
            obs.run_progress(run_id=run_id, completed=completed, submitted=submitted)

    def unit_started(self, run_id: str, index: int) -> None:
        for obs in self._observers:
            obs.unit_started(run_id=run_id, index=index)

    def unit_completed(self, run_id: str, index: int) -> None:
        for obs in self._observers:
            obs.unit_completed(run_id=run_id, index=index)

    def unit_failed(self, run_id: str, index: int, reason: str) -> None:
        for obs in self._observers:
            obs.unit_failed(run_id=run_id, index=index, reason=reason)

    def unit_cancelled(self, run_id: str, index: int) -> None:
        for obs in self._observers:
            obs.unit_cancelled(run_id=run_id, index=index)

    def unit_resubmitted(self, run_id: str, index: int) -> None:
        for obs in self._observers:
            obs.unit_resubmitted(run_id=run_id, index=index)
