"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(self, run_id: str, name: str, threads: int, backlog: int) -> None:
        self._log.info(
            "run.started",
            run_id=run_id,
            name=name,
            threads=threads,
            backlog=backlog,
        )

    def run_iteration_finished(self, run_id: str, total_rows: int) -> None:
        self._log.info("run.iteration_finished", run_id=run_id, total_rows=total_rows)

    def run_finalizing(self, run_id: str, total_units: int) -> None:
        self._log.info("run.finalizing", run_id=run_id, total_units=total_units)

    def run_completed(
        self,
        run_id: str,
        total_units: int,
        errored_units: int,
        total_records: int,
        forward_failed: int,
        elapsed_seconds: float,
    ) -> None:
        self._log.info(
            "run.completed",
            run_id=run_id,
            total_units=total_units,
            errored_units=errored_units,
            total_records=total_records,
            forward_failed=forward_failed,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def run_failed(self, run_id: str, reason: str) -> None:
        self._log.error("run.failed", run_id=run_id, reason=reason)

    def run_progress(self, run_id: str, completed: int, submitted: int) -> None:
        self._log.debug(
            "run.progress",
            run_id=run_id,
            completed=completed,
            submitted=submitted,
        )

    def unit_started(self, run_id: str, index: int) -> None:
        self._log.debug("run.unit.started", run_id=run_id, index=index)

    def unit_completed(self, run_id: str, index: int) -> None:
        self._log.debug("run.unit.completed", run_id=run_id, index=index)

    def unit_failed(self, run_id: str, index: int, reason: str) -> None:
        self._log.error("run.unit.failed", run_id=run_id, index=index, reason=reason)

    def unit_cancelled(self, run_id: str, index: int) -> None:
        self._log.warning("run.unit.cancelled", run_id=run_id, index=index)

    def unit_resubmitted(self, run_id: str, index: int) -> None:
        self._log.warning(
            "run.unit.resubmitted",
            run_id=run_id,
            index=index,
            message="Index submitted again; later metric writes replace earlier ones",
        )
