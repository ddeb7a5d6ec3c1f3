"""RunCoordinator — owns one run's lifecycle, worker pool and metric sink."""

import contextvars
import threading
import time
import traceback
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextvars import Token
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from eval_loop.config.domain.config import RunConfig
from eval_loop.config.infrastructure.errors import ConfigError
from eval_loop.config.infrastructure.validation import RawConfig, build_config
from eval_loop.dataset.domain.iterator import iterate
from eval_loop.dataset.domain.row import Row
from eval_loop.evaluation.application.context import bind_run, unbind_run
from eval_loop.evaluation.domain.aggregator import aggregate
from eval_loop.evaluation.domain.errors import (
    EvaluatorNotFoundError,
    RunFailedError,
    StateError,
)
from eval_loop.evaluation.domain.evaluator import EvaluatorRegistry, EvaluatorResult
from eval_loop.evaluation.domain.observer import EvaluationObserver
from eval_loop.evaluation.domain.run import Run, RunState
from eval_loop.evaluation.domain.summary import RunSummary
from eval_loop.evaluation.infrastructure.observer import StructlogEvaluationObserver
from eval_loop.execution.application.pool import WorkerPool
from eval_loop.execution.domain.errors import PoolClosedError, RowWorkError
from eval_loop.execution.domain.work_unit import WorkFn, WorkStatus, WorkUnit
from eval_loop.metrics.application.sink import MetricSink
from eval_loop.metrics.domain.collector import Collector
from eval_loop.metrics.domain.errors import SinkSealedError
from eval_loop.metrics.domain.observer import MetricsObserver
from eval_loop.metrics.domain.record import (
    EXECUTION_ERROR_METRIC,
    MetricFields,
    MetricRecord,
)
from eval_loop.metrics.domain.report import ForwardReport
from eval_loop.metrics.infrastructure.null_collector import NullCollector
from eval_loop.metrics.infrastructure.observer import StructlogMetricsObserver

# States in which metrics may still be written. FINALIZING is included so
# units drained during finalization can log; the sink is sealed right after.
_WRITABLE_STATES = (RunState.ACTIVE, RunState.FINALIZING)


class RunCoordinator:
    """Runs an evaluation: iterates rows, dispatches work, collects metrics.

    Typical use::

        with RunCoordinator.init(name="nightly", config={"threads": 8}) as run:
            for index, record in run.loop(dataset):
                run.submit(score_row, index, record)
        summary = run.summary()

    A work function that raises is isolated to its row: the row is recorded
    as an ``execution_error`` metric and the run carries on. Only an
    unrecoverable local error during finalization moves the run to FAILED.
    """

    def __init__(
        self,
        run: Run,
        config: RunConfig,
        collector: Collector,
        observer: EvaluationObserver,
        metrics_observer: MetricsObserver,
        evaluators: EvaluatorRegistry | None = None,
    ) -> None:
        self._run = run
        self._config = config
        self._observer = observer
        self._evaluators = evaluators

        self._state_lock = threading.Lock()
        self._finish_lock = threading.Lock()
        self._units_lock = threading.Lock()

        self._sink = MetricSink(
            run_id=run.run_id, collector=collector, observer=metrics_observer
        )
        self._pool = WorkerPool(
            threads=config.threads,
            backlog=config.effective_backlog,
            listener=_UnitTracker(coordinator=self),
            name=f"eval-loop-{run.run_id[:8]}",
        )

        self._seen_indices: set[int] = set()
        self._index_locks: dict[int, threading.Lock] = {}
        self._settled_sequence: dict[int, int] = {}
        self._index_status: dict[int, WorkStatus] = {}
        self._finished_units = 0
        self._iteration_done = False
        self._started_at = time.monotonic()
        self._summary: RunSummary | None = None
        self._context_tokens: list[Token["RunCoordinator | None"]] = []

    @classmethod
    def init(
        cls,
        name: str,
        config: RawConfig = None,
        *,
        collector: Collector | None = None,
        observer: EvaluationObserver | None = None,
        metrics_observer: MetricsObserver | None = None,
        evaluators: EvaluatorRegistry | None = None,
    ) -> "RunCoordinator":
        """Create a run in the ACTIVE state and announce it to the collector.

        ``config`` may be a RunConfig, a mapping such as ``{"threads": 8}``,
        or None for defaults.

        Raises:
            ConfigError: if ``name`` is empty or the options are invalid.
        """
        if not name:
            raise ConfigError("run name must be a non-empty string")
        cfg = build_config(config)

        run = Run(
            run_id=str(uuid.uuid4()),
            name=name,
            created_at=datetime.now(UTC),
        )
        coordinator = cls(
            run=run,
            config=cfg,
            collector=collector or NullCollector(),
            observer=observer or StructlogEvaluationObserver(),
            metrics_observer=metrics_observer or StructlogMetricsObserver(),
            evaluators=evaluators,
        )
        coordinator._observer.run_started(
            run_id=run.run_id,
            name=run.name,
            threads=cfg.threads,
            backlog=cfg.effective_backlog,
        )
        coordinator._sink.forward_event(
            "started",
            {
                "name": run.name,
                "created_at": run.created_at.isoformat(),
                "threads": cfg.threads,
            },
        )
        return coordinator

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def run_id(self) -> str:
        return self._run.run_id

    @property
    def name(self) -> str:
        return self._run.name

    @property
    def state(self) -> RunState:
        with self._state_lock:
            return self._run.state

    @property
    def config(self) -> RunConfig:
        return self._config

    @property
    def run_info(self) -> Run:
        with self._state_lock:
            return self._run.model_copy()

    @property
    def iteration_done(self) -> bool:
        return self._iteration_done

    @property
    def pending(self) -> int:
        return self._pool.pending

    def snapshot(self) -> dict[tuple[str, int], MetricRecord]:
        """Point-in-time copy of every record, keyed by ``(metric_name, index)``."""
        return self._sink.snapshot()

    def errored_indices(self) -> list[int]:
        """Indices whose most recent executed unit raised, in ascending order.

        Cancelled units never ran and do not count as the most recent.
        """
        with self._units_lock:
            return sorted(
                index
                for index, status in self._index_status.items()
                if status is WorkStatus.ERRORED
            )

    def summary(self) -> RunSummary:
        """Return the final summary once completed, or a live one before that."""
        if self._summary is not None:
            return self._summary
        return self._build_summary(report=self._sink.flush(timeout=0))

    # ------------------------------------------------------------------
    # Iteration and dispatch
    # ------------------------------------------------------------------

    def loop(self, dataset: Iterable[Any]) -> Iterator[Row]:
        """Yield ``(index, record)`` rows of ``dataset`` in source order.

        Exhausting the loop marks end-of-iteration; the run is finalized by
        ``finish()`` (or by leaving the ``with`` block).
        """
        self._require_state("iterate dataset", RunState.ACTIVE)
        rows = iterate(dataset)
        yield from rows
        self._iteration_done = True
        self._observer.run_iteration_finished(
            run_id=self.run_id, total_rows=rows.yielded
        )

    def submit(self, work_fn: WorkFn, index: int, record: Any) -> WorkUnit:
        """Run ``work_fn(index, record)`` on the worker pool.

        Blocks only while the pool's backlog is full. The work function runs
        with this run bound as the current run.

        Raises:
            StateError: if the run is no longer ACTIVE or is shutting down.
        """
        self._require_state("submit work", RunState.ACTIVE)
        if index < 0:
            raise ValueError(f"index must be non-negative, got {index}")

        with self._units_lock:
            resubmitted = index in self._seen_indices
            self._seen_indices.add(index)
        if resubmitted:
            self._observer.unit_resubmitted(run_id=self.run_id, index=index)

        ctx = contextvars.copy_context()
        ctx.run(bind_run, self)
        try:
            unit = self._pool.submit(work_fn, index, record, context=ctx)
        except PoolClosedError as exc:
            raise StateError(operation="submit work", state="shutting down") from exc
        return unit

    # ------------------------------------------------------------------
    # Metric writes
    # ------------------------------------------------------------------

    def log(
        self,
        metric_name: str,
        index: int,
        score: float | None = None,
        passed: bool | None = None,
        label: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> MetricRecord:
        """Record one metric for ``index``, replacing any earlier value.

        Safe to call from any thread, including from inside work functions.

        Raises:
            StateError: if the run has completed or failed; nothing is written.
        """
        self._require_state("log metric", *_WRITABLE_STATES)
        fields = MetricFields(score=score, passed=passed, label=label, data=data or {})
        try:
            return self._sink.write(metric_name=metric_name, index=index, fields=fields)
        except SinkSealedError as exc:
            raise StateError(operation="log metric", state=self.state.value) from exc

    def run(
        self,
        evaluator_slug: str,
        index: int,
        data: dict[str, Any] | None = None,
        settings: dict[str, Any] | None = None,
    ) -> EvaluatorResult:
        """Resolve and call a named evaluator, then log its result as one metric.

        The metric is stored under ``evaluator_slug``. Errors raised by the
        evaluator propagate to the caller; inside a work function that makes
        them a row failure.

        Raises:
            EvaluatorNotFoundError: if no evaluator is registered for the slug.
            StateError: if the run has completed or failed.
        """
        self._require_state("run evaluator", *_WRITABLE_STATES)
        evaluator = (
            self._evaluators.get(evaluator_slug)
            if self._evaluators is not None
            else None
        )
        if evaluator is None:
            raise EvaluatorNotFoundError(slug=evaluator_slug)

        result = evaluator.evaluate(data=dict(data or {}), settings=dict(settings or {}))
        self.log(
            metric_name=evaluator_slug,
            index=index,
            score=result.score,
            passed=result.passed,
            label=result.label,
            data=result.data,
        )
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finish(self) -> RunSummary:
        """Signal end-of-loop, wait for outstanding work and finalize the run.

        Returns the same summary on repeated calls once COMPLETED.

        Raises:
            RunFailedError: if finalization hits an unrecoverable local error.
            StateError: if the run already FAILED.
        """
        with self._finish_lock:
            if self._summary is not None:
                return self._summary
            self._require_state("finish run", RunState.ACTIVE)

            self._iteration_done = True
            self._pool.wait_idle()
            with self._state_lock:
                self._run.state = RunState.FINALIZING
            self._observer.run_finalizing(
                run_id=self.run_id, total_units=self._pool.submitted
            )

            try:
                report = self._finalize()
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
                self._sink.close(wait_for_pending=False)
                with self._state_lock:
                    self._run.state = RunState.FAILED
                self._observer.run_failed(run_id=self.run_id, reason=reason)
                raise RunFailedError(run_id=self.run_id, reason=reason) from exc

            with self._state_lock:
                self._run.state = RunState.COMPLETED
            summary = self._build_summary(report=report)
            self._summary = summary

        self._observer.run_completed(
            run_id=self.run_id,
            total_units=summary.total_units,
            errored_units=len(summary.errored_indices),
            total_records=len(summary.records),
            forward_failed=report.failed + report.events_failed,
            elapsed_seconds=time.monotonic() - self._started_at,
        )
        return summary

    def shutdown(self, drain: bool = True) -> RunSummary:
        """Stop accepting work, wind the pool down, then finalize.

        ``drain=False`` cancels queued units; running units always finish.
        """
        self._pool.shutdown(drain=drain)
        return self.finish()

    def __enter__(self) -> "RunCoordinator":
        self._context_tokens.append(bind_run(self))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        unbind_run(self._context_tokens.pop())
        if exc_type is None:
            self.finish()
        elif not self.state.is_terminal:
            try:
                self.shutdown(drain=False)
            except RunFailedError:
                # Already reported through run_failed; the block's own
                # exception is the one that propagates.
                pass

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_state(self, operation: str, *allowed: RunState) -> None:
        state = self.state
        if state not in allowed:
            raise StateError(operation=operation, state=state.value)

    def _finalize(self) -> ForwardReport:
        """Drain stragglers, seal the sink and flush every forward."""
        self._pool.shutdown(drain=True)
        self._sink.seal()

        faults = self._pool.faults
        if faults:
            fault = faults[0]
            raise RuntimeError(
                f"unhandled worker fault ({len(faults)} total): "
                f"{type(fault).__name__}: {fault}"
            ) from fault

        self._sink.forward_event(
            "finished",
            {
                "total_units": self._pool.submitted,
                "errored_indices": self.errored_indices(),
                "total_records": len(self._sink),
            },
        )
        report = self._sink.flush(timeout=self._config.flush_timeout_seconds)
        self._sink.close(wait_for_pending=report.pending == 0)
        return report

    def _build_summary(self, report: ForwardReport) -> RunSummary:
        records = sorted(
            self._sink.snapshot().values(), key=lambda r: (r.index, r.metric_name)
        )
        with self._state_lock:
            state = self._run.state
        return RunSummary(
            run_id=self._run.run_id,
            name=self._run.name,
            state=state,
            created_at=self._run.created_at,
            total_units=self._pool.submitted,
            records=records,
            errored_indices=self.errored_indices(),
            metrics=aggregate(records),
            forward_report=report,
        )

    def _lock_for_index(self, index: int) -> threading.Lock:
        with self._units_lock:
            lock = self._index_locks.get(index)
            if lock is None:
                lock = threading.Lock()
                self._index_locks[index] = lock
            return lock

    def _settle_unit(
        self, unit: WorkUnit, apply: Callable[[], None] | None = None
    ) -> None:
        """Record a terminal unit against its index.

        The executed unit with the highest sequence decides the status of its
        index. ``apply`` updates the sink for that decision and runs under the
        same per-index lock, so ``errored_indices()`` and the
        ``execution_error`` records always agree once the unit has settled.
        A cancelled unit never ran and leaves its index untouched.
        """
        if unit.status is not WorkStatus.CANCELLED:
            with self._lock_for_index(unit.index):
                if unit.sequence > self._settled_sequence.get(unit.index, -1):
                    if apply is not None:
                        apply()
                    with self._units_lock:
                        self._settled_sequence[unit.index] = unit.sequence
                        self._index_status[unit.index] = unit.status

        with self._units_lock:
            self._finished_units += 1
            finished = self._finished_units
        self._observer.run_progress(
            run_id=self.run_id, completed=finished, submitted=self._pool.submitted
        )

    def _record_unit_completed(self, unit: WorkUnit) -> None:
        self._observer.unit_completed(run_id=self.run_id, index=unit.index)

        def clear_error() -> None:
            # A successful resubmission supersedes an earlier failure.
            self._sink.discard(metric_name=EXECUTION_ERROR_METRIC, index=unit.index)

        self._settle_unit(unit, apply=clear_error)

    def _record_unit_failed(self, unit: WorkUnit, exc: BaseException) -> None:
        error = RowWorkError(index=unit.index, reason=unit.error or str(exc))
        self._observer.unit_failed(run_id=self.run_id, index=unit.index, reason=error.reason)

        def write_error() -> None:
            self._sink.write(
                metric_name=EXECUTION_ERROR_METRIC,
                index=unit.index,
                fields=MetricFields(
                    passed=False,
                    label=error.reason,
                    data={
                        "error": str(exc),
                        "type": type(exc).__name__,
                        "traceback": "".join(traceback.format_exception(exc)),
                    },
                ),
            )

        self._settle_unit(unit, apply=write_error)

    def _record_unit_cancelled(self, unit: WorkUnit) -> None:
        self._observer.unit_cancelled(run_id=self.run_id, index=unit.index)
        self._settle_unit(unit)


class _UnitTracker:
    """WorkUnitListener that feeds pool callbacks back into the coordinator."""

    def __init__(self, coordinator: RunCoordinator) -> None:
        self._coordinator = coordinator

    def unit_started(self, unit: WorkUnit) -> None:
        self._coordinator._observer.unit_started(
            run_id=self._coordinator.run_id, index=unit.index
        )

    def unit_completed(self, unit: WorkUnit) -> None:
        self._coordinator._record_unit_completed(unit)

    def unit_failed(self, unit: WorkUnit, exc: BaseException) -> None:
        self._coordinator._record_unit_failed(unit, exc)

    def unit_cancelled(self, unit: WorkUnit) -> None:
        self._coordinator._record_unit_cancelled(unit)
