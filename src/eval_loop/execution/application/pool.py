"""WorkerPool — bounded-parallelism execution of per-row work functions."""

import contextvars
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any

from eval_loop.config.infrastructure.errors import ConfigError
from eval_loop.execution.domain.errors import PoolClosedError
from eval_loop.execution.domain.listener import (
    NullWorkUnitListener,
    WorkUnitListener,
)
from eval_loop.execution.domain.work_unit import WorkFn, WorkStatus, WorkUnit


class WorkerPool:
    """Runs submitted work functions on at most ``threads`` worker threads.

    At most ``threads + backlog`` units are outstanding (running or queued) at
    any time; ``submit()`` blocks the calling thread while that capacity is
    exhausted instead of growing the queue.

    A work function that raises marks its unit ERRORED and is reported to the
    listener; the pool keeps executing the remaining units. Exceptions raised
    by the listener itself are not row failures: they are kept in ``faults``
    for the owner to inspect.
    """

    def __init__(
        self,
        threads: int = 4,
        backlog: int | None = None,
        listener: WorkUnitListener | None = None,
        name: str = "eval-loop",
    ) -> None:
        if threads < 1:
            raise ConfigError(f"threads must be >= 1, got {threads}")
        if backlog is not None and backlog < 0:
            raise ConfigError(f"backlog must be >= 0, got {backlog}")

        self._threads = threads
        self._backlog = threads * 4 if backlog is None else backlog
        self._listener: WorkUnitListener = listener or NullWorkUnitListener()
        self._slots = threading.BoundedSemaphore(self._threads + self._backlog)
        self._executor = ThreadPoolExecutor(
            max_workers=threads,
            thread_name_prefix=f"{name}-worker",
        )

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._closed = False
        self._pending = 0
        self._submitted = 0
        self._counts: dict[WorkStatus, int] = {
            WorkStatus.DONE: 0,
            WorkStatus.ERRORED: 0,
            WorkStatus.CANCELLED: 0,
        }
        self._faults: list[BaseException] = []

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def submit(
        self,
        work_fn: WorkFn,
        index: int,
        record: Any,
        context: contextvars.Context | None = None,
    ) -> WorkUnit:
        """Schedule ``work_fn(index, record)`` and return its WorkUnit.

        ``context`` is the contextvars.Context the function runs in; by default
        a copy of the caller's. Each unit needs its own Context object because
        one Context cannot be entered by two threads at once.

        Raises:
            PoolClosedError: if the pool has been shut down, including while
                the caller was blocked waiting for capacity.
        """
        with self._lock:
            if self._closed:
                raise PoolClosedError()

        self._slots.acquire()

        with self._lock:
            if self._closed:
                self._slots.release()
                raise PoolClosedError()
            unit = WorkUnit(index=index, record=record, sequence=self._submitted)
            self._submitted += 1
            self._pending += 1

        ctx = context if context is not None else contextvars.copy_context()
        try:
            future = self._executor.submit(ctx.run, self._execute, unit, work_fn)
        except RuntimeError as exc:
            # The executor was shut down between the closed check and here.
            unit.status = WorkStatus.CANCELLED
            self._settle(unit)
            raise PoolClosedError() from exc

        future.add_done_callback(partial(self._on_done, unit))
        return unit

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no unit is outstanding. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def shutdown(self, drain: bool = True) -> None:
        """Stop accepting work and wait for the pool to wind down.

        ``drain=True`` runs every queued unit to completion. ``drain=False``
        cancels queued units but still lets running units finish; running work
        is never interrupted. Safe to call more than once.
        """
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True, cancel_futures=not drain)

    @property
    def threads(self) -> int:
        return self._threads

    @property
    def backlog(self) -> int:
        return self._backlog

    @property
    def capacity(self) -> int:
        return self._threads + self._backlog

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    @property
    def submitted(self) -> int:
        with self._lock:
            return self._submitted

    @property
    def completed(self) -> int:
        with self._lock:
            return self._counts[WorkStatus.DONE]

    @property
    def errored(self) -> int:
        with self._lock:
            return self._counts[WorkStatus.ERRORED]

    @property
    def cancelled(self) -> int:
        with self._lock:
            return self._counts[WorkStatus.CANCELLED]

    @property
    def faults(self) -> list[BaseException]:
        with self._lock:
            return list(self._faults)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute(self, unit: WorkUnit, work_fn: WorkFn) -> None:
        """Run one unit on a worker thread, isolating work_fn failures."""
        unit.status = WorkStatus.RUNNING
        self._listener.unit_started(unit)
        try:
            work_fn(unit.index, unit.record)
        except Exception as exc:
            unit.status = WorkStatus.ERRORED
            unit.error = f"{type(exc).__name__}: {exc}"
            self._listener.unit_failed(unit, exc)
            return
        unit.status = WorkStatus.DONE
        self._listener.unit_completed(unit)

    def _on_done(self, unit: WorkUnit, future: Future[None]) -> None:
        try:
            if future.cancelled():
                unit.status = WorkStatus.CANCELLED
                self._listener.unit_cancelled(unit)
                return
            exc = future.exception()
            if exc is not None:
                with self._lock:
                    self._faults.append(exc)
                if not unit.status.is_terminal:
                    unit.status = WorkStatus.ERRORED
                    unit.error = f"{type(exc).__name__}: {exc}"
        finally:
            self._settle(unit)

    def _settle(self, unit: WorkUnit) -> None:
        with self._lock:
            self._pending -= 1
            if unit.status in self._counts:
                self._counts[unit.status] += 1
            if self._pending == 0:
                self._idle.notify_all()
        self._slots.release()
