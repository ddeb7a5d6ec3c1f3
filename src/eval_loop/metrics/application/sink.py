"""MetricSink — thread-safe store of MetricRecords with asynchronous forwarding."""

import copy
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

from eval_loop.metrics.domain.collector import Collector, RunEvent
from eval_loop.metrics.domain.errors import SinkSealedError
from eval_loop.metrics.domain.observer import MetricsObserver
from eval_loop.metrics.domain.record import MetricFields, MetricKey, MetricRecord
from eval_loop.metrics.domain.report import ForwardReport


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class MetricSink:
    """Stores the latest MetricRecord per ``(metric_name, index)`` for one run.

    Writers of the same key are serialised by a per-key lock, so the order in
    which they reach the sink is the order in which they are stored and
    forwarded (last write wins). Writers of different keys only share the
    table lock, which is held for a single dict operation. Records are built
    completely before being published, so ``snapshot()`` never observes a
    half-written record.

    Forwarding runs on one background thread. The collector sees writes in
    the order they were published; delivery failures are reported to the
    observer and never raised to writers.
    """

    def __init__(
        self,
        run_id: str,
        collector: Collector,
        observer: MetricsObserver,
    ) -> None:
        self._run_id = run_id
        self._collector = collector
        self._observer = observer

        self._records: dict[MetricKey, MetricRecord] = {}
        self._table_lock = threading.Lock()
        self._key_locks: dict[MetricKey, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()
        self._sealed = False

        self._forwarder = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="eval-loop-forward"
        )
        self._in_flight: set[Future[bool]] = set()
        self._forward_lock = threading.Lock()
        self._forwarded = 0
        self._failed = 0
        self._events_forwarded = 0
        self._events_failed = 0

    # ------------------------------------------------------------------
    # Local store
    # ------------------------------------------------------------------

    def write(self, metric_name: str, index: int, fields: MetricFields) -> MetricRecord:
        """Build, publish and forward one record, replacing any previous value.

        Raises:
            SinkSealedError: if the sink has been sealed; nothing is stored.
            pydantic.ValidationError: if metric_name is empty or index negative.
        """
        key: MetricKey = (metric_name, index)
        with self._lock_for(key):
            record = MetricRecord(
                run_id=self._run_id,
                metric_name=metric_name,
                index=index,
                score=fields.score,
                passed=fields.passed,
                label=fields.label,
                data=copy.deepcopy(fields.data),
                timestamp=_now_ms(),
            )
            with self._table_lock:
                if self._sealed:
                    raise SinkSealedError(metric_name=metric_name, index=index)
                overwritten = key in self._records
                self._records[key] = record
            # Enqueued while the key lock is held so same-key forwards stay ordered.
            self.forward(record)

        self._observer.metric_written(
            run_id=self._run_id,
            metric_name=metric_name,
            index=index,
            overwritten=overwritten,
        )
        return record.model_copy(deep=True)

    def discard(self, metric_name: str, index: int) -> bool:
        """Remove the record for one key. Returns True if a record was removed."""
        key: MetricKey = (metric_name, index)
        with self._lock_for(key):
            with self._table_lock:
                if self._sealed:
                    raise SinkSealedError(metric_name=metric_name, index=index)
                return self._records.pop(key, None) is not None

    def get(self, metric_name: str, index: int) -> MetricRecord | None:
        with self._table_lock:
            record = self._records.get((metric_name, index))
        return None if record is None else record.model_copy(deep=True)

    def snapshot(self) -> dict[MetricKey, MetricRecord]:
        """Return a point-in-time copy of every stored record.

        Records are copied deeply, so mutating a returned record's ``data``
        never reaches the stored table.
        """
        with self._table_lock:
            records = dict(self._records)
        return {key: record.model_copy(deep=True) for key, record in records.items()}

    def seal(self) -> None:
        """Reject all further writes."""
        with self._table_lock:
            self._sealed = True

    @property
    def sealed(self) -> bool:
        with self._table_lock:
            return self._sealed

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def forward(self, record: MetricRecord) -> Future[bool]:
        """Send ``record`` to the collector in the background.

        The returned future resolves to True on delivery and False on failure;
        it never raises.
        """
        return self._enqueue(self._send_metric, record)

    def forward_event(self, event: RunEvent, metadata: dict[str, Any]) -> Future[bool]:
        """Send a run lifecycle event to the collector in the background."""
        return self._enqueue(self._send_event, event, metadata)

    def flush(self, timeout: float | None = None) -> ForwardReport:
        """Wait for every enqueued delivery attempt, up to ``timeout`` seconds."""
        with self._forward_lock:
            outstanding = set(self._in_flight)
        _, not_done = wait(outstanding, timeout=timeout)
        with self._forward_lock:
            return ForwardReport(
                forwarded=self._forwarded,
                failed=self._failed,
                events_forwarded=self._events_forwarded,
                events_failed=self._events_failed,
                pending=len(not_done),
            )

    def close(self, wait_for_pending: bool = True) -> None:
        """Stop the forwarder thread. Undelivered records are dropped when not waiting."""
        self._forwarder.shutdown(wait=wait_for_pending, cancel_futures=not wait_for_pending)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock_for(self, key: MetricKey) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _enqueue(self, fn: Any, *args: Any) -> Future[bool]:
        future: Future[bool] = self._forwarder.submit(fn, *args)
        with self._forward_lock:
            self._in_flight.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future[bool]) -> None:
        with self._forward_lock:
            self._in_flight.discard(future)

    def _send_metric(self, record: MetricRecord) -> bool:
        try:
            self._collector.send_metric(
                run_id=record.run_id,
                metric_name=record.metric_name,
                index=record.index,
                score=record.score,
                passed=record.passed,
                label=record.label,
                data=record.data,
                timestamp=record.timestamp,
            )
        except Exception as exc:  # noqa: BLE001
            # A lost delivery degrades observability only; the local record stands.
            self._count(delivered=False)
            self._observer.metric_forward_failed(
                run_id=self._run_id,
                metric_name=record.metric_name,
                index=record.index,
                reason=str(exc),
            )
            return False
        self._count(delivered=True)
        return True

    def _send_event(self, event: RunEvent, metadata: dict[str, Any]) -> bool:
        try:
            self._collector.send_run_event(
                run_id=self._run_id, event=event, metadata=metadata
            )
        except Exception as exc:  # noqa: BLE001
            self._count_event(delivered=False)
            self._observer.run_event_forward_failed(
                run_id=self._run_id, event=event, reason=str(exc)
            )
            return False
        self._count_event(delivered=True)
        return True

    def _count(self, delivered: bool) -> None:
        with self._forward_lock:
            if delivered:
                self._forwarded += 1
            else:
                self._failed += 1

    def _count_event(self, delivered: bool) -> None:
        with self._forward_lock:
            if delivered:
                self._events_forwarded += 1
            else:
                self._events_failed += 1
