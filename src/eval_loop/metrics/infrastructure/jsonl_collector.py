"""JsonlCollector — appends every metric and run event to a local JSONL file."""

import json
import threading
from pathlib import Path
from typing import Any

from eval_loop.metrics.domain.collector import RunEvent
from eval_loop.metrics.domain.errors import TransportError


class JsonlCollector:
    """Satisfies the Collector protocol by writing one JSON object per line.

    Line shapes::

        {"type": "metric", "run_id": ..., "metric_name": ..., "index": ...,
         "score": ..., "passed": ..., "label": ..., "data": {...}, "timestamp": ...}
        {"type": "run_event", "run_id": ..., "event": "started", "metadata": {...}}

    Values in ``data`` / ``metadata`` that are not JSON-serialisable are
    written with ``str()``. I/O failures surface as TransportError.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

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
        self._append(
            {
                "type": "metric",
                "run_id": run_id,
                "metric_name": metric_name,
                "index": index,
                "score": score,
                "passed": passed,
                "label": label,
                "data": data,
                "timestamp": timestamp,
            }
        )

    def send_run_event(
        self, run_id: str, event: RunEvent, metadata: dict[str, Any]
    ) -> None:
        self._append(
            {"type": "run_event", "run_id": run_id, "event": event, "metadata": metadata}
        )

    def _append(self, line: dict[str, Any]) -> None:
        encoded = json.dumps(line, default=str)
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(encoded + "\n")
            except OSError as exc:
                raise TransportError(f"cannot write {self._path}: {exc}") from exc
