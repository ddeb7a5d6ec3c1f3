"""JSONL results reader — rebuilds per-run metric tables from a JsonlCollector file."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from eval_loop.core.errors import EvalLoopError
from eval_loop.metrics.domain.record import MetricKey, MetricRecord


class ResultsLoadError(EvalLoopError):
    """Raised when a results file cannot be read or contains malformed lines."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load results: {reason}")


@dataclass
class RunResults:
    """Latest record per key plus the lifecycle events seen for one run."""

    run_id: str
    records: dict[MetricKey, MetricRecord] = field(default_factory=dict)
    events: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return str(self.events.get("started", {}).get("name", self.run_id))

    @property
    def finished(self) -> bool:
        return "finished" in self.events


def read_results(path: Path) -> dict[str, RunResults]:
    """
    Read every line of ``path`` and group it by run, in first-seen order.

    Metric lines are replayed in file order, so a key logged twice keeps the
    later value, matching the sink's last-write-wins rule.

    Raises:
        ResultsLoadError: if the file is missing or any line is malformed; all
            malformed lines are reported together.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            lines = [line for line in fh if line.strip()]
    except FileNotFoundError as exc:
        raise ResultsLoadError(f"file not found: {path}") from exc

    runs: dict[str, RunResults] = {}
    errors: list[str] = []
    for number, line in enumerate(lines, start=1):
        problem = _apply_line(line=line, runs=runs)
        if problem is not None:
            errors.append(f"line {number}: {problem}")

    if errors:
        raise ResultsLoadError("; ".join(errors))
    return runs


def _apply_line(line: str, runs: dict[str, RunResults]) -> str | None:
    """Fold one line into ``runs``. Returns an error string instead of raising."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        return f"invalid JSON: {exc}"
    if not isinstance(data, dict) or not data.get("run_id"):
        return "missing 'run_id'"

    run_id = str(data["run_id"])
    results = runs.setdefault(run_id, RunResults(run_id=run_id))
    kind = data.get("type")

    if kind == "metric":
        payload = {k: v for k, v in data.items() if k != "type"}
        try:
            record = MetricRecord.model_validate(payload)
        except ValidationError as exc:
            return f"invalid metric: {exc.error_count()} validation error(s)"
        results.records[record.key] = record
        return None

    if kind == "run_event":
        event = data.get("event")
        if event not in ("started", "finished"):
            return f"unknown run event {event!r}"
        results.events[event] = dict(data.get("metadata") or {})
        return None

    return f"unknown line type {kind!r}"
