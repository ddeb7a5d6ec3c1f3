"""ProgressEvaluationObserver — renders a live Rich progress bar for a run on stderr."""

from __future__ import annotations

import threading

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


class _CountsColumn(ProgressColumn):
    """Renders done+errored+inflight/total with colors matching the bar segments."""

    def render(self, task: Task) -> Text:
        done = int(task.fields.get("done", 0))
        errored = int(task.fields.get("errored", 0))
        inflight = int(task.fields.get("inflight", 0))
        total = int(task.total or 0)
        return Text.assemble(
            (str(done), "bright_green"),
            ("+", "dim white"),
            (str(errored), "red"),
            ("+", "dim white"),
            (str(inflight), "grey50"),
            ("/", "dim white"),
            (str(total), "default"),
        )


class _SegmentBarColumn(ProgressColumn):
    """Renders four segments: done, errored, in-flight, remaining.

    The total grows while rows are still being submitted, so the bar is
    relative to the units known so far.
    """

    def __init__(self, bar_width: int = 40) -> None:
        super().__init__()
        self.bar_width = bar_width

    def render(self, task: Task) -> Text:
        bar_width = self.bar_width or 40
        total = task.total or 0
        cells: list[int] = []
        if total > 0:
            used = 0
            for field in ("done", "errored", "inflight"):
                count = int(task.fields.get(field, 0))
                n = min(int(count / total * bar_width), bar_width - used)
                cells.append(n)
                used += n
        else:
            cells = [0, 0, 0]
        remaining_cells = bar_width - sum(cells)

        result = Text()
        result.append("█" * cells[0], style="bright_green")
        result.append("█" * cells[1], style="red")
        result.append("▒" * cells[2], style="grey50")
        result.append("░" * remaining_cells, style="dim white")
        return result


def _make_progress(console: Console) -> Progress:
    """Create a Progress instance with the standard column layout."""
    return Progress(
        TextColumn("{task.description}"),
        _SegmentBarColumn(bar_width=40),
        _CountsColumn(),
        TimeElapsedColumn(),
        TextColumn("{task.fields[rate]}"),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressEvaluationObserver:
    """Renders one progress row per run on stderr.

    Only run and unit lifecycle events produce output; all other events are
    no-ops. Unit events arrive from worker threads, so counters are guarded by
    a lock.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests);
    counters are still maintained.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._lock = threading.Lock()
        self._done = 0
        self._errored = 0
        self._cancelled = 0
        self._inflight = 0
        self._total = 0
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._live: Live | None = None

    @property
    def counts(self) -> dict[str, int]:
        with self._lock:
            return {
                "done": self._done,
                "errored": self._errored,
                "cancelled": self._cancelled,
                "inflight": self._inflight,
                "total": self._total,
            }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _rate_str(self) -> str:
        """Compute a rate string like '0.4s/row' or '--s/row'."""
        if self._progress is None or self._task_id is None:
            return "--s/row"
        task = self._progress.tasks[self._task_id]
        finished = self._done + self._errored
        elapsed = task.elapsed
        if elapsed is not None and elapsed > 0 and finished > 0:
            return f"{elapsed / finished:.2f}s/row"
        return "--s/row"

    def _refresh(self) -> None:
        """Push counters into the Rich task. Caller holds the lock."""
        finished = self._done + self._errored + self._cancelled
        self._total = max(self._total, finished + self._inflight)
        if self._disabled or self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            total=float(self._total),
            completed=finished,
            done=self._done,
            errored=self._errored,
            inflight=self._inflight,
            rate=self._rate_str(),
        )

    # ------------------------------------------------------------------
    # Observer events
    # ------------------------------------------------------------------

    def run_started(self, run_id: str, name: str, threads: int, backlog: int) -> None:
        with self._lock:
            self._done = self._errored = self._cancelled = self._inflight = 0
            self._total = 0
            if self._disabled:
                return

            console = Console(stderr=True)
            legend = Text.assemble(
                "  Legend:  ",
                ("█", "bright_green"),
                " done  ",
                ("█", "red"),
                " errored  ",
                ("▒", "grey50"),
                " in-flight  ",
                ("░", "dim white"),
                " remaining",
            )
            self._progress = _make_progress(console=console)
            self._task_id = self._progress.add_task(
                description=f"[bold]{name}[/bold] [dim]({threads} threads)[/dim]",
                total=None,
                done=0,
                errored=0,
                inflight=0,
                rate="--s/row",
            )
            self._live = Live(
                Group(self._progress, Text(""), legend),
                console=console,
                refresh_per_second=10,
            )
            self._live.start()

    def run_iteration_finished(self, run_id: str, total_rows: int) -> None:
        with self._lock:
            self._total = max(self._total, total_rows)
            self._refresh()

    def run_finalizing(self, run_id: str, total_units: int) -> None:
        with self._lock:
            self._total = max(self._total, total_units)
            self._refresh()

    def run_completed(
        self,
        run_id: str,
        total_units: int,
        errored_units: int,
        total_records: int,
        forward_failed: int,
        elapsed_seconds: float,
    ) -> None:
        self._stop()

    def run_failed(self, run_id: str, reason: str) -> None:
        self._stop()

    def run_progress(self, run_id: str, completed: int, submitted: int) -> None:
        with self._lock:
            self._total = max(self._total, submitted)
            self._refresh()

    def unit_started(self, run_id: str, index: int) -> None:
        with self._lock:
            self._inflight += 1
            self._refresh()

    def unit_completed(self, run_id: str, index: int) -> None:
        with self._lock:
            self._done += 1
            self._inflight = max(0, self._inflight - 1)
            self._refresh()

    def unit_failed(self, run_id: str, index: int, reason: str) -> None:
        with self._lock:
            self._errored += 1
            self._inflight = max(0, self._inflight - 1)
            self._refresh()

    def unit_cancelled(self, run_id: str, index: int) -> None:
        with self._lock:
            self._cancelled += 1
            self._refresh()

    def unit_resubmitted(self, run_id: str, index: int) -> None:
        pass

    def _stop(self) -> None:
        with self._lock:
            if self._live is not None:
                self._live.stop()
            self._progress = None
            self._task_id = None
            self._live = None
