"""Terminal rendering of one run's metric statistics."""

import typer

from eval_loop.evaluation.domain.aggregator import MetricStats, aggregate
from eval_loop.metrics.domain.record import EXECUTION_ERROR_METRIC
from eval_loop.metrics.infrastructure.jsonl_reader import RunResults

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_WHITE = "\033[97m"

# Errored indices listed before eliding the rest.
_MAX_ERRORED_SHOWN = 20


def _rate_color(rate: float | None) -> str:
    if rate is None:
        return _DIM
    if rate >= 0.8:
        return _GREEN
    if rate >= 0.5:
        return _YELLOW
    return _RED


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _fmt(value: float | None, spec: str = ".3f") -> str:
    return "—" if value is None else format(value, spec)


def errored_indices(results: RunResults) -> list[int]:
    """Indices that carry an ``execution_error`` record, ascending."""
    return sorted(
        index for name, index in results.records if name == EXECUTION_ERROR_METRIC
    )


def stats_rows(stats: dict[str, MetricStats]) -> list[tuple[str, str, str, str, str]]:
    """Return (metric, count, mean±std, pass rate, passed/failed) text cells per metric."""
    rows: list[tuple[str, str, str, str, str]] = []
    for name, s in stats.items():
        mean = _fmt(s.mean_score)
        mean_cell = mean if s.mean_score is None else f"{mean}±{s.stddev_score:.3f}"
        rate_cell = "—" if s.pass_rate is None else f"{s.pass_rate:.1%}"
        rows.append((name, str(s.count), mean_cell, rate_cell, f"{s.passed}/{s.failed}"))
    return rows


def render_run(results: RunResults) -> None:
    """Print a colorized summary block for one run to stdout."""
    stats = aggregate(results.records.values())
    errored = errored_indices(results)

    typer.echo("")
    _rule(color=_CYAN)
    status = "finished" if results.finished else "incomplete"
    typer.echo(f"{_CYAN}{_BOLD}  {results.name}{_RESET}  {_DIM}({status}){_RESET}")
    _rule(color=_CYAN)
    typer.echo(f"  {_DIM}Run ID{_RESET}   {_WHITE}{results.run_id}{_RESET}")
    typer.echo(f"  {_DIM}Records{_RESET}  {_WHITE}{len(results.records)}{_RESET}")
    typer.echo("")

    if not stats:
        typer.echo(f"  {_DIM}No metrics recorded.{_RESET}")
    else:
        rows = stats_rows(stats)
        name_w = max(len("Metric"), *(len(r[0]) for r in rows))
        typer.echo(
            f"  {_DIM}{'Metric':<{name_w}}  {'N':>5}  {'Mean±Std':>13}"
            f"  {'Pass':>6}  {'P/F':>7}{_RESET}"
        )
        typer.echo(f"  {'─' * (name_w + 41)}")
        for (name, count, mean_cell, rate_cell, pf), s in zip(rows, stats.values()):
            color = _rate_color(s.pass_rate)
            typer.echo(
                f"  {_WHITE}{name:<{name_w}}{_RESET}  {count:>5}  {mean_cell:>13}"
                f"  {color}{rate_cell:>6}{_RESET}  {pf:>7}"
            )

    if errored:
        shown = ", ".join(str(i) for i in errored[:_MAX_ERRORED_SHOWN])
        more = len(errored) - _MAX_ERRORED_SHOWN
        suffix = f" … and {more} more" if more > 0 else ""
        typer.echo("")
        typer.echo(
            f"  {_RED}{_BOLD}Errored rows ({len(errored)}):{_RESET} {shown}{suffix}"
        )
    typer.echo("")
