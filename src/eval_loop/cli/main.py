"""CLI entrypoint for eval-loop — typer app with a `summarize` command."""

import logging
import sys
from pathlib import Path

import structlog
import typer

from eval_loop.cli.output.table import render_run
from eval_loop.core.errors import EvalLoopError
from eval_loop.metrics.infrastructure.jsonl_reader import read_results

app = typer.Typer(add_completion=False)


@app.callback()
def main() -> None:
    """eval-loop: inspect evaluation runs recorded to a local results file."""


def _configure_structlog(log_format: str, verbose: bool = False) -> None:
    """Route structlog to stderr with the requested renderer.

    Debug events (per-unit and per-metric) are only shown with ``verbose``.
    """
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.command()
def summarize(
    results_path: Path = typer.Argument(..., help="Path to a results JSONL file"),
    run_id: str | None = typer.Option(
        None,
        "--run-id",
        help="Only summarize this run (prefix match)",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Include debug-level events in the log output",
    ),
) -> None:
    """Print per-metric statistics and errored rows for each run in a results file."""
    _configure_structlog(log_format=log_format, verbose=verbose)
    log = structlog.get_logger()

    try:
        runs = read_results(path=results_path)
    except EvalLoopError as exc:
        typer.echo(exc.message)
        raise typer.Exit(code=1) from exc

    selected = [
        results
        for rid, results in runs.items()
        if run_id is None or rid.startswith(run_id)
    ]
    if not selected:
        typer.echo(f"No runs found in {results_path}")
        raise typer.Exit(code=1)

    log.info("results.loaded", path=str(results_path), runs=len(selected))
    for results in selected:
        render_run(results=results)


if __name__ == "__main__":
    app()
