"""Current-run accessor — binds a RunCoordinator to the calling thread or task.

Uses a ContextVar rather than a module global, so concurrent runs never see
each other's handle. Units submitted through a coordinator run with that
coordinator bound, which is what lets work functions call ``log()`` without
threading the handle through every call.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Any

from eval_loop.evaluation.domain.errors import NoActiveRunError
from eval_loop.evaluation.domain.evaluator import EvaluatorResult
from eval_loop.metrics.domain.record import MetricRecord

if TYPE_CHECKING:
    from eval_loop.evaluation.application.coordinator import RunCoordinator

_current_run: ContextVar["RunCoordinator | None"] = ContextVar(
    "eval_loop_current_run", default=None
)


def current_run() -> "RunCoordinator":
    """Return the run bound to this context.

    Raises:
        NoActiveRunError: if no run is bound.
    """
    run = _current_run.get()
    if run is None:
        raise NoActiveRunError(operation="access the current run")
    return run


def bind_run(run: "RunCoordinator | None") -> Token["RunCoordinator | None"]:
    return _current_run.set(run)


def unbind_run(token: Token["RunCoordinator | None"]) -> None:
    _current_run.reset(token)


@contextmanager
def use_run(run: "RunCoordinator") -> Iterator["RunCoordinator"]:
    """Bind ``run`` as the current run for the duration of the block."""
    token = bind_run(run)
    try:
        yield run
    finally:
        unbind_run(token)


def log(
    metric_name: str,
    index: int,
    score: float | None = None,
    passed: bool | None = None,
    label: str | None = None,
    data: dict[str, Any] | None = None,
) -> MetricRecord:
    """Log a metric on the current run. See ``RunCoordinator.log``."""
    return current_run().log(
        metric_name=metric_name,
        index=index,
        score=score,
        passed=passed,
        label=label,
        data=data,
    )


def evaluate(
    evaluator_slug: str,
    index: int,
    data: dict[str, Any] | None = None,
    settings: dict[str, Any] | None = None,
) -> EvaluatorResult:
    """Run a named evaluator on the current run. See ``RunCoordinator.run``."""
    return current_run().run(
        evaluator_slug=evaluator_slug,
        index=index,
        data=data,
        settings=settings,
    )
