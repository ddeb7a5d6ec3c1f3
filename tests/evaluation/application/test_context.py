"""Tests for the current-run accessor and its module-level helpers."""

import threading

import pytest

from eval_loop.evaluation.application.context import (
    current_run,
    evaluate,
    log,
    use_run,
)
from eval_loop.evaluation.application.coordinator import RunCoordinator
from eval_loop.evaluation.domain.errors import NoActiveRunError, StateError
from eval_loop.evaluation.infrastructure.registry import DictEvaluatorRegistry
from tests.evaluation.fake_evaluator import FakeEvaluator
from tests.evaluation.fake_observer import FakeEvaluationObserver
from tests.metrics.fake_collector import FakeCollector
from tests.metrics.fake_observer import FakeMetricsObserver


def _make_run(evaluators: DictEvaluatorRegistry | None = None) -> RunCoordinator:
    return RunCoordinator.init(
        name="context-run",
        collector=FakeCollector(),
        observer=FakeEvaluationObserver(),
        metrics_observer=FakeMetricsObserver(),
        evaluators=evaluators,
    )


class TestCurrentRun:
    """current_run() resolves the run bound to the calling context."""

    def test_unbound_raises(self) -> None:
        with pytest.raises(NoActiveRunError) as exc_info:
            current_run()
        assert isinstance(exc_info.value, StateError)

    def test_use_run_binds_and_restores(self) -> None:
        run = _make_run()
        with use_run(run) as bound:
            assert bound is run
            assert current_run() is run
        with pytest.raises(NoActiveRunError):
            current_run()
        run.finish()

    def test_nested_bindings_restore_outer(self) -> None:
        outer, inner = _make_run(), _make_run()
        with use_run(outer):
            with use_run(inner):
                assert current_run() is inner
            assert current_run() is outer
        outer.finish()
        inner.finish()

    def test_plain_threads_do_not_inherit_binding(self) -> None:
        run = _make_run()
        errors: list[BaseException] = []

        def probe() -> None:
            try:
                current_run()
            except NoActiveRunError as exc:
                errors.append(exc)

        with use_run(run):
            thread = threading.Thread(target=probe)
            thread.start()
            thread.join()
        assert len(errors) == 1
        run.finish()


class TestContextHelpers:
    """log() and evaluate() delegate to the bound run."""

    def test_log_writes_to_bound_run(self) -> None:
        run = _make_run()
        with use_run(run):
            record = log("score", 2, score=0.75, label="ok")
        assert run.snapshot()[("score", 2)] == record
        run.finish()

    def test_log_without_run_raises(self) -> None:
        with pytest.raises(NoActiveRunError):
            log("score", 0, score=1.0)

    def test_evaluate_uses_bound_registry(self) -> None:
        run = _make_run(DictEvaluatorRegistry({"faithfulness": FakeEvaluator()}))
        with use_run(run):
            result = evaluate("faithfulness", 0, data={"answer": "a"})
        assert result.label == "faithful"
        assert run.snapshot()[("faithfulness", 0)].score == 0.9
        run.finish()
