"""Tests verifying the EvalLoopError type hierarchy."""

from pathlib import Path

import pytest

from eval_loop.config.infrastructure.errors import (
    ConfigError,
    ConfigLoadError,
    MissingEnvVarsError,
)
from eval_loop.core.errors import EvalLoopError
from eval_loop.evaluation.domain.errors import (
    EvaluatorNotFoundError,
    NoActiveRunError,
    RunFailedError,
    StateError,
)
from eval_loop.execution.domain.errors import PoolClosedError, RowWorkError
from eval_loop.metrics.domain.errors import SinkSealedError, TransportError
from eval_loop.metrics.infrastructure.jsonl_reader import ResultsLoadError

_ALL_ERRORS: list[EvalLoopError] = [
    ConfigError(reason="threads must be >= 1"),
    ConfigLoadError(path=Path("/some/run.yaml")),
    MissingEnvVarsError(missing_vars=["EVAL_THREADS"]),
    StateError(operation="log metric", state="completed"),
    NoActiveRunError(operation="log metric"),
    RunFailedError(run_id="run-1", reason="disk full"),
    EvaluatorNotFoundError(slug="faithfulness"),
    RowWorkError(index=3, reason="ValueError: boom"),
    PoolClosedError(),
    TransportError(reason="timeout"),
    SinkSealedError(metric_name="score", index=0),
    ResultsLoadError(reason="file not found"),
]


class TestEvalLoopErrorHierarchy:
    """All eval-loop-specific exceptions inherit from EvalLoopError."""

    @pytest.mark.parametrize("error", _ALL_ERRORS, ids=lambda e: type(e).__name__)
    def test_is_eval_loop_error(self, error: EvalLoopError) -> None:
        assert isinstance(error, EvalLoopError)

    @pytest.mark.parametrize("error", _ALL_ERRORS, ids=lambda e: type(e).__name__)
    def test_message_starts_with_failed(self, error: EvalLoopError) -> None:
        assert str(error).startswith("Failed to ")

    def test_eval_loop_error_is_exception(self) -> None:
        assert isinstance(EvalLoopError("test"), Exception)

    def test_no_active_run_error_is_state_error(self) -> None:
        assert isinstance(NoActiveRunError(operation="log metric"), StateError)


class TestRetriableFlags:
    """Only transport failures are marked retriable by default."""

    def test_transport_error_is_retriable(self) -> None:
        assert TransportError(reason="timeout").retriable is True

    def test_state_error_is_not_retriable(self) -> None:
        assert StateError(operation="log metric", state="completed").retriable is False

    def test_config_error_is_not_retriable(self) -> None:
        assert ConfigError(reason="bad").retriable is False


class TestErrorMessages:
    """Messages carry the details a caller needs to act on."""

    def test_state_error_names_operation_and_state(self) -> None:
        error = StateError(operation="submit work", state="completed")
        assert "submit work" in str(error)
        assert "completed" in str(error)

    def test_row_work_error_keeps_index_and_reason(self) -> None:
        error = RowWorkError(index=7, reason="ValueError: boom")
        assert error.index == 7
        assert "boom" in str(error)

    def test_evaluator_not_found_includes_slug(self) -> None:
        assert "pii-detector" in str(EvaluatorNotFoundError(slug="pii-detector"))

    def test_missing_env_vars_lists_sorted_names(self) -> None:
        error = MissingEnvVarsError(missing_vars=["B_VAR", "A_VAR"])
        assert "A_VAR, B_VAR" in str(error)

    @pytest.mark.parametrize("error", _ALL_ERRORS, ids=lambda e: type(e).__name__)
    def test_message_attribute_matches_str(self, error: EvalLoopError) -> None:
        assert error.message == str(error)
