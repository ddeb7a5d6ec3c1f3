"""Tests for ${ENV_VAR} interpolation of raw config data."""

import pytest

from eval_loop.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)


class TestCollectMissingVars:
    """Unset variables without a fallback are reported, each once."""

    def test_reports_unset_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EVAL_LOOP_UNSET", raising=False)
        assert collect_missing_vars({"threads": "${EVAL_LOOP_UNSET}"}) == [
            "EVAL_LOOP_UNSET"
        ]

    def test_set_variable_not_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVAL_LOOP_THREADS", "3")
        assert collect_missing_vars({"threads": "${EVAL_LOOP_THREADS}"}) == []

    def test_variable_with_fallback_not_reported(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("EVAL_LOOP_UNSET", raising=False)
        assert collect_missing_vars({"threads": "${EVAL_LOOP_UNSET:-2}"}) == []

    def test_nested_duplicates_reported_once(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("EVAL_LOOP_UNSET", raising=False)
        raw = {"a": ["${EVAL_LOOP_UNSET}", {"b": "${EVAL_LOOP_UNSET}"}]}
        assert collect_missing_vars(raw) == ["EVAL_LOOP_UNSET"]


class TestInterpolate:
    """Substitution walks lists and dicts and leaves non-strings alone."""

    def test_substitutes_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVAL_LOOP_THREADS", "6")
        assert interpolate({"run": {"threads": "${EVAL_LOOP_THREADS}"}}) == {
            "run": {"threads": "6"}
        }

    def test_uses_fallback_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EVAL_LOOP_UNSET", raising=False)
        assert interpolate("${EVAL_LOOP_UNSET:-4}") == "4"

    def test_environment_beats_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EVAL_LOOP_THREADS", "9")
        assert interpolate("${EVAL_LOOP_THREADS:-4}") == "9"

    def test_non_string_values_untouched(self) -> None:
        assert interpolate([1, 2.5, True, None]) == [1, 2.5, True, None]
