"""Tests for DictEvaluatorRegistry."""

import pytest

from eval_loop.evaluation.infrastructure.registry import DictEvaluatorRegistry
from tests.evaluation.fake_evaluator import FakeEvaluator


class TestDictEvaluatorRegistry:
    """Slugs resolve to registered evaluators, or None when unknown."""

    def test_resolves_initial_mapping(self) -> None:
        evaluator = FakeEvaluator()
        registry = DictEvaluatorRegistry({"faithfulness": evaluator})
        assert registry.get("faithfulness") is evaluator

    def test_unknown_slug_is_none(self) -> None:
        assert DictEvaluatorRegistry().get("missing") is None

    def test_register_replaces(self) -> None:
        first, second = FakeEvaluator(), FakeEvaluator()
        registry = DictEvaluatorRegistry({"pii": first})
        registry.register("pii", second)
        assert registry.get("pii") is second

    def test_slugs_sorted(self) -> None:
        registry = DictEvaluatorRegistry({"b": FakeEvaluator(), "a": FakeEvaluator()})
        assert registry.slugs == ["a", "b"]

    def test_empty_slug_rejected(self) -> None:
        with pytest.raises(ValueError):
            DictEvaluatorRegistry().register("", FakeEvaluator())
