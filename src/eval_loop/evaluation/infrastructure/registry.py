"""DictEvaluatorRegistry — resolves evaluator slugs from an in-memory mapping."""

from collections.abc import Mapping

from eval_loop.evaluation.domain.evaluator import Evaluator


class DictEvaluatorRegistry:
    """Satisfies the EvaluatorRegistry protocol from a ``{slug: evaluator}`` mapping."""

    def __init__(self, evaluators: Mapping[str, Evaluator] | None = None) -> None:
        self._evaluators: dict[str, Evaluator] = dict(evaluators or {})

    def register(self, slug: str, evaluator: Evaluator) -> None:
        if not slug:
            raise ValueError("evaluator slug must be a non-empty string")
        self._evaluators[slug] = evaluator

    def get(self, slug: str) -> Evaluator | None:
        return self._evaluators.get(slug)

    @property
    def slugs(self) -> list[str]:
        return sorted(self._evaluators)
