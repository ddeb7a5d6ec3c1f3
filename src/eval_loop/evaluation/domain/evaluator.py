"""Evaluator and EvaluatorRegistry Protocols — named scorers resolved by slug."""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


class EvaluatorResult(BaseModel):
    """Structured output of one evaluator call, logged as a single metric."""

    model_config = ConfigDict(frozen=True)

    score: float | None = None
    passed: bool | None = None
    label: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class Evaluator(Protocol):
    """Structural interface satisfied by any evaluator implementation.

    Called from worker threads; implementations must be thread-safe.
    """

    def evaluate(
        self, data: dict[str, Any], settings: dict[str, Any]
    ) -> EvaluatorResult: ...


class EvaluatorRegistry(Protocol):
    """Resolves an evaluator slug to an Evaluator, or None when unknown."""

    def get(self, slug: str) -> Evaluator | None: ...
