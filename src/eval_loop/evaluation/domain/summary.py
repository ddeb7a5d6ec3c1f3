"""RunSummary — the aggregate result of a finalized evaluation run."""

from datetime import datetime

from pydantic import BaseModel, Field

from eval_loop.evaluation.domain.aggregator import MetricStats
from eval_loop.evaluation.domain.run import RunState
from eval_loop.metrics.domain.record import MetricRecord
from eval_loop.metrics.domain.report import ForwardReport


class RunSummary(BaseModel, frozen=True):
    """Immutable summary of a run.

    ``errored_indices`` lists rows whose work function raised, which is
    distinct from rows that merely scored low or failed an evaluator.
    """

    run_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    state: RunState
    created_at: datetime
    total_units: int = Field(ge=0)
    records: list[MetricRecord]
    errored_indices: list[int]
    metrics: dict[str, MetricStats]
    forward_report: ForwardReport = Field(default_factory=ForwardReport)

    def score(self, metric_name: str, index: int) -> float | None:
        """Return the score logged for ``(metric_name, index)``, if any."""
        for record in self.records:
            if record.metric_name == metric_name and record.index == index:
                return record.score
        return None
