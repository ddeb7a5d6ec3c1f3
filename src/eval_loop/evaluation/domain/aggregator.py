"""Aggregator — groups MetricRecords by metric name and computes statistics."""

import statistics
from collections.abc import Iterable

from pydantic import BaseModel

from eval_loop.metrics.domain.record import MetricRecord


class MetricStats(BaseModel, frozen=True):
    """Statistics for one metric name across every index it was logged for."""

    metric_name: str
    count: int
    scored: int
    mean_score: float | None
    stddev_score: float
    passed: int
    failed: int
    pass_rate: float | None


def _stddev(values: list[float]) -> float:
    """Return sample stddev for N >= 2, else 0.0."""
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)


def aggregate(records: Iterable[MetricRecord]) -> dict[str, MetricStats]:
    """Return one MetricStats per metric name, ordered by name.

    Records without a score do not count towards the mean; records without a
    pass/fail verdict do not count towards the pass rate.
    """
    groups: dict[str, list[MetricRecord]] = {}
    for record in records:
        groups.setdefault(record.metric_name, []).append(record)

    stats: dict[str, MetricStats] = {}
    for metric_name in sorted(groups):
        group = groups[metric_name]
        scores = [r.score for r in group if r.score is not None]
        verdicts = [r.passed for r in group if r.passed is not None]
        passed = sum(1 for v in verdicts if v)

        stats[metric_name] = MetricStats(
            metric_name=metric_name,
            count=len(group),
            scored=len(scores),
            mean_score=statistics.mean(scores) if scores else None,
            stddev_score=_stddev(scores),
            passed=passed,
            failed=len(verdicts) - passed,
            pass_rate=passed / len(verdicts) if verdicts else None,
        )
    return stats
