"""Tests for aggregate() — per-metric statistics over MetricRecords."""

import pytest

from eval_loop.evaluation.domain.aggregator import aggregate
from eval_loop.metrics.domain.record import MetricRecord


def _record(
    metric_name: str,
    index: int,
    score: float | None = None,
    passed: bool | None = None,
) -> MetricRecord:
    return MetricRecord(
        run_id="run-1",
        metric_name=metric_name,
        index=index,
        score=score,
        passed=passed,
        timestamp=1_700_000_000_000,
    )


class TestAggregate:
    """Statistics are grouped by metric name and ordered by name."""

    def test_empty_input(self) -> None:
        assert aggregate([]) == {}

    def test_groups_sorted_by_name(self) -> None:
        stats = aggregate([_record("b", 0, 1.0), _record("a", 0, 1.0)])
        assert list(stats) == ["a", "b"]

    def test_mean_and_stddev(self) -> None:
        stats = aggregate(
            [_record("score", i, s) for i, s in enumerate([0.2, 0.4, 0.6])]
        )["score"]
        assert stats.count == 3
        assert stats.scored == 3
        assert stats.mean_score == pytest.approx(0.4)
        assert stats.stddev_score == pytest.approx(0.2)

    def test_single_score_has_zero_stddev(self) -> None:
        stats = aggregate([_record("score", 0, 0.7)])["score"]
        assert stats.stddev_score == 0.0

    def test_unscored_records_excluded_from_mean(self) -> None:
        stats = aggregate([_record("m", 0, 1.0), _record("m", 1, passed=True)])["m"]
        assert stats.count == 2
        assert stats.scored == 1
        assert stats.mean_score == 1.0

    def test_pass_rate(self) -> None:
        records = [
            _record("pii", 0, passed=True),
            _record("pii", 1, passed=True),
            _record("pii", 2, passed=False),
            _record("pii", 3, passed=True),
        ]
        stats = aggregate(records)["pii"]
        assert (stats.passed, stats.failed) == (3, 1)
        assert stats.pass_rate == pytest.approx(0.75)

    def test_no_verdicts_gives_no_pass_rate(self) -> None:
        stats = aggregate([_record("score", 0, 0.5)])["score"]
        assert stats.pass_rate is None
        assert stats.passed == 0
        assert stats.failed == 0

    def test_no_scores_gives_no_mean(self) -> None:
        stats = aggregate([_record("pii", 0, passed=False)])["pii"]
        assert stats.mean_score is None
        assert stats.stddev_score == 0.0
