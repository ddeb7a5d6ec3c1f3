"""Tests for the `eval-loop summarize` command."""

import re
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from eval_loop.cli.main import app
from eval_loop.cli.output.table import errored_indices, stats_rows
from eval_loop.evaluation.application.coordinator import RunCoordinator
from eval_loop.evaluation.domain.aggregator import aggregate
from eval_loop.metrics.infrastructure.jsonl_collector import JsonlCollector
from eval_loop.metrics.infrastructure.jsonl_reader import read_results
from tests.evaluation.fake_observer import FakeEvaluationObserver
from tests.metrics.fake_observer import FakeMetricsObserver

_ANSI = re.compile(r"\x1b\[[0-9;]*m")

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    # The command points structlog at the runner's captured stderr.
    yield
    structlog.reset_defaults()


def _plain(text: str) -> str:
    return _ANSI.sub("", text)


def _record_run(path: Path, name: str = "nightly") -> str:
    """Run a small evaluation that writes its results to ``path``."""

    def work(index: int, record: int) -> None:
        if record < 0:
            raise ValueError("negative input")
        run.log("score", index, score=record / 10, passed=record >= 5)

    run = RunCoordinator.init(
        name=name,
        config={"threads": 2},
        collector=JsonlCollector(path=path),
        observer=FakeEvaluationObserver(),
        metrics_observer=FakeMetricsObserver(),
    )
    for index, record in run.loop([8, 2, -1, 6]):
        run.submit(work, index, record)
    run.finish()
    return run.run_id


class TestTableHelpers:
    """Pure helpers used by the renderer."""

    def test_errored_indices_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        run_id = _record_run(path)
        results = read_results(path=path)[run_id]
        assert errored_indices(results) == [2]

    def test_stats_rows_cells(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        run_id = _record_run(path)
        stats = aggregate(read_results(path=path)[run_id].records.values())
        rows = {row[0]: row for row in stats_rows(stats)}

        name, count, mean_cell, rate_cell, pass_fail = rows["score"]
        assert count == "3"
        assert mean_cell.startswith("0.533")
        assert rate_cell == "66.7%"
        assert pass_fail == "2/1"
        assert rows["execution_error"][3] == "0.0%"


class TestSummarizeCommand:
    """The command prints one block per run and exits non-zero on bad input."""

    def test_summarizes_recorded_run(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        run_id = _record_run(path)

        result = runner.invoke(app, ["summarize", str(path)])

        assert result.exit_code == 0, result.output
        out = _plain(result.output)
        assert "nightly" in out
        assert "(finished)" in out
        assert run_id in out
        assert "score" in out
        assert "Errored rows (1): 2" in out

    def test_run_id_prefix_filter(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        first = _record_run(path, name="first")
        _record_run(path, name="second")

        result = runner.invoke(app, ["summarize", str(path), "--run-id", first[:8]])

        assert result.exit_code == 0, result.output
        out = _plain(result.output)
        assert "first" in out
        assert "second" not in out

    def test_unknown_run_id_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        _record_run(path)
        result = runner.invoke(app, ["summarize", str(path), "--run-id", "zzz"])
        assert result.exit_code == 1
        assert "No runs found" in result.output

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["summarize", str(tmp_path / "absent.jsonl")])
        assert result.exit_code == 1
        assert "Failed to load results" in result.output

    def test_invalid_log_format_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "results.jsonl"
        _record_run(path)
        result = runner.invoke(app, ["summarize", str(path), "--log-format", "xml"])
        assert result.exit_code == 1
        assert "Invalid log format" in result.output
