"""Tests for the RunConfig model and build_config validation."""

import pytest
from pydantic import ValidationError

from eval_loop.config.domain.config import RunConfig
from eval_loop.config.infrastructure.errors import ConfigError
from eval_loop.config.infrastructure.validation import build_config


class TestRunConfigDefaults:
    """Defaults match the documented run options."""

    def test_threads_default_to_four(self) -> None:
        assert RunConfig().threads == 4

    def test_backlog_defaults_to_four_per_thread(self) -> None:
        assert RunConfig(threads=3).effective_backlog == 12

    def test_explicit_backlog_is_used(self) -> None:
        assert RunConfig(threads=3, backlog=0).effective_backlog == 0

    def test_flush_timeout_defaults_to_none(self) -> None:
        assert RunConfig().flush_timeout_seconds is None

    def test_is_frozen(self) -> None:
        cfg = RunConfig()
        with pytest.raises(ValidationError):
            cfg.threads = 8  # type: ignore[misc]


class TestRunConfigValidation:
    """Pydantic rejects out-of-range values."""

    def test_zero_threads_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(threads=0)

    def test_negative_backlog_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(backlog=-1)

    def test_zero_flush_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(flush_timeout_seconds=0)


class TestBuildConfig:
    """build_config normalises None, RunConfig and mappings, failing with ConfigError."""

    def test_none_yields_defaults(self) -> None:
        assert build_config(None) == RunConfig()

    def test_run_config_returned_unchanged(self) -> None:
        cfg = RunConfig(threads=2)
        assert build_config(cfg) is cfg

    def test_mapping_is_validated(self) -> None:
        assert build_config({"threads": 8}).threads == 8

    @pytest.mark.parametrize("threads", [0, -1, -100])
    def test_non_positive_threads_raise_config_error(self, threads: int) -> None:
        with pytest.raises(ConfigError):
            build_config({"threads": threads})

    def test_non_integer_threads_raise_config_error(self) -> None:
        with pytest.raises(ConfigError):
            build_config({"threads": "many"})

    def test_unknown_option_raises_config_error(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            build_config({"threads": 2, "workers": 4})
        assert "workers" in str(exc_info.value)

    def test_non_mapping_raises_config_error(self) -> None:
        with pytest.raises(ConfigError):
            build_config(["threads", 4])  # type: ignore[arg-type]
