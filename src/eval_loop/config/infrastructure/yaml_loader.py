"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml

from eval_loop.config.domain.config import RunConfig
from eval_loop.config.domain.observer import ConfigObserver
from eval_loop.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from eval_loop.config.infrastructure.errors import (
    ConfigError,
    ConfigLoadError,
    MissingEnvVarsError,
)
from eval_loop.config.infrastructure.validation import build_config


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a RunConfig from a YAML file.

    The file may hold the options at the top level or under a ``run:`` key.
    """

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> RunConfig:
        """
        Load, interpolate, validate, and return a RunConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file does not exist.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigError: if the document is not a mapping or the schema is violated.
            yaml.YAMLError: if the file is not valid YAML.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        interpolated = interpolate(raw)
        cfg = build_config(_select_run_section(interpolated=interpolated))
        self._observer.config_loaded(path=str(path), threads=cfg.threads)
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc


def _check_missing_env_vars(raw: Any) -> None:
    """Raise MissingEnvVarsError if any ${ENV_VAR} references in raw are unset."""
    missing = collect_missing_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing)


def _select_run_section(interpolated: Any) -> dict[str, Any]:
    # An empty file means "all defaults".
    if interpolated is None:
        return {}
    if not isinstance(interpolated, dict):
        raise ConfigError("top-level YAML document must be a mapping")
    section = interpolated.get("run", interpolated)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError("'run' section must be a mapping")
    return section
