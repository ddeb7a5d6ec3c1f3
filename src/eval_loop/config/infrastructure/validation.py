"""Turns caller-supplied run options into a validated RunConfig."""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from eval_loop.config.domain.config import RunConfig
from eval_loop.config.infrastructure.errors import ConfigError

type RawConfig = RunConfig | Mapping[str, Any] | None


def build_config(raw: RawConfig) -> RunConfig:
    """
    Return a RunConfig for ``raw``.

    ``None`` yields the defaults, a RunConfig is returned as-is, and a mapping
    is validated field by field.

    Raises:
        ConfigError: if the mapping violates the schema (unknown keys included).
    """
    if raw is None:
        return RunConfig()
    if isinstance(raw, RunConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigError(f"expected a mapping, got {type(raw).__name__}")

    unknown = sorted(set(raw) - set(RunConfig.model_fields))
    if unknown:
        raise ConfigError(f"unknown option(s): {', '.join(unknown)}")

    try:
        return RunConfig.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
