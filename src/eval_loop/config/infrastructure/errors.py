"""Error types raised while building a RunConfig."""

from pathlib import Path

from eval_loop.core.errors import EvalLoopError


class ConfigError(EvalLoopError):
    """Raised when run options fail validation (e.g. ``threads`` below 1)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate config: {reason}")


class MissingEnvVarsError(EvalLoopError):
    """Raised when one or more required environment variables are not set."""

    def __init__(self, missing_vars: list[str]) -> None:
        self.missing_vars = missing_vars
        var_list = ", ".join(sorted(missing_vars))
        super().__init__(
            f"Failed to load config: missing environment variables: {var_list}"
        )


class ConfigLoadError(EvalLoopError):
    """Raised when the config file cannot be opened or read."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Failed to load config: file not found: {path}")
