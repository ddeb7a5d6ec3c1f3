"""Error types raised by the run coordinator."""

from eval_loop.core.errors import EvalLoopError


class StateError(EvalLoopError):
    """Raised when an operation is invoked in a run state that forbids it."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Failed to {operation}: run is {state}")


class NoActiveRunError(StateError):
    """Raised when a run-scoped helper is used with no run bound to the context."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation=operation, state="not bound in this context")


class RunFailedError(EvalLoopError):
    """Raised when finalization hits an unrecoverable local error."""

    def __init__(self, run_id: str, reason: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to finalize run {run_id}: {reason}")


class EvaluatorNotFoundError(EvalLoopError):
    """Raised when ``run()`` names an evaluator slug that cannot be resolved."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Failed to resolve evaluator: unknown slug '{slug}'")
