"""Error types raised by work execution."""

from eval_loop.core.errors import EvalLoopError


class RowWorkError(EvalLoopError):
    """A work function raised for one row.

    Never propagated out of the pool: it is the isolated failure record that
    the coordinator turns into an ``execution_error`` metric.
    """

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Failed to execute work for row {index}: {reason}")


class PoolClosedError(EvalLoopError):
    """Raised when work is submitted to a pool that has been shut down."""

    def __init__(self) -> None:
        super().__init__("Failed to submit work: worker pool is shut down")
