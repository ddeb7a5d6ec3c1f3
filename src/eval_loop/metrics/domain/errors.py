"""Error types raised by the metrics context."""

from eval_loop.core.errors import EvalLoopError


class TransportError(EvalLoopError):
    """Raised by a Collector when a metric or run event cannot be delivered."""

    def __init__(self, reason: str, retriable: bool = True) -> None:
        super().__init__(f"Failed to deliver to collector: {reason}", retriable=retriable)


class SinkSealedError(EvalLoopError):
    """Raised when a metric is written after the sink has been sealed."""

    def __init__(self, metric_name: str, index: int) -> None:
        self.metric_name = metric_name
        self.index = index
        super().__init__(
            f"Failed to write metric '{metric_name}' for index {index}:"
            " sink is sealed"
        )
