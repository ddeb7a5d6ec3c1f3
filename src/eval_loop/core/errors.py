"""EvalLoopError — root of every error raised by eval-loop."""


class EvalLoopError(Exception):
    """Base class for all eval-loop errors.

    ``retriable`` marks conditions that may succeed if the same call is made
    again (collector outages); state and validation errors never are.
    """

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retriable = retriable
