"""Row — one dataset record paired with its position in the source sequence."""

from typing import Any, NamedTuple


class Row(NamedTuple):
    """Immutable ``(index, record)`` pair produced by a RowIterator.

    ``record`` is opaque to the coordinator. Unpacks like a tuple:
    ``for index, record in run.loop(dataset)``.
    """

    index: int
    record: Any
