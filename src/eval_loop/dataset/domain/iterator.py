"""RowIterator — single-pass, index-assigning iteration over a dataset."""

from collections.abc import Iterable, Iterator
from typing import Any

from eval_loop.dataset.domain.row import Row


class RowIterator:
    """Yields each record of ``dataset`` exactly once as a Row.

    Indices are zero-based positions in the source order, assigned when the
    row is produced, so they are unaffected by the order in which workers
    later consume or complete them. The iterator is not restartable: once
    exhausted, further iteration yields nothing. Request a fresh one with
    ``iterate(dataset)`` to re-run.
    """

    def __init__(self, dataset: Iterable[Any]) -> None:
        self._source: Iterator[Any] = iter(dataset)
        self._next_index = 0
        self._exhausted = False

    def __iter__(self) -> "RowIterator":
        return self

    def __next__(self) -> Row:
        if self._exhausted:
            raise StopIteration
        try:
            record = next(self._source)
        except StopIteration:
            self._exhausted = True
            raise
        row = Row(index=self._next_index, record=record)
        self._next_index += 1
        return row

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def yielded(self) -> int:
        """Number of rows produced so far."""
        return self._next_index


def iterate(dataset: Iterable[Any]) -> RowIterator:
    """Return a fresh RowIterator over ``dataset``."""
    return RowIterator(dataset)
