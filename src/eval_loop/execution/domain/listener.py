"""WorkUnitListener port — lifecycle callbacks emitted by a WorkerPool."""

from typing import Protocol

from eval_loop.execution.domain.work_unit import WorkUnit


class WorkUnitListener(Protocol):
    """Receives unit lifecycle callbacks on the worker thread that ran the unit.

    ``unit_cancelled`` is called on the thread that shut the pool down.
    """

    def unit_started(self, unit: WorkUnit) -> None: ...

    def unit_completed(self, unit: WorkUnit) -> None: ...

    def unit_failed(self, unit: WorkUnit, exc: BaseException) -> None: ...

    def unit_cancelled(self, unit: WorkUnit) -> None: ...


class NullWorkUnitListener:
    """Satisfies WorkUnitListener by ignoring every callback."""

    def unit_started(self, unit: WorkUnit) -> None:
        pass

    def unit_completed(self, unit: WorkUnit) -> None:
        pass

    def unit_failed(self, unit: WorkUnit, exc: BaseException) -> None:
        pass

    def unit_cancelled(self, unit: WorkUnit) -> None:
        pass
