"""WorkUnit — one dispatched, indexed piece of work and its lifecycle status."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Callable

type WorkFn = Callable[[int, Any], object]


class WorkStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkStatus.DONE, WorkStatus.ERRORED, WorkStatus.CANCELLED)


@dataclass
class WorkUnit:
    """Mutable record of one submitted unit.

    Only the WorkerPool that executes the unit updates ``status`` and ``error``.
    """

    index: int
    record: Any
    sequence: int
    status: WorkStatus = WorkStatus.PENDING
    error: str | None = field(default=None)
