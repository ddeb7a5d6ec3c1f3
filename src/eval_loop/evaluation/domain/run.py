"""Run — identity and lifecycle state of one evaluation session."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

type RunId = str


class RunState(StrEnum):
    ACTIVE = "active"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED)


class Run(BaseModel):
    """One evaluation session.

    Owned by the RunCoordinator, which is the only writer of ``state``.
    Callers receive copies through ``RunCoordinator.run_info``.
    """

    model_config = ConfigDict(validate_assignment=True)

    run_id: RunId = Field(min_length=1)
    name: str = Field(min_length=1)
    created_at: datetime
    state: RunState = RunState.ACTIVE
