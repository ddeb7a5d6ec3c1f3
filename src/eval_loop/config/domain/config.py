"""RunConfig — options recognised when a run is initialised."""

from pydantic import BaseModel, Field


class RunConfig(BaseModel, frozen=True):
    """Root configuration for one evaluation run.

    ``backlog`` is the number of queued units allowed on top of the running
    ones before ``submit()`` blocks the caller; ``None`` means ``threads * 4``.
    """

    threads: int = Field(default=4, ge=1)
    backlog: int | None = Field(default=None, ge=0)
    flush_timeout_seconds: float | None = Field(default=None, gt=0)

    @property
    def effective_backlog(self) -> int:
        if self.backlog is None:
            return self.threads * 4
        return self.backlog
