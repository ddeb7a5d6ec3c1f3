"""MetricRecord — one named, indexed observation logged during a run."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

type MetricKey = tuple[str, int]  # (metric_name, index)

EXECUTION_ERROR_METRIC = "execution_error"


class MetricFields(BaseModel):
    """The optional payload of a metric write.

    Every field may be omitted; an evaluator that only decides pass/fail
    leaves ``score`` unset, a classifier may only set ``label``.
    """

    model_config = ConfigDict(frozen=True)

    score: float | None = None
    passed: bool | None = None
    label: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class MetricRecord(BaseModel):
    """Immutable, fully-built observation as stored by the MetricSink.

    ``timestamp`` is milliseconds since the Unix epoch at the time of the write.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(min_length=1)
    metric_name: str = Field(min_length=1)
    index: int = Field(ge=0)
    score: float | None = None
    passed: bool | None = None
    label: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = Field(ge=0)

    @property
    def key(self) -> MetricKey:
        return (self.metric_name, self.index)
