"""ForwardReport — outcome of flushing the sink's forwarding queue."""

from pydantic import BaseModel, Field


class ForwardReport(BaseModel, frozen=True):
    """Counts of collector deliveries; ``pending`` is non-zero only after a timeout.

    ``forwarded`` and ``failed`` count metric records, ``events_forwarded`` and
    ``events_failed`` count run lifecycle events.
    """

    forwarded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    events_forwarded: int = Field(default=0, ge=0)
    events_failed: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
