"""Population element: one observed compensation record."""

from pydantic import BaseModel, ConfigDict


class CompensationRecord(BaseModel):
    """A salary observation read from the population source.

    Records are read-only snapshots; the engine never mutates them.
    """
    model_config = ConfigDict(frozen=True)

    location: str | None = None
    total_xp: float | None = None  # years of professional experience
    compensation: float = 0.0
