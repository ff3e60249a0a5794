"""Query input: the profile whose declared compensation is judged."""

from pydantic import BaseModel, ConfigDict


class Profile(BaseModel):
    """Location + experience profile with a declared compensation.

    ``email`` is an identity token used only for attribution downstream,
    never for scoring.
    """
    model_config = ConfigDict(frozen=True)

    location: str = ""
    total_xp: float | None = None
    compensation: float = 0.0
    email: str | None = None
    consent: bool = False

    @property
    def xp(self) -> float:
        return self.total_xp if self.total_xp is not None else 0.0
