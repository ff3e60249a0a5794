from pydantic import BaseModel, Field

from models.schemas.compensation_record import CompensationRecord
from models.schemas.profile import Profile


class ScoreRequest(BaseModel):
    location: str = Field("", max_length=100, description="City or region")
    total_xp: float | None = Field(
        None, ge=0, le=80, allow_inf_nan=False, description="Years of professional experience"
    )
    compensation: float = Field(..., ge=0, allow_inf_nan=False, description="Declared yearly compensation")
    email: str | None = Field(None, max_length=100)
    consent: bool = False

    def to_profile(self) -> Profile:
        return Profile(**self.model_dump())


class SalaryRequest(BaseModel):
    location: str = Field(..., min_length=1, max_length=100)
    total_xp: float = Field(..., ge=0, le=80, allow_inf_nan=False)
    compensation: float = Field(..., ge=0, allow_inf_nan=False)

    def to_record(self) -> CompensationRecord:
        return CompensationRecord(**self.model_dump())
